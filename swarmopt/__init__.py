# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .optimization import pso as optimizers
from .optimization import callbacks as callbacks
from .optimization import fitness as fitness
from .optimization.pso import optimize as optimize
from .optimization.pso import ParticleSwarm as ParticleSwarm
from .optimization.swarm import Bounds as Bounds
from .functions import corefuncs as functions


__all__ = ["optimizers", "callbacks", "fitness", "functions", "errors", "typing", "optimize", "ParticleSwarm", "Bounds"]


__version__ = "0.1.0"
