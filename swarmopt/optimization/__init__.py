# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .pso import ParticleSwarm  # main class, for type checking
from .pso import ConfiguredPSO
from .pso import Recommendation
from .pso import optimize
from .pso import registry
from .swarm import Bounds
from . import pso
