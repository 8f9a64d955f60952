# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# base classes


class SwarmError(Exception):
    """Base class for error raised by swarmopt"""


class SwarmWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class SwarmEarlyStopping(StopIteration, SwarmError):
    """Stops the optimization loop if raised by an iteration callback"""


class SwarmRuntimeError(RuntimeError, SwarmError):
    """Runtime error raised by swarmopt"""


class SwarmTypeError(TypeError, SwarmError):
    """Wrong type of input provided to swarmopt"""


class SwarmValueError(ValueError, SwarmError):
    """Invalid input provided to swarmopt (eg: empty swarm, inverted bounds)"""


class SwarmMemoryError(MemoryError, SwarmError):
    """The swarm storage could not be allocated"""


class ObjectiveFunctionError(SwarmRuntimeError):
    """The objective function or the fitness comparator raised an exception"""


class UnsupportedOptimizerStateError(SwarmRuntimeError):
    """The operation is not possible in the current state of the optimizer
    (eg: running twice the same instance)
    """


# warnings


class SwarmRuntimeWarning(RuntimeWarning, SwarmWarning):
    """Runtime warning raised by swarmopt"""


class InefficientSettingsWarning(SwarmRuntimeWarning):
    """Optimization settings are out of their usual range"""


class BadLossWarning(SwarmRuntimeWarning):
    """Provided objective value is unhelpful (nan or infinite)"""
