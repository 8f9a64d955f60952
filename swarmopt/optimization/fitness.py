# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Fitness comparators: a comparator better(a, b) returns True if value a
is preferable to value b. This decouples the engine from the direction of the optimization.
"""
import math
import typing as tp


def less_than(a: float, b: float) -> bool:
    """Comparator for minimization"""
    return a < b


def greater_than(a: float, b: float) -> bool:
    """Comparator for maximization"""
    return a > b


def is_better(comparator: tp.Callable[[float, float], bool], value: float, reference: tp.Optional[float]) -> bool:
    """Returns True if value beats the reference according to the comparator.
    An unset reference (None) is beaten by any value, and so is a nan reference
    since no comparison with nan can succeed.
    """
    if reference is None or math.isnan(reference):
        return True
    return bool(comparator(value, reference))
