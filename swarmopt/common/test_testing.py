# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from . import testing


def test_printed_assert_equal() -> None:
    testing.printed_assert_equal(0, 0)
    np.testing.assert_raises(AssertionError, testing.printed_assert_equal, 0, 1)


@testing.parametrized(
    inside=([[0.0, 1.0], [2.0, -1.0]], ""),
    on_bounds=([[-1.0, 2.0]], ""),
    below=([[0.0, 1.0], [-3.0, 0.0]], "lower bound violated at (particle, dimension): [(1, 0)]"),
    above=([[0.0, 3.0]], "upper bound violated at (particle, dimension): [(0, 1)]"),
)
def test_assert_within_bounds(positions: tp.List[tp.List[float]], message: str) -> None:
    lower, upper = [-1.0, -1.0], [2.0, 2.0]
    if not message:
        testing.assert_within_bounds(np.array(positions), lower, upper)
    else:
        with pytest.raises(AssertionError, match=r"out of bounds") as record:
            testing.assert_within_bounds(np.array(positions), lower, upper)
        assert message in str(record.value)


@testing.parametrized(
    single=(12,),
    other=(3,),
)
def test_parametrized_single_argument(value: int) -> None:
    assert value in (3, 12)
