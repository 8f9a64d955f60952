# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import Type as Type
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence
from typing import NamedTuple as NamedTuple
from typing import MutableMapping as MutableMapping

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from typing import Hashable as Hashable
from pathlib import Path as Path
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]
FloatLoss = float
BoundPair = Tuple[float, float]
BoundsLike = Union[Sequence[BoundPair], Sequence[Sequence[float]], _np.ndarray]
Comparator = Callable[[float, float], bool]
RandomStateLike = Optional[Union[int, _np.random.RandomState]]


# %% Protocol definitions for callbacks


class Objective(Protocol):
    # pylint: disable=pointless-statement, unused-argument

    def __call__(self, x: _np.ndarray) -> float:
        ...
