# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
from . import tools


class _Config:
    def __init__(self, size: int = 20, omega: float = 0.5, name: str = "blublu") -> None:
        self.size = size
        self.omega = omega
        self.name = name
        self._private = 12


def test_different_from_defaults() -> None:
    config = _Config(size=40, name="blublu")
    assert tools.different_from_defaults(instance=config) == {"size": 40}
    assert tools.different_from_defaults(instance=config, instance_dict={"size": 20, "omega": 0.9}) == {"omega": 0.9}


def test_different_from_defaults_mismatch() -> None:
    config = _Config()
    with pytest.raises(RuntimeError, match="Mismatch"):
        tools.different_from_defaults(instance=config, instance_dict={"size": 12}, check_mismatches=True)
    output = tools.different_from_defaults(
        instance=config, instance_dict={"size": 12, "omega": 0.5, "name": "x"}, check_mismatches=True
    )
    assert output == {"size": 12, "name": "x"}
