# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
from pathlib import Path
import pytest
import numpy as np
import swarmopt.common.typing as tp
from swarmopt.functions import corefuncs
from . import fitness
from . import pso
from . import callbacks


class _CountingObjective:
    def __init__(self, value: float = 5.0) -> None:
        self.num_calls = 0
        self.value = value

    def __call__(self, x: np.ndarray) -> float:
        self.num_calls += 1
        return self.value


def test_log_parameters(tmp_path: Path) -> None:
    filepath = tmp_path / "logs" / "logs.txt"
    optimizer = pso.registry["HighInertiaPSO"]([(-1, 1)] * 3, random_state=12)
    optimizer.register_callback("iteration", callbacks.ParametersLogger(filepath, append=False))
    optimizer.optimize(corefuncs.sphere, max_iterations=6)
    logger = callbacks.ParametersLogger(filepath)
    logs = logger.load()
    assert len(logs) == 6
    last = logs[-1]
    assert last["#optimizer"] == "HighInertiaPSO"
    assert last["#dimension"] == 3
    assert last["#particle-count"] == 20
    assert last["#omega"] == 0.9
    assert last["#num-iterations"] == 6
    assert last["#num-evaluations"] == 120
    assert len(last["position"]) == 3
    assert last["#loss"] == corefuncs.sphere(np.array(last["position"]))
    assert all(a["#loss"] >= b["#loss"] for a, b in zip(logs, logs[1:]))
    # deletion
    logger = callbacks.ParametersLogger(filepath, append=False)
    assert not logger.load()


def test_dump_callback(tmp_path: Path) -> None:
    filepath = tmp_path / "pickle.pkl"
    optimizer = pso.ParticleSwarm([(-1, 1)] * 2, particle_count=4, random_state=12)
    optimizer.register_callback("iteration", callbacks.OptimizerDump(filepath))
    optimizer.initialize()
    assert not filepath.exists()
    optimizer.step(corefuncs.sphere)
    assert filepath.exists()
    loaded = pso.ParticleSwarm.load(filepath)
    assert loaded.num_iterations == 1


def test_progressbar_dump(tmp_path: Path) -> None:
    pytest.importorskip("tqdm")
    filepath = tmp_path / "pickle.pkl"
    optimizer = pso.ParticleSwarm([(-1, 1)] * 2, particle_count=4, random_state=12)
    optimizer.register_callback("iteration", callbacks.ProgressBar())
    for _ in range(8):
        optimizer.step(corefuncs.sphere)
    optimizer.dump(filepath)
    # should keep working after dump
    optimizer.step(corefuncs.sphere)
    # and be reloadable
    optimizer = pso.ParticleSwarm.load(filepath)
    for _ in range(4):
        optimizer.step(corefuncs.sphere)
    assert optimizer.num_iterations == 12


def test_early_stopping() -> None:
    func = _CountingObjective()
    optimizer = pso.ParticleSwarm([(-1, 1)] * 2, particle_count=5, random_state=12)
    optimizer.register_callback("iteration", callbacks.EarlyStopping(lambda opt: opt.num_iterations > 3))
    optimizer.register_callback("iteration", callbacks.EarlyStopping.timer(100))  # should not get triggered
    recom = optimizer.optimize(func, max_iterations=100)
    assert recom.num_iterations == 4
    assert func.num_calls == 20
    assert optimizer.state == "done"
    # below function is included in the docstring of EarlyStopping
    optimizer = pso.ParticleSwarm([(-1, 1)] * 2, random_state=12)
    optimizer.register_callback("iteration", callbacks.EarlyStopping(lambda opt: opt.recommend().value < 12))
    recom = optimizer.optimize(corefuncs.sphere, max_iterations=100)
    assert recom.num_iterations == 1


@pytest.mark.parametrize("comparator", [fitness.less_than, fitness.greater_than])  # type: ignore
def test_no_improvement_stopper(comparator: tp.Comparator) -> None:
    func = _CountingObjective(5.0)
    optimizer = pso.ParticleSwarm([(-1, 1)] * 2, particle_count=3, comparator=comparator, random_state=12)
    no_imp_window = 7
    optimizer.register_callback("iteration", callbacks.EarlyStopping.no_improvement_stopper(no_imp_window))
    recom = optimizer.optimize(func, max_iterations=100)
    assert recom.num_iterations == no_imp_window + 2
    assert func.num_calls == 3 * (no_imp_window + 2)


def test_duration_criterion() -> None:
    optim = pso.ParticleSwarm([(-1, 1)] * 2, random_state=12)
    crit = callbacks._DurationCriterion(0.01)
    assert not crit(optim)
    assert not crit(optim)
    assert not crit(optim)
    time.sleep(0.01)
    assert crit(optim)


def test_optimization_logger(caplog) -> None:  # type: ignore
    logger = logging.getLogger(__name__)
    optimizer = pso.ParticleSwarm([(-1, 1)] * 2, particle_count=4, random_state=12)
    optimizer.register_callback(
        "iteration",
        callbacks.OptimizationLogger(
            logger=logger, log_level=logging.INFO, log_interval_iterations=10, log_interval_seconds=60
        ),
    )
    with caplog.at_level(logging.INFO):
        optimizer.optimize(corefuncs.sphere, max_iterations=12)
    assert "After 10 iterations, recommendation is" in caplog.text
    assert "After 1 iterations" not in caplog.text
    assert "Finished after 12 iterations and 48 evaluations" in caplog.text


def test_optimization_printer(capsys) -> None:  # type: ignore
    optimizer = pso.ParticleSwarm([(-1, 1)] * 2, particle_count=4, random_state=12)
    optimizer.register_callback("iteration", callbacks.OptimizationPrinter(print_interval_iterations=5))
    optimizer.optimize(corefuncs.sphere, max_iterations=12)
    out = capsys.readouterr().out
    assert "After 5 iterations, recommendation is" in out
    assert "After 10 iterations, recommendation is" in out
    assert "After 12 iterations" not in out
