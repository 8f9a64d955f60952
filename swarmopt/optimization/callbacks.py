# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import json
import time
import warnings
import datetime
import logging
from pathlib import Path
import numpy as np
import swarmopt.common.typing as tp
from swarmopt.common import errors
from . import pso

global_logger = logging.getLogger(__name__)


class OptimizationPrinter:
    """Printer to register as callback in an optimizer, for printing
    best point regularly.

    Parameters
    ----------
    print_interval_iterations: int
        max number of iterations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_iterations: int = 1, print_interval_seconds: float = 60.0) -> None:
        assert print_interval_iterations > 0
        assert print_interval_seconds > 0
        self._print_interval_iterations = int(print_interval_iterations)
        self._print_interval_seconds = print_interval_seconds
        self._next_iteration = self._print_interval_iterations
        self._next_time = time.time() + print_interval_seconds

    def __call__(self, optimizer: pso.ParticleSwarm) -> None:
        if time.time() >= self._next_time or optimizer.num_iterations >= self._next_iteration:
            self._next_time = time.time() + self._print_interval_seconds
            self._next_iteration = optimizer.num_iterations + self._print_interval_iterations
            recom = optimizer.recommend()
            print(f"After {optimizer.num_iterations} iterations, recommendation is {recom.position} (value: {recom.value})")


class OptimizationLogger:
    """Logger to register as callback in an optimizer, for logging
    best point regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_iterations: int
        max number of iterations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_iterations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_iterations > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_iterations = int(log_interval_iterations)
        self._log_interval_seconds = log_interval_seconds
        self._next_iteration = self._log_interval_iterations
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, optimizer: pso.ParticleSwarm) -> None:
        if time.time() >= self._next_time or optimizer.num_iterations >= self._next_iteration:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_iteration = optimizer.num_iterations + self._log_interval_iterations
            recom = optimizer.recommend()
            self._logger.log(
                self._log_level,
                "After %s iterations, recommendation is %s with value %s",
                optimizer.num_iterations,
                recom.position,
                recom.value,
            )


class ParametersLogger:
    """Logs the state of the run into a file at each iteration,
    as one json dict per line.

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to
    append: bool
        whether to append the file (otherwise it replaces it)

    Example
    -------

    .. code-block:: python

        logger = ParametersLogger(filepath)
        optimizer.register_callback("iteration",  logger)
        optimizer.optimize(objective, max_iterations=100)
        list_of_dict_of_data = logger.load()

    Note
    ----
    Arrays are converted to lists
    """

    def __init__(self, filepath: tp.PathLike, append: bool = True) -> None:
        self._session = datetime.datetime.now().strftime("%y-%m-%d %H:%M:%S")
        self._filepath = Path(filepath)
        if self._filepath.exists() and not append:
            self._filepath.unlink()
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, optimizer: pso.ParticleSwarm) -> None:
        recom = optimizer.recommend()
        omega, phip, phig = optimizer.coefficients
        data: tp.Dict[str, tp.Any] = {
            "#optimizer": optimizer.name,
            "#session": self._session,
            "#dimension": optimizer.dimension,
            "#particle-count": optimizer.particle_count,
            "#omega": omega,
            "#phip": phip,
            "#phig": phig,
            "#num-iterations": optimizer.num_iterations,
            "#num-evaluations": optimizer.num_evaluations,
            "#loss": recom.value,
            "position": recom.position.tolist(),
        }
        try:  # avoid bugging as much as possible
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")
        except Exception as e:  # pylint: disable=broad-except
            warnings.warn(f"Failing to json data: {e}")

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file"""
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data


class OptimizerDump:
    """Dumps the optimizer to a pickle file at every call.

    Parameters
    ----------
    filepath: str or Path
        path to the pickle file
    """

    def __init__(self, filepath: tp.PathLike) -> None:
        self._filepath = filepath

    def __call__(self, optimizer: pso.ParticleSwarm) -> None:
        optimizer.dump(self._filepath)


class ProgressBar:
    """Progress bar to register as callback in an optimizer

    Parameters
    ----------
    total: int (optional)
        expected number of iterations
    """

    def __init__(self, total: tp.Optional[int] = None) -> None:
        self._progress_bar: tp.Any = None
        self._total = total
        self._current = 0

    def __call__(self, optimizer: pso.ParticleSwarm) -> None:
        if self._progress_bar is None:
            # pylint: disable=import-outside-toplevel
            try:
                from tqdm import tqdm  # Inline import to avoid additional dependency
            except ImportError as e:
                raise ImportError(
                    f"{self.__class__.__name__} requires tqdm which is not installed by default "
                    "(pip install tqdm)"
                ) from e
            self._progress_bar = tqdm(total=self._total)
            self._progress_bar.update(self._current)
        self._progress_bar.update(1)
        self._current += 1

    def __getstate__(self) -> tp.Dict[str, tp.Any]:
        """Used for pickling (tqdm is not picklable)"""
        state = dict(self.__dict__)
        state["_progress_bar"] = None
        return state


class EarlyStopping:
    """Callback for stopping the :code:`optimize` method before all iterations are performed.

    Parameters
    ----------
    stopping_criterion: func(optimizer) -> bool
        function that takes the current optimizer as input and returns True
        if the optimization must be stopped

    Example
    -------
    In the following code, the :code:`optimize` method will be stopped after the 4th iteration

    >>> early_stopping = swarmopt.callbacks.EarlyStopping(lambda opt: opt.num_iterations > 3)
    >>> optimizer.register_callback("iteration", early_stopping)
    >>> optimizer.optimize(objective, max_iterations=100)

    Stopping when the best value is below 12:

    >>> early_stopping = swarmopt.callbacks.EarlyStopping(lambda opt: opt.recommend().value < 12)
    """

    def __init__(self, stopping_criterion: tp.Callable[[pso.ParticleSwarm], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, optimizer: pso.ParticleSwarm) -> None:
        if self.stopping_criterion(optimizer):
            raise errors.SwarmEarlyStopping("Early stopping criterion is reached")

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopping":
        """Early stop when max_duration seconds has been reached (from the first iteration)"""
        return cls(_DurationCriterion(max_duration))

    @classmethod
    def no_improvement_stopper(cls, tolerance_window: int) -> "EarlyStopping":
        """Early stop when the best value did not improve during tolerance_window iterations"""
        return cls(_ValueImprovementToleranceCriterion(tolerance_window))


class _DurationCriterion:
    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, optimizer: pso.ParticleSwarm) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration


class _ValueImprovementToleranceCriterion:
    def __init__(self, tolerance_window: int) -> None:
        self._tolerance_window: int = tolerance_window
        self._best_value: tp.Optional[float] = None
        self._tolerance_count: int = 0

    def __call__(self, optimizer: pso.ParticleSwarm) -> bool:
        value = optimizer.recommend().value
        if value is None:
            return False
        if self._best_value is None:
            self._best_value = value
            return False
        if optimizer.comparator(value, self._best_value):
            self._tolerance_count = 0
            self._best_value = value
        else:
            self._tolerance_count += 1
        return self._tolerance_count > self._tolerance_window
