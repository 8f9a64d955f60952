# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pickle
import logging
import warnings
from numbers import Real
from pathlib import Path
import numpy as np
import swarmopt.common.typing as tp
from swarmopt.common import errors
from swarmopt.common import tools as sotools
from swarmopt.common.decorators import Registry
from . import fitness
from .swarm import Bounds
from .swarm import Swarm
from .swarm import check_count
from .swarm import get_random_state
from .swarm import initialize_swarm


logger = logging.getLogger(__name__)

COEFF_W = 0.50  # inertia coefficient, within [0.4, 0.9]
COEFF_CP = 2.05  # cognitive coefficient, a little bit above 2
COEFF_CG = 2.05  # social coefficient, same or similar value as the cognitive coefficient

registry: Registry["ConfiguredPSO"] = Registry()
X = tp.TypeVar("X", bound="ParticleSwarm")
_IterationCallBack = tp.Callable[["ParticleSwarm"], None]


class Coefficients(tp.NamedTuple):
    """Weights of the velocity update

    Parameters
    ----------
    omega: float
        inertia weight, how much the previous velocity is kept
    phip: float
        cognitive weight
    phig: float
        social weight, attraction toward the global best
    """

    omega: float = COEFF_W
    phip: float = COEFF_CP
    phig: float = COEFF_CG

    @classmethod
    def from_weights(cls, weights: tp.Any) -> "Coefficients":
        """Builds coefficients from an (omega, phip, phig) sequence, checking its length and types"""
        try:
            num = len(weights)
        except TypeError as e:
            raise errors.SwarmTypeError(
                f"Coefficients must be a sequence (omega, phip, phig) (got {weights!r})"
            ) from e
        if num != 3:
            raise errors.SwarmValueError(f"Expected 3 coefficients (omega, phip, phig) but got {num}: {weights!r}")
        for name, value in zip(cls._fields, weights):
            if isinstance(value, bool) or not isinstance(value, Real):
                raise errors.SwarmTypeError(f"Coefficient {name} must be a real number (got {value!r})")
        return cls(*(float(w) for w in weights))

    def check(self) -> "Coefficients":
        """Warns if the coefficients are outside of their usual ranges, and returns self"""
        if not 0.4 <= self.omega <= 0.9:
            warnings.warn(
                f"Inertia weight {self.omega} is outside of the usual range [0.4, 0.9]",
                errors.InefficientSettingsWarning,
            )
        for name, value in [("Cognitive", self.phip), ("Social", self.phig)]:
            if not 2.0 <= value <= 2.1:
                warnings.warn(
                    f"{name} weight {value} is outside of the usual range [2.0, 2.1]",
                    errors.InefficientSettingsWarning,
                )
        if abs(self.phip - self.phig) > 0.1:
            warnings.warn(
                f"Cognitive and social weights should be similar (got {self.phip} and {self.phig})",
                errors.InefficientSettingsWarning,
            )
        return self


class Recommendation(tp.NamedTuple):
    """Outcome of an optimization run

    Parameters
    ----------
    position: np.ndarray
        best position found (an owned copy)
    value: float or None
        objective value at this position (None if nothing was evaluated)
    num_iterations: int
        number of completed iterations
    num_evaluations: int
        number of calls to the objective function
    """

    position: np.ndarray
    value: tp.Optional[float]
    num_iterations: int
    num_evaluations: int


def _evaluate(objective: tp.Objective, x: np.ndarray) -> float:
    try:
        value = objective(x)
    except Exception as e:  # pylint: disable=broad-except
        raise errors.ObjectiveFunctionError(f"Objective function failed at {x.tolist()}: {e!r}") from e
    try:
        value = float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise errors.SwarmTypeError(
            f"Objective function must return a float but returned {value!r} (type: {type(value)})"
        ) from e
    if np.isnan(value) or np.isinf(value):
        warnings.warn(f"Objective function returned {value} at {x.tolist()}", errors.BadLossWarning)
    return value


def _is_better(better: tp.Comparator, value: float, reference: tp.Optional[float]) -> bool:
    try:
        return fitness.is_better(better, value, reference)
    except Exception as e:  # pylint: disable=broad-except
        raise errors.ObjectiveFunctionError(f"Fitness comparator failed on ({value}, {reference}): {e!r}") from e


def evaluate_swarm(swarm: Swarm, objective: tp.Objective, better: tp.Comparator = fitness.less_than) -> int:
    """Evaluates all particles in order, and updates their personal bests as well as the global best.

    Parameters
    ----------
    swarm: Swarm
        the swarm to evaluate, its best fields are updated inplace
    objective: callable
        function taking a position (np.ndarray of shape (dimension,)) and returning a float
    better: callable
        comparator returning True if its first argument is preferable to the second

    Returns
    -------
    int
        the number of evaluations of the objective function

    Note
    ----
    - the first evaluation of a particle always sets its personal best
    - the global best is only checked when the personal best improved, since it can
      never be better than the best personal best
    - positions and velocities are not modified
    """
    for index in range(swarm.particle_count):
        value = _evaluate(objective, swarm.positions[index].copy())
        if not swarm.evaluated[index] or _is_better(better, value, float(swarm.best_values[index])):
            swarm.record_personal_best(index, value)
            if _is_better(better, value, swarm.global_best_value):
                swarm.record_global_best(index, value)
                logger.debug("New global best %s from particle %s", value, index)
    return swarm.particle_count


def update_swarm(
    swarm: Swarm,
    bounds: Bounds,
    coefficients: Coefficients = Coefficients(),
    random_state: tp.RandomStateLike = None,
) -> None:
    """Moves all particles: updates velocities with the inertia, cognitive and social terms,
    advances the positions and clamps them to the bounds.

    Parameters
    ----------
    swarm: Swarm
        an evaluated swarm, updated inplace
    bounds: Bounds
        bounds to clamp the positions to
    coefficients: Coefficients
        weights of the update
    random_state: None, int or np.random.RandomState
        random source

    Note
    ----
    - the random factors rp and rg are drawn once per particle, and shared by all its dimensions
    - clamping is a hard clamp, velocities are neither reset nor reflected
    """
    if swarm.global_best_position is None:
        raise errors.UnsupportedOptimizerStateError("The swarm must be evaluated before it can be updated")
    if bounds.dimension != swarm.dimension:
        raise errors.SwarmValueError(
            f"Bounds of dimension {bounds.dimension} do not match the swarm dimension {swarm.dimension}"
        )
    rng = get_random_state(random_state)
    # interleaved (rp, rg) draws for each particle
    factors = rng.uniform(0.0, 1.0, size=(swarm.particle_count, 2))
    rp, rg = factors[:, :1], factors[:, 1:]
    diff = swarm.global_best_position - swarm.positions
    omega, phip, phig = coefficients
    swarm.velocities[:] = omega * swarm.velocities + (rp * phip) * diff + (rg * phig) * diff
    swarm.positions += swarm.velocities
    bounds.clip(swarm.positions)


class ParticleSwarm:  # pylint: disable=too-many-instance-attributes
    """Particle swarm optimizer over a box-bounded space.

    The run goes through the states "created", "initialized" (swarm built),
    "iterating" (each iteration evaluates the swarm then moves it) and "done"
    (the swarm is discarded and only the recommendation is kept).
    Each instance should be used for one run only.

    Parameters
    ----------
    bounds: Bounds or sequence of (min, max) pairs
        bounds of each dimension. The dimension of the optimization space is the number of pairs.
    particle_count: int
        number of particles of the swarm
    comparator: callable
        :code:`comparator(a, b)` must return True if value a is better than value b
        (defaults to minimization)
    coefficients: Coefficients or tuple (omega, phip, phig)
        weights of the velocity update
    random_state: None, int or np.random.RandomState
        random source. Provide a seeded random state for reproducible runs
    dimension: int (optional)
        expected dimension, checked against the number of bounds if provided
    """

    def __init__(
        self,
        bounds: tp.Union[Bounds, tp.BoundsLike],
        particle_count: int = 20,
        comparator: tp.Comparator = fitness.less_than,
        coefficients: tp.Optional[tp.Tuple[float, float, float]] = None,
        random_state: tp.RandomStateLike = None,
        dimension: tp.Optional[int] = None,
    ) -> None:
        self.bounds = Bounds.from_pairs(bounds)
        if dimension is not None and check_count(dimension, "dimension", 1) != self.bounds.dimension:
            raise errors.SwarmValueError(
                f"Expected dimension {dimension} but bounds have {self.bounds.dimension} dimension(s)"
            )
        self.particle_count = check_count(particle_count, "particle_count", 1)
        if not callable(comparator):
            raise errors.SwarmTypeError(f"comparator must be callable (got {comparator!r})")
        self.comparator = comparator
        weights = Coefficients() if coefficients is None else Coefficients.from_weights(coefficients)
        self.coefficients = weights.check()
        self._rng = get_random_state(random_state)
        self.name = self.__class__.__name__  # printed name in repr
        self.swarm: tp.Optional[Swarm] = None
        self._num_iterations = 0
        self._num_evaluations = 0
        self._recommendation: tp.Optional[Recommendation] = None
        self._callbacks: tp.Dict[str, tp.List[_IterationCallBack]] = {}

    @property
    def dimension(self) -> int:
        """int: Dimension of the optimization space."""
        return self.bounds.dimension

    @property
    def num_iterations(self) -> int:
        """int: Number of completed iterations."""
        return self._num_iterations

    @property
    def num_evaluations(self) -> int:
        """int: Number of calls to the objective function."""
        return self._num_evaluations

    @property
    def random_state(self) -> np.random.RandomState:
        return self._rng

    @property
    def state(self) -> str:
        """str: one of "created", "initialized", "iterating" and "done"."""
        if self._recommendation is not None:
            return "done"
        if self.swarm is None:
            return "created"
        return "iterating" if self._num_iterations else "initialized"

    def __repr__(self) -> str:
        return (
            f"Instance of {self.name}(dimension={self.dimension}, particle_count={self.particle_count}, "
            f"coefficients={tuple(self.coefficients)})"
        )

    def register_callback(self, name: str, callback: _IterationCallBack) -> None:
        """Add a callback method called after each iteration, with the optimizer as argument.
        This can be useful for custom logging or early stopping (see :code:`swarmopt.callbacks`).

        Parameters
        ----------
        name: str
            name of the event to register the callback for (only :code:`iteration` for now)
        callback: callable
            a callable taking the optimizer as argument
        """
        if name != "iteration":
            raise errors.SwarmValueError(f'Only "iteration" events can have callbacks (not {name})')
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def dump(self, filepath: tp.PathLike) -> None:
        """Pickles the optimizer into a file."""
        filepath = Path(filepath)
        with filepath.open("wb") as f:
            pickle.dump(self, f)

    @classmethod
    def load(cls: tp.Type[X], filepath: tp.PathLike) -> X:
        """Loads a pickle file and checks that it contains an optimizer of this class."""
        filepath = Path(filepath)
        with filepath.open("rb") as f:
            opt = pickle.load(f)
        assert isinstance(opt, cls), f"You should only load {cls} with this method (found {type(opt)})"
        return opt

    def initialize(self) -> Swarm:
        """Builds the swarm with random positions and velocities"""
        if self.state != "created":
            raise errors.UnsupportedOptimizerStateError(f"Cannot initialize an optimizer in state {self.state!r}")
        self.swarm = initialize_swarm(self.bounds, self.particle_count, self._rng)
        return self.swarm

    def step(self, objective: tp.Objective) -> None:
        """Runs one iteration: evaluation of all particles, then velocity and position updates.
        The swarm is initialized first if need be.
        """
        if self.state == "done":
            raise errors.UnsupportedOptimizerStateError("This optimizer has already finished its run")
        swarm = self.initialize() if self.swarm is None else self.swarm
        self._num_evaluations += evaluate_swarm(swarm, objective, self.comparator)
        update_swarm(swarm, self.bounds, self.coefficients, self._rng)
        self._num_iterations += 1
        for callback in self._callbacks.get("iteration", []):
            callback(self)

    def recommend(self) -> Recommendation:
        """Provides the best position found so far, as an owned copy

        Note
        ----
        If no evaluation was performed yet, the position is the initial best position
        of the first particle and the value is None.
        """
        if self._recommendation is not None:
            return self._recommendation._replace(position=self._recommendation.position.copy())
        if self.swarm is None:
            raise errors.UnsupportedOptimizerStateError("The swarm is not initialized yet")
        if self.swarm.global_best_position is None:
            position = self.swarm.best_positions[0].copy()
        else:
            position = self.swarm.global_best_position.copy()
        return Recommendation(position, self.swarm.global_best_value, self._num_iterations, self._num_evaluations)

    def optimize(self, objective: tp.Objective, max_iterations: int = 1000) -> Recommendation:
        """Optimization procedure

        Parameters
        ----------
        objective: callable
            function taking a position (np.ndarray of shape (dimension,)) and returning a float
        max_iterations: int
            number of iterations (0 is accepted: the objective is then never called)

        Returns
        -------
        Recommendation
            best position (owned copy) and its value, along with the number of iterations and evaluations

        Note
        ----
        An iteration callback can stop the run early by raising :code:`errors.SwarmEarlyStopping`.
        """
        max_iterations = check_count(max_iterations, "max_iterations", 0)
        if not callable(objective):
            raise errors.SwarmTypeError(f"objective must be callable (got {objective!r})")
        if self.state != "created":
            raise errors.UnsupportedOptimizerStateError("Each optimizer instance should be used for one run only")
        self.initialize()
        logger.info("Running %s for %s iterations", self, max_iterations)
        try:
            for _ in range(max_iterations):
                self.step(objective)
        except errors.SwarmEarlyStopping as e:
            logger.info("Early stopping after %s iterations: %s", self._num_iterations, e)
        recommendation = self.recommend()
        self._recommendation = recommendation
        self.swarm = None
        logger.info(
            "Finished after %s iterations and %s evaluations, best value is %s",
            recommendation.num_iterations,
            recommendation.num_evaluations,
            recommendation.value,
        )
        return recommendation._replace(position=recommendation.position.copy())


class ConfiguredPSO:
    """Creates particle swarm optimizers with a given configuration.

    Parameters
    ----------
    particle_count: int
        number of particles of the swarm
    omega: float
        inertia weight
    phip: float
        cognitive weight
    phig: float
        social weight

    Example
    -------
    >>> optimizer = ConfiguredPSO(particle_count=40)(bounds=[(-5, 5), (-5, 5)], random_state=12)
    >>> recommendation = optimizer.optimize(objective, max_iterations=100)

    Note
    ----
    This provides a default repr which can be bypassed through set_name
    """

    def __init__(
        self,
        particle_count: int = 20,
        omega: float = COEFF_W,
        phip: float = COEFF_CP,
        phig: float = COEFF_CG,
    ) -> None:
        self._config = dict(
            particle_count=check_count(particle_count, "particle_count", 1),
            omega=omega,
            phip=phip,
            phig=phig,
        )
        Coefficients.from_weights((omega, phip, phig)).check()
        diff = sotools.different_from_defaults(instance=self, instance_dict=self._config, check_mismatches=True)
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        self.name = f"{self.__class__.__name__}({params})"

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(self._config)

    def __call__(
        self,
        bounds: tp.Union[Bounds, tp.BoundsLike],
        comparator: tp.Comparator = fitness.less_than,
        random_state: tp.RandomStateLike = None,
    ) -> ParticleSwarm:
        """Creates an optimizer for the given bounds

        Parameters
        ----------
        bounds: Bounds or sequence of (min, max) pairs
            bounds of each dimension
        comparator: callable
            comparator returning True if its first argument is preferable to the second
        random_state: None, int or np.random.RandomState
            random source
        """
        with warnings.catch_warnings():  # settings were already checked at configuration time
            warnings.simplefilter("ignore", errors.InefficientSettingsWarning)
            run = ParticleSwarm(
                bounds,
                particle_count=self._config["particle_count"],
                comparator=comparator,
                coefficients=Coefficients(self._config["omega"], self._config["phip"], self._config["phig"]),
                random_state=random_state,
            )
        run.name = self.name
        return run

    def __repr__(self) -> str:
        return self.name

    def set_name(self, name: str, register: bool = False) -> "ConfiguredPSO":
        """Set a new representation for the instance"""
        self.name = name
        if register:
            registry.register_name(name, self)
        return self

    def __eq__(self, other: tp.Any) -> tp.Any:
        if self.__class__ == other.__class__:
            if self._config == other._config:
                return True
        return False


def optimize(
    objective: tp.Objective,
    bounds: tp.Union[Bounds, tp.BoundsLike],
    comparator: tp.Comparator = fitness.less_than,
    particle_count: int = 20,
    max_iterations: int = 1000,
    dimension: tp.Optional[int] = None,
    coefficients: tp.Optional[tp.Tuple[float, float, float]] = None,
    random_state: tp.RandomStateLike = None,
) -> Recommendation:
    """Runs a particle swarm optimization and returns its recommendation.
    See :code:`ParticleSwarm` for the description of the parameters.
    """
    optimizer = ParticleSwarm(
        bounds,
        particle_count=particle_count,
        comparator=comparator,
        coefficients=coefficients,
        random_state=random_state,
        dimension=dimension,
    )
    return optimizer.optimize(objective, max_iterations=max_iterations)


PSO = ConfiguredPSO().set_name("PSO", register=True)
LowInertiaPSO = ConfiguredPSO(omega=0.4).set_name("LowInertiaPSO", register=True)
HighInertiaPSO = ConfiguredPSO(omega=0.9).set_name("HighInertiaPSO", register=True)
