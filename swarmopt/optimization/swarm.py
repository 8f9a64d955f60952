# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Swarm data model: box bounds, particles and the swarm storage, as well as
the initializer building a random swarm inside the bounds.
"""
import logging
from numbers import Integral
import numpy as np
import swarmopt.common.typing as tp
from swarmopt.common import errors


logger = logging.getLogger(__name__)
_PROCESS_RANDOM_STATE: tp.Optional[np.random.RandomState] = None


def get_random_state(random_state: tp.RandomStateLike = None) -> np.random.RandomState:
    """Provides the random state to pull from.

    Parameters
    ----------
    random_state: None, int or np.random.RandomState
        - None: a process-wide random state, seeded once on first use and never reseeded
        - int: seed of a new random state
        - np.random.RandomState: used as is (it is owned by the caller)
    """
    global _PROCESS_RANDOM_STATE  # pylint: disable=global-statement
    if isinstance(random_state, np.random.RandomState):
        return random_state
    if random_state is None:
        if _PROCESS_RANDOM_STATE is None:
            seed = np.random.randint(2 ** 32, dtype=np.uint32)
            _PROCESS_RANDOM_STATE = np.random.RandomState(seed)
        return _PROCESS_RANDOM_STATE
    if isinstance(random_state, Integral) and not isinstance(random_state, bool):
        return np.random.RandomState(int(random_state))
    raise errors.SwarmTypeError(
        f"random_state must be None, an int or a np.random.RandomState (got {random_state!r})"
    )


def check_count(value: tp.Any, name: str, minimum: int) -> int:
    """Checks that value is an integer greater or equal to minimum, and returns it as an int"""
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise errors.SwarmTypeError(f"{name} must be an integer (got {value!r})")
    if value < minimum:
        raise errors.SwarmValueError(f"{name} must be at least {minimum} (got {value})")
    return int(value)


class Bounds:
    """Immutable box bounds, one (min, max) pair per dimension.

    Parameters
    ----------
    lower: array-like
        lower bound of each dimension
    upper: array-like
        upper bound of each dimension

    Note
    ----
    Use :code:`Bounds.from_pairs([(min0, max0), (min1, max1)])` to create bounds
    from a sequence of pairs.
    """

    def __init__(self, lower: tp.ArrayLike, upper: tp.ArrayLike) -> None:
        try:
            self._lower = np.array(lower, dtype=float, ndmin=1)
            self._upper = np.array(upper, dtype=float, ndmin=1)
        except (TypeError, ValueError) as e:
            raise errors.SwarmValueError(f"Bounds must be numeric (got {lower!r} and {upper!r})") from e
        if self._lower.ndim != 1 or self._lower.shape != self._upper.shape:
            raise errors.SwarmValueError(
                f"Lower and upper bounds must be 1d with the same shape (got {self._lower.shape} and {self._upper.shape})"
            )
        if not self._lower.size:
            raise errors.SwarmValueError("No variable to optimize: bounds are empty.")
        if not (np.all(np.isfinite(self._lower)) and np.all(np.isfinite(self._upper))):
            raise errors.SwarmValueError("Bounds must be finite.")
        inverted = np.flatnonzero(self._lower > self._upper)
        if inverted.size:
            raise errors.SwarmValueError(f"Lower bound is greater than upper bound for dimension(s) {inverted.tolist()}")
        for array in (self._lower, self._upper):
            array.setflags(write=False)

    @classmethod
    def from_pairs(cls, pairs: tp.BoundsLike) -> "Bounds":
        """Creates bounds from a sequence of (min, max) pairs"""
        if isinstance(pairs, cls):
            return pairs
        try:
            array = np.array(pairs, dtype=float)
        except (TypeError, ValueError) as e:
            raise errors.SwarmValueError(f"Bounds must be a sequence of (min, max) pairs (got {pairs!r})") from e
        if not array.size:
            raise errors.SwarmValueError("No variable to optimize: bounds are empty.")
        if array.ndim != 2 or array.shape[1] != 2:
            raise errors.SwarmValueError(f"Bounds must be a sequence of (min, max) pairs (got shape {array.shape})")
        return cls(array[:, 0], array[:, 1])

    @property
    def dimension(self) -> int:
        """int: number of free coordinates"""
        return self._lower.size

    @property
    def lower(self) -> np.ndarray:
        return self._lower

    @property
    def upper(self) -> np.ndarray:
        return self._upper

    def sample(self, random_state: np.random.RandomState, num: int) -> np.ndarray:
        """Samples num points uniformly inside the bounds, as an array of shape (num, dimension)"""
        return random_state.uniform(self._lower, self._upper, size=(num, self.dimension))

    def clip(self, data: np.ndarray) -> np.ndarray:
        """Clips the data inplace to the bounds (hard clamp) and returns it"""
        return np.clip(data, self._lower, self._upper, out=data)

    def contains(self, data: np.ndarray) -> bool:
        return bool(np.all(data >= self._lower) and np.all(data <= self._upper))

    def to_pairs(self) -> tp.List[tp.Tuple[float, float]]:
        return [(float(a), float(b)) for a, b in zip(self._lower, self._upper)]

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Bounds):
            return False
        return bool(np.array_equal(self._lower, other._lower) and np.array_equal(self._upper, other._upper))

    def __repr__(self) -> str:
        return f"Bounds({self.to_pairs()})"


class Particle:
    """View on one particle of a swarm. It does not hold any data itself, all fields
    are read from (and written to) the storage of the swarm.
    """

    def __init__(self, swarm: "Swarm", index: int) -> None:
        self._swarm = swarm
        self.index = index

    @property
    def velocity(self) -> np.ndarray:
        return self._swarm.velocities[self.index]

    @property
    def position(self) -> np.ndarray:
        return self._swarm.positions[self.index]

    @property
    def best_position(self) -> np.ndarray:
        return self._swarm.best_positions[self.index]

    @property
    def best_value(self) -> tp.Optional[float]:
        """float or None: best value found by the particle (None before its first evaluation)"""
        if not self._swarm.evaluated[self.index]:
            return None
        return float(self._swarm.best_values[self.index])

    def __repr__(self) -> str:
        return f"Particle(index={self.index}, position={self.position.tolist()}, best_value={self.best_value})"


class Swarm:
    """Population of particles for one optimization run.

    The data of all particles is held in contiguous arrays of shape (particle_count, dimension),
    allocated at once in the constructor. Particle i is row i of each array.

    Parameters
    ----------
    particle_count: int
        number of particles
    dimension: int
        dimension of the optimization space

    Note
    ----
    :code:`global_best_position` is always a copy, never a view on a particle row.
    """

    def __init__(self, particle_count: int, dimension: int) -> None:
        particle_count = check_count(particle_count, "particle_count", 1)
        dimension = check_count(dimension, "dimension", 1)
        try:
            storage = np.empty((3, particle_count, dimension), dtype=float)
            best_values = np.full(particle_count, np.nan)
            evaluated = np.zeros(particle_count, dtype=bool)
            global_best_position = np.empty(dimension, dtype=float)
        except (MemoryError, ValueError) as e:  # numpy raises ValueError for sizes overflowing
            raise errors.SwarmMemoryError(
                f"Could not allocate a swarm of {particle_count} particles in dimension {dimension}"
            ) from e
        self.velocities, self.positions, self.best_positions = storage
        self.best_values = best_values
        self.evaluated = evaluated
        self._global_best_position = global_best_position
        self._global_best_value: tp.Optional[float] = None

    @property
    def particle_count(self) -> int:
        return self.positions.shape[0]

    @property
    def dimension(self) -> int:
        return self.positions.shape[1]

    @property
    def global_best_value(self) -> tp.Optional[float]:
        """float or None: best value found by the swarm (None before the first evaluation)"""
        return self._global_best_value

    @property
    def global_best_position(self) -> tp.Optional[np.ndarray]:
        """np.ndarray or None: position of the global best (None before the first evaluation)"""
        if self._global_best_value is None:
            return None
        return self._global_best_position

    def record_personal_best(self, index: int, value: float) -> None:
        """Records the current position of particle index as its best position"""
        self.best_values[index] = value
        self.best_positions[index] = self.positions[index]  # copies the row
        self.evaluated[index] = True

    def record_global_best(self, index: int, value: float) -> None:
        """Records the current position of particle index as the global best position"""
        self._global_best_value = float(value)
        self._global_best_position[:] = self.positions[index]

    def __len__(self) -> int:
        return self.particle_count

    def __getitem__(self, index: int) -> Particle:
        if not -self.particle_count <= index < self.particle_count:
            raise IndexError(f"Particle index {index} is out of range for a swarm of {self.particle_count}")
        return Particle(self, index % self.particle_count)

    def __iter__(self) -> tp.Iterator[Particle]:
        return (Particle(self, k) for k in range(self.particle_count))

    def __repr__(self) -> str:
        return (
            f"Swarm(particle_count={self.particle_count}, dimension={self.dimension}, "
            f"global_best_value={self.global_best_value})"
        )


def initialize_swarm(
    bounds: tp.Union[Bounds, tp.BoundsLike],
    particle_count: int,
    random_state: tp.RandomStateLike = None,
) -> Swarm:
    """Creates a swarm of particle_count particles with random velocities in [-1, 1]
    and random positions uniformly sampled inside the bounds.
    Best positions are initialized to the positions, best values are left unset.

    Parameters
    ----------
    bounds: Bounds or sequence of (min, max) pairs
        box bounds of the optimization space, one pair per dimension
    particle_count: int
        number of particles (at least 1)
    random_state: None, int or np.random.RandomState
        random source (see :code:`get_random_state`)
    """
    bounds = Bounds.from_pairs(bounds)
    particle_count = check_count(particle_count, "particle_count", 1)
    rng = get_random_state(random_state)
    swarm = Swarm(particle_count, bounds.dimension)
    try:
        swarm.velocities[:] = rng.uniform(-1.0, 1.0, size=(particle_count, bounds.dimension))
        swarm.positions[:] = bounds.sample(rng, particle_count)
    except (MemoryError, ValueError) as e:
        raise errors.SwarmMemoryError(
            f"Could not draw the initial state of {particle_count} particles in dimension {bounds.dimension}"
        ) from e
    bounds.clip(swarm.positions)
    swarm.best_positions[:] = swarm.positions
    logger.debug("Initialized %s with %s", swarm, bounds)
    return swarm
