import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple, Union

import numpy as np
from scipy.spatial.transform import Rotation
from matplotlib.colors import to_rgb

from plant_3d.colors import RGB, TRUNK_COLOR, plant_color
from plant_3d.grammar import PlantGrammar

logger = logging.getLogger(__name__)

# Reference axis: the turtle starts pointing up and every segment mesh is
# modelled along it before being rotated onto the segment direction
UP = np.array([0.0, 1.0, 0.0])
# Perpendicular to UP, used when a direction is anti-parallel to it
FALLBACK_AXIS = np.array([1.0, 0.0, 0.0])
EPS = 1e-9

TURN_DEPTH = 0.1
BRANCH_DEPTH = 0.2

Vector = Tuple[float, float, float]
AxisSampler = Callable[[np.random.Generator], np.ndarray]


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.flags.writeable = False
    return arr


def normalize(vector: np.ndarray, fallback: np.ndarray = UP) -> np.ndarray:
    """Unit vector along `vector`, or `fallback` when it has no length."""
    norm = np.linalg.norm(vector)
    if norm < EPS:
        return np.array(fallback, dtype=float)
    return np.asarray(vector, dtype=float) / norm


def random_unit_axis(rng: np.random.Generator) -> np.ndarray:
    """Uniformly drawn axis in the unit cube around the origin, normalized."""
    return normalize(rng.random(3) - 0.5)


def rotate_about_axis(vector: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotate `vector` by `angle` radians around `axis` (right-hand rule)."""
    # apply() needs a writable buffer; state vectors are read-only
    return Rotation.from_rotvec(normalize(axis) * angle).apply(np.array(vector, dtype=float))


def rotation_from_up(direction: np.ndarray) -> Rotation:
    """
    Rotation taking the reference UP axis onto `direction`.

    The axis is UP x direction and the angle arccos(UP . direction). When the
    two are parallel the cross product vanishes: the result is the identity
    for the same orientation and a half turn about FALLBACK_AXIS for the
    opposite one.
    """
    direction = normalize(direction)
    cos_angle = float(np.clip(np.dot(UP, direction), -1.0, 1.0))
    axis = np.cross(UP, direction)
    norm = np.linalg.norm(axis)
    if norm < EPS:
        if cos_angle > 0:
            return Rotation.identity()
        return Rotation.from_rotvec(np.pi * FALLBACK_AXIS)
    return Rotation.from_rotvec(axis / norm * np.arccos(cos_angle))


@dataclass(frozen=True, eq=False)
class TurtleState:
    """
    Snapshot of the turtle cursor.

    Instances are values: the vectors are private read-only copies, and
    every transition builds a new state with dataclasses.replace.
    """
    position: np.ndarray
    direction: np.ndarray
    length: float
    angle: float
    color: RGB
    radius: float
    depth: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "position", _frozen(self.position))
        object.__setattr__(self, "direction", _frozen(self.direction))
        object.__setattr__(self, "color", tuple(float(c) for c in self.color))

    def copy(self) -> "TurtleState":
        return replace(self)

    def __eq__(self, other):
        if not isinstance(other, TurtleState):
            return NotImplemented
        return (
            np.array_equal(self.position, other.position)
            and np.array_equal(self.direction, other.direction)
            and self.length == other.length
            and self.angle == other.angle
            and self.color == other.color
            and self.radius == other.radius
            and self.depth == other.depth
        )

    __hash__ = None


class TurtleStack:
    """LIFO of independent turtle snapshots."""

    def __init__(self):
        self._states: List[TurtleState] = []

    def push(self, state: TurtleState):
        self._states.append(state.copy())

    def pop(self) -> Optional[TurtleState]:
        """Most recent snapshot, or None when nothing was saved."""
        if not self._states:
            return None
        return self._states.pop().copy()

    def __len__(self):
        return len(self._states)


@dataclass(frozen=True)
class BranchDescriptor:
    """
    One drawable tapered cylinder.

    The segment starts at `start` and ends at `end`. `orientation` is the
    quaternion (x, y, z, w) rotating UP onto the segment direction, so a
    renderer can model the cylinder along UP and rotate it into place.
    """
    start: Vector
    end: Vector
    orientation: Tuple[float, float, float, float]
    length: float
    radius_start: float
    radius_end: float
    color: RGB
    depth: float

    @property
    def center(self) -> np.ndarray:
        return (np.asarray(self.start) + np.asarray(self.end)) / 2.0

    @property
    def direction(self) -> np.ndarray:
        return normalize(np.asarray(self.end) - np.asarray(self.start))

    @property
    def rotation(self) -> Rotation:
        return Rotation.from_quat(self.orientation)


class TurtleInterpreter3D:
    """
    Interpret an expanded L-system string as 3D turtle commands.

    Commands:
        F: Move forward and emit a branch segment
        +/-: Turn by +/- angle around a freshly drawn random axis
        [: Save state, then open a thinner, shorter, slightly nudged branch
        ]: Restore the last saved state (if any), then step depth back
        Anything else is ignored.

    Args:
        grammar: Plant configuration providing lengths, angles and jitters
        rng: numpy Generator or seed used for every random draw
        axis_sampler: Callable returning the turn axis; defaults to a random unit axis
        time: Animation time passed to the color function
    """

    def __init__(
        self,
        grammar: PlantGrammar,
        rng: Union[np.random.Generator, int, None] = None,
        axis_sampler: Optional[AxisSampler] = None,
        time: float = 0.0,
    ):
        self.grammar = grammar
        if isinstance(rng, np.random.Generator):
            self.rng = rng
        else:
            self.rng = np.random.default_rng(rng)
        self.axis_sampler = axis_sampler or random_unit_axis
        self.time = time

    def initial_state(self) -> TurtleState:
        return TurtleState(
            position=np.zeros(3),
            direction=UP,
            length=self.grammar.length,
            angle=self.grammar.angle,
            color=to_rgb(TRUNK_COLOR),
            radius=self.grammar.radius,
            depth=0.0,
        )

    def step(
        self, state: TurtleState, symbol: str, stack: TurtleStack
    ) -> Tuple[TurtleState, Optional[BranchDescriptor]]:
        """Apply one symbol; returns the new state and the emitted branch, if any."""
        if symbol == "F":
            return self._forward(state)
        if symbol == "+":
            return self._turn(state, 1.0), None
        if symbol == "-":
            return self._turn(state, -1.0), None
        if symbol == "[":
            stack.push(state)
            return self._open_branch(state), None
        if symbol == "]":
            restored = stack.pop()
            if restored is not None:
                state = restored
            return replace(state, depth=state.depth - BRANCH_DEPTH), None
        return state, None

    def interpret(self, symbols: str) -> List[BranchDescriptor]:
        state = self.initial_state()
        stack = TurtleStack()
        branches = []

        for ch in symbols:
            state, branch = self.step(state, ch, stack)
            if branch is not None:
                branches.append(branch)

        if len(stack):
            logger.debug(f"{len(stack)} unmatched '[' left on the stack")
        return branches

    def _forward(self, state: TurtleState) -> Tuple[TurtleState, BranchDescriptor]:
        g = self.grammar
        multiplier = 1 + (self.rng.random() - 0.5) * g.length_variation
        actual_length = state.length * multiplier
        new_pos = state.position + state.direction * actual_length
        color = plant_color(state.depth, self.time)

        branch = BranchDescriptor(
            start=tuple(float(x) for x in state.position),
            end=tuple(float(x) for x in new_pos),
            orientation=tuple(float(q) for q in rotation_from_up(state.direction).as_quat()),
            length=float(actual_length),
            radius_start=state.radius * g.taper,
            radius_end=state.radius,
            color=color,
            depth=state.depth,
        )
        return replace(state, position=new_pos, color=color), branch

    def _turn(self, state: TurtleState, sign: float) -> TurtleState:
        actual_angle = state.angle + (self.rng.random() - 0.5) * self.grammar.angle_variation
        axis = self.axis_sampler(self.rng)
        direction = rotate_about_axis(state.direction, axis, sign * actual_angle)
        return replace(state, direction=direction, depth=state.depth + TURN_DEPTH)

    def _open_branch(self, state: TurtleState) -> TurtleState:
        g = self.grammar
        nudge = (self.rng.random(3) - 0.5) * g.branch_jitter
        return replace(
            state,
            length=state.length * g.branch_scale,
            radius=state.radius * g.branch_scale,
            depth=state.depth + BRANCH_DEPTH,
            direction=normalize(state.direction + nudge, fallback=state.direction),
        )
