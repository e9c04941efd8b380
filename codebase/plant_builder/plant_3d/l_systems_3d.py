import logging
import os
import time as timer
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np

from plant_3d.grammar import PlantGrammar
from plant_3d.preset import DEFAULT_PRESET
from plant_3d.turtle_3d import AxisSampler, BranchDescriptor, TurtleInterpreter3D

logger = logging.getLogger(__name__)

BRANCH_DTYPE = np.dtype([
    ("start", np.float64, (3,)),
    ("end", np.float64, (3,)),
    ("orientation", np.float64, (4,)),
    ("length", np.float64),
    ("radius_start", np.float64),
    ("radius_end", np.float64),
    ("color", np.float64, (3,)),
    ("depth", np.float64),
])


class PlantLSystem3D:
    """
    Generates a 3D plant from an L-system grammar.

    The grammar is expanded once, then interpreted by a 3D turtle into
    tapered branch segments. Results are cached per (seed, time) so a
    render loop can ask for the plant every frame without regenerating it.
    """

    def __init__(
        self,
        grammar: Union[PlantGrammar, str, None] = None,
        axis_sampler: Optional[AxisSampler] = None,
    ):
        """
        Initialize 3D plant generator.

        Args:
            grammar: PlantGrammar, or the name of an entry in PLANT_PRESETS
            axis_sampler: Optional turn-axis sampler forwarded to the interpreter
        """
        if grammar is None:
            grammar = DEFAULT_PRESET
        if isinstance(grammar, str):
            grammar = PlantGrammar.from_preset(grammar)
        self.grammar = grammar
        self.axis_sampler = axis_sampler
        self._lstring: Optional[str] = None
        self._cache: Dict[Tuple[Optional[int], float], Tuple[BranchDescriptor, ...]] = {}

    def generate(self) -> str:
        """Expanded symbol string of the grammar (computed once)."""
        if self._lstring is None:
            self._lstring = self.grammar.expand()
            logger.info(
                f"Expanded '{self.grammar.axiom}' over {self.grammar.iterations} "
                f"iterations into {len(self._lstring)} symbols"
            )
        return self._lstring

    def build_plant(self, seed: Optional[int] = None, time: float = 0.0) -> Tuple[BranchDescriptor, ...]:
        """
        Interpret the expanded string into branch segments.

        Args:
            seed: Seed of the random generator; equal seeds give equal plants
            time: Animation time forwarded to the color function

        Returns:
            Immutable sequence of BranchDescriptor, one per 'F'
        """
        key = (seed, float(time))
        if key not in self._cache:
            start = timer.perf_counter()
            interpreter = TurtleInterpreter3D(
                self.grammar,
                rng=np.random.default_rng(seed),
                axis_sampler=self.axis_sampler,
                time=time,
            )
            self._cache[key] = tuple(interpreter.interpret(self.generate()))
            logger.info(
                f"Built {len(self._cache[key])} branches in "
                f"{timer.perf_counter() - start:.3f} s (seed={seed}, time={time})"
            )
        return self._cache[key]

    def to_arrays(self, seed: Optional[int] = None, time: float = 0.0) -> np.ndarray:
        """Branches of build_plant(seed, time) as a structured array of BRANCH_DTYPE."""
        return branches_to_array(self.build_plant(seed, time))

    def render(self, seed: Optional[int] = None, time: float = 0.0, **kwargs):
        """Open the interactive PyVista viewer; kwargs go to render_3d.show_plant."""
        from plant_3d.render_3d import show_plant

        return show_plant(self.build_plant(seed, time), **kwargs)

    def plot(self, seed: Optional[int] = None, time: float = 0.0, **kwargs):
        """Static matplotlib view; kwargs go to render_3d.plot_branches."""
        from plant_3d.render_3d import plot_branches

        return plot_branches(self.build_plant(seed, time), **kwargs)


def branches_to_array(branches: Sequence[BranchDescriptor]) -> np.ndarray:
    """Pack branch descriptors into a structured array of BRANCH_DTYPE."""
    arr = np.zeros(len(branches), dtype=BRANCH_DTYPE)
    for i, b in enumerate(branches):
        arr[i] = (b.start, b.end, b.orientation, b.length,
                  b.radius_start, b.radius_end, b.color, b.depth)
    return arr


def array_to_branches(arr: np.ndarray) -> Tuple[BranchDescriptor, ...]:
    if arr.dtype.names is None or set(arr.dtype.names) != set(BRANCH_DTYPE.names):
        raise ValueError(f"Expected fields {BRANCH_DTYPE.names}, got {arr.dtype.names}")
    return tuple(
        BranchDescriptor(
            start=tuple(float(x) for x in row["start"]),
            end=tuple(float(x) for x in row["end"]),
            orientation=tuple(float(x) for x in row["orientation"]),
            length=float(row["length"]),
            radius_start=float(row["radius_start"]),
            radius_end=float(row["radius_end"]),
            color=tuple(float(x) for x in row["color"]),
            depth=float(row["depth"]),
        )
        for row in arr
    )


def save_branches(branches: Sequence[BranchDescriptor], filepath: str):
    """Save branches to a .npz archive under the key 'branches'."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    np.savez(filepath, branches=branches_to_array(branches))
    logger.info(f"Saved {len(branches)} branches to: {filepath}")


def load_branches(filepath: str) -> Tuple[BranchDescriptor, ...]:
    with np.load(filepath) as data:
        if "branches" not in data.files:
            raise ValueError(f"{filepath} has no 'branches' array")
        return array_to_branches(data["branches"])
