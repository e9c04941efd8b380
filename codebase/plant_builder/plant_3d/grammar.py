import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Mapping

from plant_3d.preset import PLANT_PRESETS

logger = logging.getLogger(__name__)


def expand(axiom: str, rules: Mapping[str, str], iterations: int) -> str:
    """Apply L-system production rules iteratively.

    Every symbol with a rule is replaced by its production, every other
    symbol ('+', '-', '[', ']', ...) is copied through unchanged.
    """
    current = axiom
    for i in range(iterations):
        current = "".join(rules.get(ch, ch) for ch in current)
        logger.debug(f"Generation {i + 1}: {len(current)} symbols")
    return current


@dataclass(frozen=True)
class PlantGrammar:
    """
    Immutable configuration of a plant L-system.

    Holds both the rewriting grammar and the turtle parameters the
    interpreter starts from.

    Args:
        axiom: Starting symbol string
        rules: Production rules, one single-character key per symbol
        angle: Turning angle in radians
        length: Base length of one forward step
        iterations: Number of rewriting generations
        length_variation: Width of the uniform jitter applied to each step length
        angle_variation: Width of the uniform jitter applied to each turn angle
        radius: Radius of the trunk segments
        branch_scale: Length/radius factor applied when a branch is opened
        branch_jitter: Width of the random nudge applied to a new branch direction
        taper: Near-end radius factor of each segment
        description: Free text shown by the CLI
    """
    axiom: str = "F"
    rules: Dict[str, str] = field(default_factory=dict)
    angle: float = math.pi / 6
    length: float = 0.08
    iterations: int = 4
    length_variation: float = 0.1
    angle_variation: float = 0.05
    radius: float = 0.02
    branch_scale: float = 0.7
    branch_jitter: float = 0.3
    taper: float = 0.8
    description: str = ""

    def __post_init__(self):
        for key in self.rules:
            if not isinstance(key, str) or len(key) != 1:
                raise ValueError(f"Rule keys must be single symbols, got {key!r}")
        if self.iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {self.iterations}")
        if self.length <= 0:
            raise ValueError(f"length must be > 0, got {self.length}")
        for name in ("radius", "branch_scale", "taper"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")
        for name in ("length_variation", "angle_variation", "branch_jitter"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        # Private copy of the rules
        object.__setattr__(self, "rules", dict(self.rules))

    @classmethod
    def from_preset(cls, name: str, **overrides) -> "PlantGrammar":
        """
        Build a grammar from an entry of PLANT_PRESETS.

        Preset angles are written in degrees; keyword overrides use the
        grammar's own units (radians).
        """
        if name not in PLANT_PRESETS:
            raise KeyError(
                f"Unknown preset '{name}'. Available: {', '.join(sorted(PLANT_PRESETS))}"
            )
        params = dict(PLANT_PRESETS[name])
        params["angle"] = math.radians(params["angle"])
        params.update(overrides)
        return cls(**params)

    def expand(self, iterations: int = None) -> str:
        if iterations is None:
            iterations = self.iterations
        return expand(self.axiom, self.rules, iterations)
