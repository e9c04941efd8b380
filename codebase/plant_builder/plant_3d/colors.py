import colorsys
import math
from typing import Tuple

import numpy as np
from matplotlib.colors import to_rgb

RGB = Tuple[float, float, float]

TRUNK_COLOR = "#8B4513"
BRANCH_COLOR = "#CD853F"
TWIG_COLOR = "#D2691E"

# Depth at which the gradient reaches the twig color
MAX_COLOR_DEPTH = 5.0
# Normalized depth where trunk->branch hands over to branch->twig
GRADIENT_SPLIT = 0.3
LIGHTNESS_AMPLITUDE = 0.05
LIGHTNESS_FREQUENCY = 0.1


def lerp_rgb(a: RGB, b: RGB, t: float) -> RGB:
    """Linear blend between two RGB triples."""
    return tuple(float(x) for x in (1.0 - t) * np.asarray(a) + t * np.asarray(b))


def offset_lightness(color: RGB, amount: float) -> RGB:
    """Shift the HSL lightness of a color, clamped to [0, 1]."""
    hue, lightness, saturation = colorsys.rgb_to_hls(*color)
    lightness = min(max(lightness + amount, 0.0), 1.0)
    return colorsys.hls_to_rgb(hue, lightness, saturation)


def gradient_color(depth: float) -> RGB:
    """
    Trunk -> branch -> twig gradient, without the lightness oscillation.

    Depth is clamped to [0, MAX_COLOR_DEPTH] before normalizing, so deep
    twigs all share the twig color.
    """
    t = min(max(depth, 0.0), MAX_COLOR_DEPTH) / MAX_COLOR_DEPTH
    if t < GRADIENT_SPLIT:
        return lerp_rgb(to_rgb(TRUNK_COLOR), to_rgb(BRANCH_COLOR), t / GRADIENT_SPLIT)
    return lerp_rgb(
        to_rgb(BRANCH_COLOR),
        to_rgb(TWIG_COLOR),
        (t - GRADIENT_SPLIT) / (1.0 - GRADIENT_SPLIT),
    )


def plant_color(depth: float, time: float = 0.0) -> RGB:
    """
    Color of a branch segment emitted at the given turtle depth.

    Args:
        depth: Accumulated turtle depth (turns and branch openings)
        time: Animation time in seconds; 0 for a still plant

    Returns:
        (r, g, b) floats in [0, 1]
    """
    variation = math.sin(time * LIGHTNESS_FREQUENCY + depth) * LIGHTNESS_AMPLITUDE
    return offset_lightness(gradient_color(depth), variation)
