"""
Rendering of generated plants.

PyVista draws the branches as lit, tapered tubes in an interactive window;
matplotlib gives a static 3D line plot that also works headless.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pyvista as pv
from mpl_toolkits.mplot3d.art3d import Line3DCollection

from plant_3d.turtle_3d import BranchDescriptor

logger = logging.getLogger(__name__)

# vtkInteractorStyleTrackballCamera's own motion factor
DEFAULT_MOTION_FACTOR = 10.0
# Keeps the camera off the +Y pole, where the view up would be undefined
MIN_POLAR_ANGLE = 1e-3


@dataclass
class ViewerConfig:
    """Scene, light and camera settings of the interactive viewer."""
    window_size: Tuple[int, int] = (1024, 768)
    background: str = "black"
    camera_position: Tuple[float, float, float] = (4.0, 2.0, 2.0)
    focal_point: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    fov: float = 75.0
    n_sides: int = 6
    ambient: float = 0.7
    diffuse: float = 0.8
    specular: float = 0.2
    shininess: float = 20.0
    directional_light: Tuple[Tuple[float, float, float], str, float] = ((10.0, 10.0, 5.0), "#FFF8DC", 1.2)
    point_lights: Tuple[Tuple[Tuple[float, float, float], str, float], ...] = (
        ((-5.0, 5.0, -5.0), "#87CEEB", 0.4),
        ((5.0, -5.0, 5.0), "#FFFACD", 0.3),
    )
    # Orbit speed relative to VTK's default trackball speed
    rotate_speed: float = 0.2
    # Largest angle between +Y and the camera offset; pi/2 keeps the camera above the ground plane
    max_polar_angle: float = math.pi / 2
    animate: bool = False
    fps: int = 30


def wind_sway(elapsed: float) -> Tuple[float, float, float]:
    """
    Small whole-plant rotation (rx, ry, rz) in radians after `elapsed` seconds.

    A pure function of time: the render loop owns the clock and applies the
    result to the plant actor, the branch descriptors never change.
    """
    return (
        math.sin(elapsed * 0.1) * 0.01,
        math.sin(elapsed * 0.3) * 0.02,
        math.sin(elapsed * 0.2) * 0.005,
    )


def branches_to_mesh(branches: Sequence[BranchDescriptor], n_sides: int = 6) -> pv.PolyData:
    """
    Merge all branches into one tube mesh.

    Each branch becomes a two-point line whose point radii are the near and
    far radius; a single tube filter turns the lines into tapered cylinders.
    Colors are stored as uint8 point data under 'rgb'.
    """
    if len(branches) == 0:
        return pv.PolyData()

    n = len(branches)
    points = np.empty((2 * n, 3))
    points[0::2] = [b.start for b in branches]
    points[1::2] = [b.end for b in branches]

    lines = np.empty((n, 3), dtype=np.int64)
    lines[:, 0] = 2
    lines[:, 1] = np.arange(0, 2 * n, 2)
    lines[:, 2] = np.arange(1, 2 * n, 2)

    radii = np.empty(2 * n)
    radii[0::2] = [b.radius_start for b in branches]
    radii[1::2] = [b.radius_end for b in branches]

    colors = np.repeat(np.array([b.color for b in branches]), 2, axis=0)

    skeleton = pv.PolyData(points, lines=lines.ravel())
    skeleton.point_data["radius"] = radii
    skeleton.point_data["rgb"] = np.clip(np.round(colors * 255), 0, 255).astype(np.uint8)

    return skeleton.tube(scalars="radius", absolute=True, n_sides=n_sides, capping=True)


def make_lights(config: ViewerConfig):
    position, color, intensity = config.directional_light
    lights = [
        pv.Light(position=position, focal_point=config.focal_point, color=color,
                 intensity=intensity, light_type="scene light")
    ]
    for position, color, intensity in config.point_lights:
        lights.append(
            pv.Light(position=position, color=color, intensity=intensity,
                     light_type="scene light", positional=True, cone_angle=180)
        )
    return lights


def clamp_camera_polar(
    position: Sequence[float],
    focal_point: Sequence[float],
    max_polar_angle: float = math.pi / 2,
    min_polar_angle: float = MIN_POLAR_ANGLE,
) -> Tuple[float, float, float]:
    """
    Keep the camera's polar angle (measured from +Y around the focal point)
    within [min_polar_angle, max_polar_angle], preserving its distance and
    its azimuth.
    """
    focal = np.asarray(focal_point, dtype=float)
    offset = np.asarray(position, dtype=float) - focal
    distance = np.linalg.norm(offset)
    if distance == 0:
        return tuple(float(x) for x in position)

    polar = math.acos(float(np.clip(offset[1] / distance, -1.0, 1.0)))
    clamped = min(max(polar, min_polar_angle), max_polar_angle)
    if clamped == polar:
        return tuple(float(x) for x in position)

    horizontal = np.array([offset[0], offset[2]])
    norm = np.linalg.norm(horizontal)
    # Straight up or down has no azimuth; fall back to +X
    horizontal = horizontal / norm if norm > 1e-12 else np.array([1.0, 0.0])
    new_offset = distance * np.array([
        math.sin(clamped) * horizontal[0],
        math.cos(clamped),
        math.sin(clamped) * horizontal[1],
    ])
    return tuple(float(x) for x in focal + new_offset)


def enable_orbit(plotter: pv.Plotter, config: ViewerConfig):
    """
    Trackball orbit around the focal point with pan and zoom.

    The rotation speed is scaled by `config.rotate_speed`, and after every
    interaction the camera is pulled back within `config.max_polar_angle`
    with +Y kept as the view up.
    """
    plotter.enable_trackball_style()
    style = plotter.iren.get_interactor_style()
    style.SetMotionFactor(DEFAULT_MOTION_FACTOR * config.rotate_speed)

    def on_interaction(*args):
        camera = plotter.camera
        camera.position = clamp_camera_polar(camera.position, camera.focal_point, config.max_polar_angle)
        camera.up = (0.0, 1.0, 0.0)

    style.AddObserver("InteractionEvent", on_interaction)
    return style


def build_scene(
    branches: Sequence[BranchDescriptor],
    config: Optional[ViewerConfig] = None,
    plotter: Optional[pv.Plotter] = None,
    off_screen: bool = False,
) -> Tuple[pv.Plotter, Optional[pv.Actor]]:
    """
    Set up a plotter with the plant mesh, lights and orbit camera.

    Returns:
        plotter: The configured plotter (not shown yet)
        actor: The plant actor, or None when there is nothing to draw
    """
    if config is None:
        config = ViewerConfig()
    if plotter is None:
        plotter = pv.Plotter(off_screen=off_screen, lighting="none", window_size=list(config.window_size))

    plotter.set_background(config.background)

    mesh = branches_to_mesh(branches, config.n_sides)
    actor = None
    if mesh.n_points > 0:
        actor = plotter.add_mesh(
            mesh,
            scalars="rgb",
            rgb=True,
            ambient=config.ambient,
            diffuse=config.diffuse,
            specular=config.specular,
            specular_power=config.shininess,
            smooth_shading=True,
            show_scalar_bar=False,
        )
    else:
        logger.warning("No branches to draw")

    for light in make_lights(config):
        plotter.add_light(light)

    plotter.camera_position = [config.camera_position, config.focal_point, (0.0, 1.0, 0.0)]
    plotter.camera.view_angle = config.fov
    enable_orbit(plotter, config)

    return plotter, actor


def animate_sway(plotter: pv.Plotter, actor: pv.Actor, fps: int = 30, max_steps: int = 100000):
    """Drive wind_sway from a plotter timer; the elapsed time comes from the step count."""
    interval_ms = max(int(1000 / fps), 1)

    def on_timer(step):
        elapsed = step * interval_ms / 1000.0
        actor.orientation = np.degrees(wind_sway(elapsed))
        plotter.render()

    plotter.add_timer_event(max_steps=max_steps, duration=interval_ms, callback=on_timer)


def show_plant(
    branches: Sequence[BranchDescriptor],
    config: Optional[ViewerConfig] = None,
    screenshot: Optional[str] = None,
):
    """
    Display the plant in an interactive window.

    Args:
        branches: Branch descriptors to draw
        config: Viewer settings
        screenshot: If set, render off screen and save the image there instead
    """
    if config is None:
        config = ViewerConfig()
    plotter, actor = build_scene(branches, config, off_screen=screenshot is not None)

    if screenshot is not None:
        plotter.show(screenshot=screenshot)
        logger.info(f"Screenshot saved to: {screenshot}")
        return plotter

    if config.animate and actor is not None:
        animate_sway(plotter, actor, fps=config.fps)
    plotter.show()
    return plotter


def plot_branches(
    branches: Sequence[BranchDescriptor],
    ax=None,
    elev: float = 20,
    azim: float = 45,
    width_scale: float = 150.0,
    save_path: str = None,
):
    """
    Static 3D plot of the branches with matplotlib.

    The plant grows along +Y; it is drawn with Y on matplotlib's vertical
    axis. Line widths are the mean segment radius times `width_scale`.

    Returns:
        The matplotlib Figure
    """
    if ax is None:
        fig = plt.figure(figsize=(8, 10))
        ax = fig.add_subplot(111, projection="3d")
    else:
        fig = ax.figure

    if len(branches) > 0:
        segments = np.array([[b.start, b.end] for b in branches])[:, :, [0, 2, 1]]
        widths = [(b.radius_start + b.radius_end) / 2 * width_scale for b in branches]
        ax.add_collection3d(
            Line3DCollection(segments, colors=[b.color for b in branches], linewidths=widths)
        )

        # Equal aspect ratio around the plant
        pts = segments.reshape(-1, 3)
        center = (pts.min(axis=0) + pts.max(axis=0)) / 2
        half = max((pts.max(axis=0) - pts.min(axis=0)).max() / 2, 1e-6)
        ax.set_xlim(center[0] - half, center[0] + half)
        ax.set_ylim(center[1] - half, center[1] + half)
        ax.set_zlim(center[2] - half, center[2] + half)
    else:
        logger.warning("No branches to plot")

    ax.set_xlabel('X')
    ax.set_ylabel('Z')
    ax.set_zlabel('Y (up)')
    ax.set_title(f'3D Plant ({len(branches)} branches)')
    ax.view_init(elev=elev, azim=azim)

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Plant figure saved to: {save_path}")

    return fig
