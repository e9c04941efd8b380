import math
import os
import tempfile
import unittest

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from numpy.testing import assert_allclose

from plant_3d.grammar import PlantGrammar
from plant_3d.l_systems_3d import PlantLSystem3D
from plant_3d.render_3d import (
    ViewerConfig,
    branches_to_mesh,
    build_scene,
    clamp_camera_polar,
    make_lights,
    plot_branches,
    wind_sway,
)


class TestRender3D(unittest.TestCase):

    def setUp(self):
        self.plant = PlantLSystem3D(PlantGrammar.from_preset("spatial_tree", iterations=2))
        self.branches = self.plant.build_plant(seed=0)

    def test_wind_sway_is_small_and_starts_at_rest(self):
        self.assertEqual(wind_sway(0.0), (0.0, 0.0, 0.0))
        for t in (0.5, 3.0, 40.0):
            rx, ry, rz = wind_sway(t)
            self.assertLessEqual(abs(rx), 0.01)
            self.assertLessEqual(abs(ry), 0.02)
            self.assertLessEqual(abs(rz), 0.005)

    def test_mesh_has_one_tube_per_branch(self):
        mesh = branches_to_mesh(self.branches, n_sides=6)
        self.assertGreater(mesh.n_points, 2 * len(self.branches))
        self.assertIn("rgb", mesh.point_data)

    def test_empty_mesh(self):
        self.assertEqual(branches_to_mesh([]).n_points, 0)

    def test_viewer_defaults(self):
        config = ViewerConfig()
        self.assertEqual(config.camera_position, (4.0, 2.0, 2.0))
        self.assertEqual(config.n_sides, 6)
        self.assertFalse(config.animate)
        self.assertAlmostEqual(config.rotate_speed, 0.2)
        self.assertAlmostEqual(config.max_polar_angle, math.pi / 2)

    def test_make_lights(self):
        lights = make_lights(ViewerConfig())
        self.assertEqual(len(lights), 3)
        self.assertFalse(lights[0].positional)
        self.assertTrue(all(light.positional for light in lights[1:]))
        self.assertAlmostEqual(lights[0].intensity, 1.2)

    def test_build_scene_off_screen(self):
        plotter, actor = build_scene(self.branches, off_screen=True)
        try:
            self.assertIsNotNone(actor)
            self.assertEqual(len(plotter.renderer.lights), 3)
            assert_allclose(plotter.camera.position, (4.0, 2.0, 2.0))
            assert_allclose(plotter.camera.focal_point, (0.0, 0.0, 0.0))
            self.assertAlmostEqual(plotter.camera.view_angle, 75.0)
            style = plotter.iren.get_interactor_style()
            self.assertAlmostEqual(style.GetMotionFactor(), 2.0)
        finally:
            plotter.close()

    def test_orbit_stays_above_ground(self):
        plotter, _ = build_scene(self.branches, off_screen=True)
        try:
            plotter.camera.position = (1.0, -1.0, 0.0)
            plotter.iren.get_interactor_style().InvokeEvent("InteractionEvent")
            assert_allclose(plotter.camera.position, (math.sqrt(2.0), 0.0, 0.0), atol=1e-9)
            assert_allclose(plotter.camera.up, (0.0, 1.0, 0.0), atol=1e-9)
        finally:
            plotter.close()

    def test_clamp_camera_polar(self):
        # Already above the ground plane: unchanged
        self.assertEqual(clamp_camera_polar((4.0, 2.0, 2.0), (0.0, 0.0, 0.0)), (4.0, 2.0, 2.0))
        below = clamp_camera_polar((0.0, -3.0, 4.0), (0.0, 0.0, 0.0))
        assert_allclose(below, (0.0, 0.0, 5.0), atol=1e-9)
        # Distance to the focal point is kept
        shifted = clamp_camera_polar((1.0, -2.0, 1.0), (1.0, 1.0, 1.0))
        assert_allclose(shifted, (4.0, 1.0, 1.0), atol=1e-9)
        # Straight down has no azimuth
        straight_down = clamp_camera_polar((0.0, -2.0, 0.0), (0.0, 0.0, 0.0))
        assert_allclose(straight_down, (2.0, 0.0, 0.0), atol=1e-9)
        # Straight up is moved off the pole
        top = np.asarray(clamp_camera_polar((0.0, 2.0, 0.0), (0.0, 0.0, 0.0)))
        self.assertAlmostEqual(np.linalg.norm(top), 2.0)
        self.assertGreater(top[0], 0.0)

    def test_plot_branches_saves_figure(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "plant.png")
            fig = plot_branches(self.branches, save_path=path)
            self.assertTrue(os.path.exists(path))
            plt.close(fig)

    def test_plot_empty(self):
        fig = plot_branches([])
        plt.close(fig)


if __name__ == "__main__":
    unittest.main()
