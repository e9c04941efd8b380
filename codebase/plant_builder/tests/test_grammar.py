import math
import unittest

from plant_3d.grammar import PlantGrammar, expand
from plant_3d.preset import PLANT_PRESETS


class TestExpand(unittest.TestCase):

    def setUp(self):
        self.rules = PLANT_PRESETS["spatial_tree"]["rules"]

    def test_zero_iterations_returns_axiom(self):
        self.assertEqual(expand("X", self.rules, 0), "X")

    def test_two_generations(self):
        # X -> F at generation 1, F -> FF at generation 2
        self.assertEqual(expand("X", {"X": "F", "F": "FF"}, 2), "FF")

    def test_length_is_monotonic(self):
        lengths = [len(expand("X", self.rules, n)) for n in range(5)]
        self.assertEqual(lengths, sorted(lengths))

    def test_unmapped_symbols_pass_through(self):
        self.assertEqual(expand("F+[-F]&", {"F": "G"}, 1), "G+[-G]&")

    def test_replacements_keep_order(self):
        self.assertEqual(expand("AB", {"A": "AB", "B": "A"}, 3), "ABAABABA")


class TestPlantGrammar(unittest.TestCase):

    def test_defaults_match_spatial_tree(self):
        grammar = PlantGrammar.from_preset("spatial_tree")
        self.assertEqual(grammar.axiom, "X")
        self.assertEqual(grammar.iterations, 4)
        self.assertAlmostEqual(grammar.angle, math.pi / 6)
        self.assertAlmostEqual(grammar.length, 0.08)
        self.assertAlmostEqual(grammar.radius, 0.02)

    def test_preset_overrides(self):
        grammar = PlantGrammar.from_preset("spatial_tree", iterations=2)
        self.assertEqual(grammar.iterations, 2)
        self.assertEqual(grammar.expand(), expand("X", grammar.rules, 2))

    def test_unknown_preset(self):
        with self.assertRaises(KeyError):
            PlantGrammar.from_preset("baobab")

    def test_every_preset_builds(self):
        for name in PLANT_PRESETS:
            grammar = PlantGrammar.from_preset(name)
            self.assertGreater(len(grammar.expand(1)), 0, name)

    def test_rules_are_copied(self):
        rules = {"F": "FF"}
        grammar = PlantGrammar(axiom="F", rules=rules, iterations=1)
        rules["F"] = "F+F"
        self.assertEqual(grammar.expand(), "FF")

    def test_invalid_configuration(self):
        with self.assertRaises(ValueError):
            PlantGrammar(rules={"FF": "F"})
        with self.assertRaises(ValueError):
            PlantGrammar(iterations=-1)
        with self.assertRaises(ValueError):
            PlantGrammar(length=0.0)
        with self.assertRaises(ValueError):
            PlantGrammar(angle_variation=-0.1)

    def test_scale_factors_must_be_positive(self):
        for name in ("branch_scale", "taper", "radius"):
            for value in (0.0, -0.5):
                with self.assertRaises(ValueError, msg=f"{name}={value} should be rejected"):
                    PlantGrammar(**{name: value})
        grammar = PlantGrammar(branch_scale=1.0, taper=1.0)
        self.assertEqual(grammar.taper, 1.0)


if __name__ == "__main__":
    unittest.main()
