PLANT_PRESETS = {
    # Volumetric tree rendered by default
    "spatial_tree": {
        "axiom": "X",
        "rules": {"X": "F+[[X]-X]-F[-FX]+X+F[+X]-X+F[+X]+X", "F": "FF"},
        "angle": 30,
        "length": 0.08,
        "iterations": 4,
        "length_variation": 0.1,
        "angle_variation": 0.05,
        "description": "Bushy volumetric tree with randomly oriented turns"
    },

    # Fern-like patterns
    "fern": {
        "axiom": "X",
        "rules": {"X": "F+[[X]-X]-F[-FX]+X", "F": "FF"},
        "angle": 25,
        "length": 0.05,
        "iterations": 5,
        "length_variation": 0.1,
        "angle_variation": 0.05,
        "description": "Fern-like frond pattern"
    },

    # Tree-like structures
    "tree_binary": {
        "axiom": "F",
        "rules": {"F": "FF[+F][-F]"},
        "angle": 25,
        "length": 0.1,
        "iterations": 4,
        "length_variation": 0.1,
        "angle_variation": 0.1,
        "description": "Binary tree structure"
    },
    "tree_ternary": {
        "axiom": "F",
        "rules": {"F": "F[+F]F[-F]F"},
        "angle": 20,
        "length": 0.05,
        "iterations": 4,
        "length_variation": 0.1,
        "angle_variation": 0.05,
        "description": "Ternary branching tree"
    },

    # Shrubs
    "shrub": {
        "axiom": "A",
        "rules": {"A": "F[+A][-A]FA", "F": "FF"},
        "angle": 35,
        "length": 0.06,
        "iterations": 5,
        "length_variation": 0.2,
        "angle_variation": 0.1,
        "description": "Low shrub with dense lateral branching"
    },
    "vine": {
        "axiom": "F",
        "rules": {"F": "F[+F]F[-F][F]"},
        "angle": 20,
        "length": 0.06,
        "iterations": 4,
        "length_variation": 0.15,
        "angle_variation": 0.05,
        "description": "Vine-like growth"
    },
}

DEFAULT_PRESET = "spatial_tree"
