import argparse
import logging
import sys
from typing import Optional, Tuple

from plant_3d.grammar import PlantGrammar
from plant_3d.l_systems_3d import PlantLSystem3D, save_branches
from plant_3d.preset import DEFAULT_PRESET, PLANT_PRESETS
from plant_3d.render_3d import ViewerConfig
from plant_3d.turtle_3d import BranchDescriptor

logger = logging.getLogger(__name__)


def example_usage(preset: str, seed: Optional[int] = None, time: float = 0.0, backend: str = "pyvista",
                  screenshot: Optional[str] = None, export: Optional[str] = None, animate: bool = False,
                  **overrides) -> Tuple[BranchDescriptor, ...]:
    """Generate one preset plant, then export and/or display it.

    Returns:
        The generated branches, whatever the backend
    """
    grammar = PlantGrammar.from_preset(preset, **overrides)
    plant = PlantLSystem3D(grammar)
    branches = plant.build_plant(seed=seed, time=time)

    if export:
        save_branches(branches, export)

    if backend == "pyvista":
        plant.render(seed=seed, time=time, config=ViewerConfig(animate=animate), screenshot=screenshot)
    elif backend == "matplotlib":
        import matplotlib.pyplot as plt

        fig = plant.plot(seed=seed, time=time, save_path=screenshot)
        if screenshot is None:
            plt.show()
        else:
            plt.close(fig)
    elif backend != "none":
        raise ValueError(f"Unknown backend '{backend}'")
    return branches


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate and view a 3D L-system plant")
    parser.add_argument('--preset', default=DEFAULT_PRESET, help='Entry of PLANT_PRESETS')
    parser.add_argument('--iterations', type=int, default=None, help='Override the preset iteration count')
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--time', type=float, default=0.0, help='Color animation time')
    parser.add_argument('--backend', choices=['pyvista', 'matplotlib', 'none'], default='pyvista')
    parser.add_argument('--screenshot', default=None, help='Save an image instead of opening a window')
    parser.add_argument('--export', default=None, help='Save branches to a .npz file')
    parser.add_argument('--animate', action='store_true', help='Sway the plant in the viewer')
    parser.add_argument('--list-presets', action='store_true')
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if args.list_presets:
        for name, preset in PLANT_PRESETS.items():
            print(f"{name:15s} {preset['description']}")
        return 0

    overrides = {}
    if args.iterations is not None:
        overrides["iterations"] = args.iterations

    try:
        example_usage(args.preset, seed=args.seed, time=args.time, backend=args.backend,
                      screenshot=args.screenshot, export=args.export, animate=args.animate,
                      **overrides)
    except KeyError as e:
        logger.error(e.args[0])
        parser.error(e.args[0])
    except ValueError as e:
        logger.error(str(e))
        parser.error(str(e))
    return 0


if __name__ == "__main__":
    sys.exit(main())
