"""raybox — CLI entry point.

Runs the ray-box algorithm comparison: times the five algorithms on one
box and a reproducible ray set, cross-checks them against a reference,
and optionally saves raw results and plots.

Usage
-----
    python main.py
    python main.py --num-rays 1000000 --algorithms aila_wald williams
    python main.py --plot --output output
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging."""
    fmt = "%(name)s [%(levelname)s] %(message)s"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        stream=sys.stdout,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="raybox",
        description="raybox — ray-box intersection algorithm comparison",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python main.py\n"
            "  python main.py --num-rays 1000000 --seed 7\n"
            "  python main.py --algorithms aila_wald woo kay_kajiya\n"
            "  python main.py --plot --output output\n"
        ),
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_config.yaml",
        help="Path to suite config YAML (default: config/default_config.yaml)",
    )
    parser.add_argument(
        "--algorithms",
        nargs="+",
        default=None,
        help="Algorithms to compare (default: from config)",
    )
    parser.add_argument(
        "--num-rays",
        type=int,
        default=None,
        help="Number of rays (default: from config)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for ray generation (default: from config)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output",
        help="Output directory for data and plots (default: output/)",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        default=False,
        help="Save raw per-algorithm arrays and metadata",
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        default=False,
        help="Render depth/normal maps and the timing chart",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main comparison entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    logger = logging.getLogger("raybox")
    logger.info("=" * 60)
    logger.info("  raybox — Ray-Box Intersection Comparison")
    logger.info("=" * 60)

    from comparison.runner import ComparisonRunner
    from raybox.config import load_config, log_platform_info

    log_platform_info()

    config_path = Path(args.config)
    logger.info("Loading config: %s", config_path)
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 2

    runner = ComparisonRunner(config)
    try:
        results = runner.run(
            algorithms=args.algorithms,
            num_rays=args.num_rays,
            seed=args.seed,
            save_data=args.save,
            output_dir=args.output,
        )
    except KeyError as exc:
        logger.error("%s", exc.args[0])
        return 2

    if args.plot:
        from visualization.plotter import plot_depth_maps, plot_timings

        output_dir = Path(args.output)
        logger.info("Generating plots → %s/", output_dir)
        plot_depth_maps(
            runner.box,
            list(results.stats),
            resolution=config.plot.resolution,
            view_direction=config.plot.view_direction,
            output_path=output_dir / "depth_maps.png",
            dpi=config.plot.dpi,
        )
        plot_timings(results, output_path=output_dir / "timings.png", dpi=config.plot.dpi)

    disagreeing = [
        s.name for s in results.stats.values() if s.distance_agreement < 1.0
    ]
    if disagreeing:
        logger.warning("Distance disagreement beyond tolerance: %s", disagreeing)

    return 0


if __name__ == "__main__":
    sys.exit(main())
