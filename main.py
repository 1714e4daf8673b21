import argparse
import logging
import sys

import numpy as np

from neurolens.analysis.tremor import CONFIDENCE_METHODS, TremorAnalysisError
from neurolens.capture.trajectory_buffer import WristSample, WristTrajectory
from neurolens.core.config import default_config, load_config
from neurolens.core.pipeline import build_tremor_analyzer

logger = logging.getLogger(__name__)


def load_trajectory(path: str) -> WristTrajectory:
    """Read a `x,y,timestamp_ms` CSV; a header row is skipped.

    Raises:
        ValueError: If the file has no rows or fewer than 3 columns
    """
    rows = np.genfromtxt(path, delimiter=",", ndmin=2)
    if rows.ndim != 2 or rows.size == 0 or rows.shape[1] < 3:
        raise ValueError(f"{path}: expected rows of x,y,timestamp_ms, got array of shape {rows.shape}")
    rows = rows[~np.isnan(rows[:, :3]).any(axis=1)]

    trajectory = WristTrajectory()
    trajectory.start()
    for x, y, t in rows[:, :3]:
        trajectory.append(WristSample(x=float(x), y=float(y), timestamp_ms=float(t)))
    return trajectory


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Estimate tremor frequency from a recorded wrist trajectory")
    parser.add_argument("trajectory", help="CSV file with x,y,timestamp_ms rows")
    parser.add_argument("--config", help="YAML settings file (defaults built in)")
    parser.add_argument("--confidence-method", choices=CONFIDENCE_METHODS, help="Override tremor confidence method")
    args = parser.parse_args(argv)

    config = load_config(args.config) if args.config else default_config()
    if args.confidence_method:
        config.tremor.confidence_method = args.confidence_method

    try:
        trajectory = load_trajectory(args.trajectory)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read trajectory: {e}")
        return 1
    logger.info(f"Loaded {len(trajectory)} samples from {args.trajectory}")

    analyzer = build_tremor_analyzer(config.tremor)
    try:
        result = analyzer.analyze(trajectory)
    except TremorAnalysisError as e:
        logger.error(f"Tremor analysis failed: {e}")
        return 1

    print(
        f"frequency={result.frequency_hz:.2f}Hz amplitude={result.amplitude:.4f} "
        f"confidence={result.confidence:.2f} axis={result.dominant_axis} "
        f"peak_found={result.peak_found}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
