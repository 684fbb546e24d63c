"""
Shooting Incident Analysis Script
Downloads NYPD shooting data, aggregates it, fits the monthly models and
writes charts and reports to the output directory
"""

import logging
import sys
from pathlib import Path

from nyc_shootings.pipeline import PipelineStageError, run_analysis
from nyc_shootings.reporting.report import environment_report
from nyc_shootings.shared.config import Settings, get_config


def setup_logging(config: Settings) -> None:
    """Log to stderr and, when configured, to a log file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.log_file:
        log_file = Path(config.logging.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file))

    logging.basicConfig(
        level=config.logging.level,
        format=config.logging.format,
        handlers=handlers,
    )


def main() -> int:
    """Run the analysis once and print the model summaries."""
    config = get_config()
    setup_logging(config)
    logger = logging.getLogger(__name__)

    try:
        result = run_analysis(config)
    except PipelineStageError as e:
        logger.error(f"Analysis aborted during {e.stage}: {e}")
        return 1

    print("\n" + "=" * 80)
    print("MODEL SUMMARIES")
    print("=" * 80)
    print(result.summaries or "No models were fitted.")

    for name, message in result.model_errors.items():
        print(f"\n{name} not fitted: {message}")

    print("\n" + "=" * 80)
    print("ENVIRONMENT")
    print("=" * 80)
    print(environment_report())

    print(f"\nReports: {result.report_paths}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
