"""
NYC Shootings - Run Reports

Text outputs of an analysis run:
- Regression summaries (statsmodels summary tables)
- Environment report (interpreter, platform, library versions)
- Run report in Markdown and JSON: dataset size and date range, cleaning
  and aggregation statistics, model coefficients, charts and
  data-quality notes

Usage:
    generator = RunReportGenerator(config)
    report = generator.generate_run_report(
        cleaned_df=cleaned,
        preprocessing=preprocess_result,
        aggregations=[bucket_result, series_result],
        models=[model_a, model_b],
        figures={"incidents_by_month": Path("output/figures/incidents_by_month.png")},
    )
    generator.save_run_report(report)
"""

from __future__ import annotations

import json
import logging
import platform
import sys
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import pandas as pd

from nyc_shootings.datasets.base import AggregationResult, PreprocessingResult
from nyc_shootings.modeling.regression import RegressionResult
from nyc_shootings.shared.config import Settings, get_config, get_output_path

logger = logging.getLogger(__name__)

# Distributions reported in the environment report
REPORTED_PACKAGES = [
    "pandas",
    "numpy",
    "statsmodels",
    "matplotlib",
    "seaborn",
    "requests",
    "pydantic",
    "pydantic-settings",
    "PyYAML",
]


def package_versions(packages: list[str] | None = None) -> dict[str, str]:
    """Installed version of each distribution, or "not installed"."""
    versions = {}
    for name in packages or REPORTED_PACKAGES:
        try:
            versions[name] = version(name)
        except PackageNotFoundError:
            versions[name] = "not installed"
    return versions


def environment_report(packages: list[str] | None = None) -> str:
    """Describe the interpreter, platform and analysis library versions."""
    lines = [
        f"Python {platform.python_version()} ({sys.implementation.name})",
        f"Platform: {platform.platform()}",
        "",
        "Packages:",
    ]
    versions = package_versions(packages)
    width = max(len(name) for name in versions)
    for name, ver in versions.items():
        lines.append(f"  {name.ljust(width)}  {ver}")
    return "\n".join(lines)


def format_model_summaries(models: list[RegressionResult]) -> str:
    """Concatenate the statsmodels summary of each fitted model."""
    sections = []
    for model in models:
        sections.append("=" * 78)
        sections.append(f"{model.name}: {model.formula} (borough: {model.borough})")
        sections.append("=" * 78)
        sections.append(model.summary)
        sections.append("")
    return "\n".join(sections)


def write_model_summaries(models: list[RegressionResult], path: str | Path) -> Path:
    """Write the model summaries to a text file."""
    output_file = Path(path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(format_model_summaries(models))
    logger.info(f"Model summaries saved to {output_file}")
    return output_file


@dataclass
class RunReport:
    """Summary of one analysis run."""

    dataset_name: str
    execution_date: str
    created_at: datetime
    source_url: str | None
    row_count: int
    column_count: int
    time_range: dict[str, str] | None = None
    preprocessing: dict[str, Any] = field(default_factory=dict)
    aggregations: list[dict[str, Any]] = field(default_factory=list)
    models: list[dict[str, Any]] = field(default_factory=list)
    model_errors: dict[str, str] = field(default_factory=dict)
    figures: dict[str, str] = field(default_factory=dict)
    quality_notes: list[str] = field(default_factory=list)
    environment: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


class RunReportGenerator:
    """
    Build and save the run report.

    Creates both human-readable (Markdown) and machine-readable (JSON)
    versions under the configured output directory.
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize run report generator.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()

    def generate_run_report(
        self,
        cleaned_df: pd.DataFrame,
        execution_date: str,
        source_url: str | None = None,
        preprocessing: PreprocessingResult | None = None,
        aggregations: list[AggregationResult] | None = None,
        models: list[RegressionResult] | None = None,
        model_errors: dict[str, str] | None = None,
        figures: dict[str, Path] | None = None,
    ) -> RunReport:
        """
        Generate a run report.

        Args:
            cleaned_df: Cleaned shooting records
            execution_date: Execution date in YYYY-MM-DD format
            source_url: Where the data was downloaded from
            preprocessing: Cleaning result
            aggregations: Aggregation results
            models: Fitted models
            model_errors: Model name -> failure message for models that did not fit
            figures: Chart name -> saved path

        Returns:
            RunReport object
        """
        aggregations = aggregations or []

        report = RunReport(
            dataset_name="shootings",
            execution_date=execution_date,
            created_at=datetime.now(UTC),
            source_url=source_url,
            row_count=len(cleaned_df),
            column_count=len(cleaned_df.columns),
            time_range=self._extract_time_range(cleaned_df),
            preprocessing=preprocessing.to_dict() if preprocessing else {},
            aggregations=[a.to_dict() for a in aggregations],
            models=[m.to_dict() for m in models or []],
            model_errors=dict(model_errors or {}),
            figures={name: str(path) for name, path in (figures or {}).items()},
            quality_notes=self._quality_notes(preprocessing, aggregations),
            environment=environment_report(),
        )

        logger.info(
            f"Generated run report for {execution_date}",
            extra={"rows": report.row_count, "models": len(report.models)},
        )

        return report

    def save_run_report(
        self,
        report: RunReport,
        output_dir: str | Path | None = None,
    ) -> dict[str, str]:
        """
        Save the run report as Markdown and JSON.

        Args:
            report: RunReport to save
            output_dir: Directory to write to (defaults to the configured output directory)

        Returns:
            Dictionary of format -> written path
        """
        directory = Path(output_dir) if output_dir else get_output_path(config=self.config)
        directory.mkdir(parents=True, exist_ok=True)

        md_path = directory / "run_report.md"
        with open(md_path, "w", encoding="utf-8") as f:
            f.write(self._generate_markdown(report))

        json_path = directory / "run_report.json"
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, default=str)

        env_path = directory / "environment.txt"
        with open(env_path, "w", encoding="utf-8") as f:
            f.write(report.environment + "\n")

        logger.info(f"Run report saved to {md_path}")
        return {"markdown": str(md_path), "json": str(json_path), "environment": str(env_path)}

    def _extract_time_range(self, df: pd.DataFrame) -> dict[str, str] | None:
        """Earliest and latest OCCUR_DATE, if any."""
        if "OCCUR_DATE" not in df.columns:
            return None
        dates = df["OCCUR_DATE"].dropna()
        if dates.empty:
            return None
        return {
            "min": dates.min().strftime("%Y-%m-%d"),
            "max": dates.max().strftime("%Y-%m-%d"),
        }

    def _quality_notes(
        self,
        preprocessing: PreprocessingResult | None,
        aggregations: list[AggregationResult],
    ) -> list[str]:
        """Plain-language notes on nulls that affect the counts."""
        notes = []
        if preprocessing:
            for col, count in preprocessing.parse_failures.items():
                notes.append(f"{count} values in {col} could not be parsed and are null")
            for col, count in preprocessing.values_filled.items():
                notes.append(
                    f"{count} missing {col} values were set to "
                    f"'{self.config.analysis.unknown_label}'"
                )
        for agg in aggregations:
            excluded = agg.notes.get("excluded_null_occur_date", 0)
            if excluded:
                notes.append(f"{agg.name}: {excluded} records without OCCUR_DATE were excluded")
            null_keys = agg.notes.get("rows_in_null_key_buckets", 0)
            if null_keys:
                notes.append(
                    f"{agg.name}: {null_keys} records fall in buckets with a null HOUR or BORO"
                )
        return notes

    def _generate_markdown(self, report: RunReport) -> str:
        """Generate Markdown representation of the run report."""
        lines = []

        # Header
        lines.append(f"# Analysis Run: {report.dataset_name}")
        lines.append("")
        lines.append(f"**Execution Date:** {report.execution_date}  ")
        lines.append(f"**Created:** {report.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')}  ")
        if report.source_url:
            lines.append(f"**Source:** {report.source_url}  ")
        lines.append("")

        # Dataset
        lines.append("## Dataset Characteristics")
        lines.append("")
        lines.append(f"- **Rows:** {report.row_count:,}")
        lines.append(f"- **Columns:** {report.column_count}")
        if report.time_range:
            lines.append(
                f"- **Time Range:** {report.time_range['min']} to {report.time_range['max']}"
            )
        lines.append("")

        # Cleaning
        if report.preprocessing:
            pp = report.preprocessing
            lines.append("## Cleaning")
            lines.append("")
            lines.append(f"- **Rows:** {pp['rows_input']:,} → {pp['rows_output']:,}")
            lines.append(f"- **Columns:** {pp['columns_input']} → {pp['columns_output']}")
            steps = pp["transformations_applied"]
            if steps:
                lines.append("- **Steps:** " + ", ".join(f"`{t}`" for t in steps))
            lines.append("")

        # Aggregations
        if report.aggregations:
            lines.append("## Aggregations")
            lines.append("")
            lines.append("| Aggregate | Input rows | Groups | Excluded rows |")
            lines.append("|---|---|---|---|")
            for agg in report.aggregations:
                lines.append(
                    f"| {agg['name']} | {agg['rows_input']:,} | {agg['rows_output']:,} "
                    f"| {agg['rows_excluded']:,} |"
                )
            lines.append("")

        # Models
        if report.models or report.model_errors:
            lines.append("## Models")
            lines.append("")
            for model in report.models:
                lines.append(f"### {model['name']}: `{model['formula']}`")
                lines.append("")
                lines.append(f"- **Borough:** {model['borough']}")
                lines.append(f"- **Observations:** {model['nobs']}")
                lines.append(
                    f"- **R²:** {model['rsquared']:.4f} (adjusted {model['rsquared_adj']:.4f})"
                )
                lines.append("")
                lines.append("| Term | Coefficient | Std. Error | p-value |")
                lines.append("|---|---|---|---|")
                for term, coef in model["params"].items():
                    lines.append(
                        f"| {term} | {coef:.4f} | {model['bse'][term]:.4f} "
                        f"| {model['pvalues'][term]:.4g} |"
                    )
                lines.append("")
            for name, message in report.model_errors.items():
                lines.append(f"### {name}: not fitted")
                lines.append("")
                lines.append(f"- {message}")
                lines.append("")

        # Figures
        if report.figures:
            lines.append("## Charts")
            lines.append("")
            for name, path in report.figures.items():
                lines.append(f"- **{name}:** `{path}`")
            lines.append("")

        # Data quality
        if report.quality_notes:
            lines.append("## Data Quality Notes")
            lines.append("")
            for note in report.quality_notes:
                lines.append(f"- {note}")
            lines.append("")

        # Environment
        lines.append("## Environment")
        lines.append("")
        lines.append("```")
        lines.append(report.environment)
        lines.append("```")
        lines.append("")

        return "\n".join(lines)
