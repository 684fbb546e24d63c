"""
NYC Shootings - Analysis Pipeline

Runs the analysis once, start to finish:

    ingest -> preprocess -> aggregate -> model -> chart -> report

Ingestion and preprocessing failures abort the run with a
PipelineStageError. A model that cannot be fitted is logged and recorded
in AnalysisResult.model_errors; its chart is skipped and the rest of the
run carries on.

Usage:
    from nyc_shootings.pipeline import run_analysis

    result = run_analysis()
    print(result.summaries)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd

from nyc_shootings.datasets.base import AggregationResult, BaseAggregator
from nyc_shootings.datasets.shootings import (
    BoroughMonthlyAggregator,
    IncidentAggregator,
    ShootingIngester,
    ShootingPreprocessor,
)
from nyc_shootings.modeling.regression import (
    InsufficientDataError,
    RegressionResult,
    fit_month_model,
    fit_month_year_model,
)
from nyc_shootings.reporting.report import (
    RunReportGenerator,
    format_model_summaries,
    write_model_summaries,
)
from nyc_shootings.shared.config import Settings, get_config, get_output_path
from nyc_shootings.visualization import charts

logger = logging.getLogger(__name__)


class PipelineStageError(RuntimeError):
    """Raised when a stage fails and the run cannot continue."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage} failed: {message}")
        self.stage = stage


@dataclass
class AnalysisResult:
    """Everything an analysis run produced."""

    execution_date: str
    cleaned: pd.DataFrame
    buckets: pd.DataFrame
    year_month_series: pd.DataFrame
    month_series: pd.DataFrame
    models: dict[str, RegressionResult] = field(default_factory=dict)
    model_errors: dict[str, str] = field(default_factory=dict)
    figures: dict[str, Path] = field(default_factory=dict)
    report_paths: dict[str, str] = field(default_factory=dict)
    summaries: str = ""

    @property
    def success(self) -> bool:
        return not self.model_errors


def _run_aggregator(
    aggregator: BaseAggregator,
    df: pd.DataFrame,
    execution_date: str,
) -> tuple[pd.DataFrame, AggregationResult]:
    """Run one aggregator, raising PipelineStageError if it fails."""
    result = aggregator.run(df, execution_date)
    if not result.success:
        raise PipelineStageError(f"aggregate:{result.name}", result.error_message or "unknown")
    return aggregator.get_data(), result


def run_analysis(
    config: Settings | None = None,
    execution_date: str | None = None,
) -> AnalysisResult:
    """
    Run the full analysis once.

    Args:
        config: Configuration object (uses default if not provided)
        execution_date: Run date in YYYY-MM-DD format (defaults to today, UTC)

    Returns:
        AnalysisResult with the tables, models, charts and report paths

    Raises:
        PipelineStageError: ingestion, preprocessing or aggregation failed
    """
    config = config or get_config()
    execution_date = execution_date or datetime.now(UTC).strftime("%Y-%m-%d")
    borough = config.analysis.borough
    min_dof = config.analysis.min_residual_dof

    logger.info(
        f"Starting analysis run for {execution_date}",
        extra={"execution_date": execution_date, "borough": borough},
    )

    # Load
    ingester = ShootingIngester(config)
    ingest_result = ingester.run(execution_date)
    if not ingest_result.success:
        raise PipelineStageError("ingest", ingest_result.error_message or "unknown")

    # Clean
    preprocessor = ShootingPreprocessor(config)
    preprocess_result = preprocessor.run(ingester.get_data(), execution_date)
    if not preprocess_result.success:
        raise PipelineStageError("preprocess", preprocess_result.error_message or "unknown")
    cleaned = preprocessor.get_data()

    # Aggregate
    aggregations: list[AggregationResult] = []
    buckets, result = _run_aggregator(IncidentAggregator(config), cleaned, execution_date)
    aggregations.append(result)
    year_month, result = _run_aggregator(
        BoroughMonthlyAggregator(borough, by_year=True, config=config), cleaned, execution_date
    )
    aggregations.append(result)
    month_only, result = _run_aggregator(
        BoroughMonthlyAggregator(borough, by_year=False, config=config), cleaned, execution_date
    )
    aggregations.append(result)

    analysis = AnalysisResult(
        execution_date=execution_date,
        cleaned=cleaned,
        buckets=buckets,
        year_month_series=year_month,
        month_series=month_only,
    )

    # Model
    fits = {
        "month_model": (fit_month_model, month_only),
        "month_year_model": (fit_month_year_model, year_month),
    }
    for key, (fit, series) in fits.items():
        try:
            analysis.models[key] = fit(series, borough=borough, min_residual_dof=min_dof)
        except InsufficientDataError as e:
            logger.error(f"Could not fit {key}: {e}", extra={"model": key, "borough": borough})
            analysis.model_errors[key] = str(e)

    # Chart
    analysis.figures = _render_charts(analysis, config)

    # Report
    models = list(analysis.models.values())
    analysis.summaries = format_model_summaries(models)
    if models:
        write_model_summaries(models, get_output_path("model_summaries.txt", config=config))

    generator = RunReportGenerator(config)
    report = generator.generate_run_report(
        cleaned_df=cleaned,
        execution_date=execution_date,
        source_url=ingest_result.source_url,
        preprocessing=preprocess_result,
        aggregations=aggregations,
        models=models,
        model_errors=analysis.model_errors,
        figures=analysis.figures,
    )
    analysis.report_paths = generator.save_run_report(report)

    logger.info(
        f"Analysis run complete for {execution_date}",
        extra={
            "models_fitted": list(analysis.models),
            "model_errors": analysis.model_errors,
            "figures": len(analysis.figures),
        },
    )

    return analysis


def _render_charts(analysis: AnalysisResult, config: Settings) -> dict[str, Path]:
    """Render and save every chart whose input is available."""
    output = config.output
    figure_dir = get_output_path(output.figures_subdir, config=config)

    figures = {
        "incidents_by_month": charts.plot_incidents_by_month(analysis.buckets),
        "incidents_by_victim_age": charts.plot_incidents_by_victim_age(analysis.buckets),
        "incidents_by_borough": charts.plot_incidents_by_borough(analysis.buckets),
    }
    if "month_model" in analysis.models:
        figures["month_model"] = charts.plot_month_model(
            analysis.month_series, analysis.models["month_model"]
        )
    if "month_year_model" in analysis.models:
        figures["month_year_model"] = charts.plot_month_year_model(
            analysis.year_month_series, analysis.models["month_year_model"]
        )

    return {
        name: charts.save_figure(fig, figure_dir / f"{name}.{output.figure_format}", output.dpi)
        for name, fig in figures.items()
    }
