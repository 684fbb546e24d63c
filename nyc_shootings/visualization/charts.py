"""
NYC Shootings - Charts

Static charts of the incident aggregates and the monthly regressions.
Each plot function takes an aggregate, returns a matplotlib Figure and has
no other side effect; save_figure() writes and closes it.

Usage:
    fig = plot_incidents_by_month(buckets)
    save_figure(fig, "output/figures/incidents_by_month.png", dpi=300)
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from nyc_shootings.datasets.shootings.aggregate import MONTH_NAMES, totals_by  # noqa: E402
from nyc_shootings.modeling.regression import RegressionResult  # noqa: E402

logger = logging.getLogger(__name__)

BAR_COLOR = "steelblue"
LINE_COLOR = "#FF6B6B"
YEAR_PALETTE = "viridis"


def _require_rows(df: pd.DataFrame, what: str) -> None:
    if df is None or df.empty:
        raise ValueError(f"Cannot plot {what}: input is empty")


def _style_title(ax, title: str) -> None:
    ax.set_title(title, fontsize=14, fontweight="bold")


def plot_incidents_by_month(aggregate: pd.DataFrame) -> Figure:
    """Line and point chart of total incidents per calendar month."""
    _require_rows(aggregate, "incidents by month")

    totals = totals_by(aggregate, "MONTH")
    labels = [str(m)[:3] for m in totals["MONTH"]]

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.plot(labels, totals["INCIDENTS"], color=BAR_COLOR, linewidth=2)
    ax.scatter(labels, totals["INCIDENTS"], color=BAR_COLOR, s=40, zorder=3)
    _style_title(ax, "Shooting Incidents by Month")
    ax.set_xlabel("Month")
    ax.set_ylabel("Number of Incidents")
    fig.tight_layout()
    return fig


def plot_incidents_by_victim_age(aggregate: pd.DataFrame) -> Figure:
    """Bar chart of total incidents per victim age group."""
    _require_rows(aggregate, "incidents by victim age group")

    totals = totals_by(aggregate, "VIC_AGE_GROUP")

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.barplot(
        data=totals,
        x="VIC_AGE_GROUP",
        y="INCIDENTS",
        color=BAR_COLOR,
        errorbar=None,
        ax=ax,
    )
    _style_title(ax, "Shooting Incidents by Victim Age Group")
    ax.set_xlabel("Victim Age Group")
    ax.set_ylabel("Number of Incidents")
    ax.tick_params(axis="x", rotation=45)
    fig.tight_layout()
    return fig


def plot_incidents_by_borough(aggregate: pd.DataFrame) -> Figure:
    """Point chart of total incidents per borough."""
    _require_rows(aggregate, "incidents by borough")

    totals = totals_by(aggregate, "BORO")
    boroughs = totals["BORO"].astype("string").fillna("(missing)")

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.scatter(list(boroughs), totals["INCIDENTS"], color=BAR_COLOR, s=80)
    _style_title(ax, "Shooting Incidents by Borough")
    ax.set_xlabel("Borough")
    ax.set_ylabel("Number of Incidents")
    ax.tick_params(axis="x", rotation=45)
    fig.tight_layout()
    return fig


def _month_axis(ax) -> None:
    ax.set_xticks(range(1, 13))
    ax.set_xticklabels([m[:3] for m in MONTH_NAMES])
    ax.set_xlabel("Month")
    ax.set_ylabel("Number of Incidents")


def plot_month_model(series: pd.DataFrame, result: RegressionResult) -> Figure:
    """Scatter of the month-only series with the Model A fitted line."""
    _require_rows(series, "month model")

    grid = pd.DataFrame({"MONTH": range(1, 13)})

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.scatter(series["MONTH"], series["count"], color=BAR_COLOR, s=50, label="Observed")
    ax.plot(
        grid["MONTH"],
        result.predict(grid),
        color=LINE_COLOR,
        linestyle="--",
        linewidth=2,
        label=f"Fitted (R² = {result.rsquared:.3f})",
    )
    borough = f" ({result.borough.title()})" if result.borough else ""
    _style_title(ax, f"Incidents vs Month{borough}")
    _month_axis(ax)
    ax.legend()
    fig.tight_layout()
    return fig


def plot_month_year_model(series: pd.DataFrame, result: RegressionResult) -> Figure:
    """Scatter of the year-and-month series coloured by year, one Model B line per year."""
    _require_rows(series, "month and year model")

    years = sorted(series["YEAR"].unique())
    colors = dict(zip(years, sns.color_palette(YEAR_PALETTE, n_colors=len(years))))

    fig, ax = plt.subplots(figsize=(12, 7))
    for year in years:
        observed = series[series["YEAR"] == year]
        grid = pd.DataFrame({"MONTH": range(1, 13), "YEAR": year})
        ax.scatter(observed["MONTH"], observed["count"], color=colors[year], s=40, label=str(year))
        ax.plot(grid["MONTH"], result.predict(grid), color=colors[year], linewidth=1)

    borough = f" ({result.borough.title()})" if result.borough else ""
    _style_title(ax, f"Incidents vs Month and Year{borough}, R² = {result.rsquared:.3f}")
    _month_axis(ax)
    ax.legend(title="Year", bbox_to_anchor=(1.02, 1), loc="upper left", fontsize="small")
    fig.tight_layout()
    return fig


def save_figure(fig: Figure, path: str | Path, dpi: int = 300) -> Path:
    """Write a figure to disk and close it."""
    output_file = Path(path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_file, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved chart to {output_file}")
    return output_file
