"""
NYC Shootings - Incident Aggregations

Group-and-count aggregations over cleaned shooting records.

Aggregates:
    - IncidentAggregator: INCIDENTS per (BORO, MONTH, HOUR, PERP_AGE_GROUP,
      PERP_SEX, VIC_AGE_GROUP, VIC_SEX), MONTH as a month name
    - BoroughMonthlyAggregator: `count` per (YEAR, MONTH) for one borough,
      or per MONTH only, MONTH numeric 1-12

Records with no OCCUR_DATE cannot be placed in a month and are excluded
from every aggregate; the number excluded is logged and reported. Null
values in the other keys (HOUR, BORO) are kept as their own group.

Usage:
    from nyc_shootings.datasets.shootings.aggregate import IncidentAggregator

    aggregator = IncidentAggregator()
    result = aggregator.run(cleaned_df, execution_date="2024-01-15")
    buckets = aggregator.get_data()
"""

from __future__ import annotations

import calendar
import logging

import pandas as pd

from nyc_shootings.datasets.base import BaseAggregator, ColumnDefinition
from nyc_shootings.shared.config import Settings

logger = logging.getLogger(__name__)

MONTH_NAMES = list(calendar.month_name)[1:]
MONTH_DTYPE = pd.CategoricalDtype(categories=MONTH_NAMES, ordered=True)


def month_names(dates: pd.Series) -> pd.Series:
    """Month name of each date as an ordered January..December categorical."""
    return dates.dt.month_name().astype(MONTH_DTYPE)


def totals_by(aggregate: pd.DataFrame, column: str) -> pd.DataFrame:
    """
    Sum INCIDENTS per value of one key column of the primary aggregate.

    Categorical keys keep their category order; other keys are sorted.
    Unobserved categories are dropped.
    """
    totals = (
        aggregate.groupby(column, observed=True, dropna=False, sort=True)["INCIDENTS"]
        .sum()
        .reset_index()
    )
    return totals


class IncidentAggregator(BaseAggregator):
    """
    Primary aggregation: incident counts per demographic/time bucket.

    Invariant: the INCIDENTS column sums to the number of input rows with
    a non-null OCCUR_DATE.
    """

    GROUP_KEYS = [
        "BORO",
        "MONTH",
        "HOUR",
        "PERP_AGE_GROUP",
        "PERP_SEX",
        "VIC_AGE_GROUP",
        "VIC_SEX",
    ]

    def __init__(self, config: Settings | None = None):
        """Initialize incident aggregator."""
        super().__init__(config)

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_aggregation_name(self) -> str:
        """Return aggregate name."""
        return "incident_buckets"

    def get_group_keys(self) -> list[str]:
        """Return grouping keys."""
        return self.GROUP_KEYS

    def get_column_definitions(self) -> list[ColumnDefinition]:
        """Return output column definitions."""
        return [
            ColumnDefinition(
                name="BORO",
                description="Borough of occurrence",
                dtype="string",
                source_columns=["BORO"],
            ),
            ColumnDefinition(
                name="MONTH",
                description="Month name of OCCUR_DATE",
                dtype="category",
                source_columns=["OCCUR_DATE"],
            ),
            ColumnDefinition(
                name="HOUR",
                description="Hour of day of OCCUR_TIME",
                dtype="int",
                source_columns=["OCCUR_TIME"],
                nullable=True,
                min_value=0,
                max_value=23,
            ),
            ColumnDefinition(
                name="PERP_AGE_GROUP",
                description="Perpetrator age group",
                dtype="string",
                source_columns=["PERP_AGE_GROUP"],
            ),
            ColumnDefinition(
                name="PERP_SEX",
                description="Perpetrator sex",
                dtype="string",
                source_columns=["PERP_SEX"],
            ),
            ColumnDefinition(
                name="VIC_AGE_GROUP",
                description="Victim age group",
                dtype="string",
                source_columns=["VIC_AGE_GROUP"],
            ),
            ColumnDefinition(
                name="VIC_SEX",
                description="Victim sex",
                dtype="string",
                source_columns=["VIC_SEX"],
            ),
            ColumnDefinition(
                name="INCIDENTS",
                description="Number of incidents in the bucket",
                dtype="int",
                source_columns=["INCIDENT_KEY"],
                aggregation="count",
                min_value=1,
            ),
        ]

    def aggregate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents per bucket.

        Args:
            df: Cleaned shooting DataFrame

        Returns:
            One row per observed bucket with an INCIDENTS count
        """
        dated = _drop_undated(df, self)
        dated["MONTH"] = month_names(dated["OCCUR_DATE"])

        null_key_rows = int(dated[self.GROUP_KEYS].isna().any(axis=1).sum())
        if null_key_rows > 0:
            logger.warning(
                f"{null_key_rows} records have a null grouping key (HOUR or BORO) "
                "and are counted in a null bucket"
            )
        self.add_note("rows_in_null_key_buckets", null_key_rows)

        buckets = (
            dated.groupby(self.GROUP_KEYS, observed=True, dropna=False, sort=True)
            .size()
            .reset_index(name="INCIDENTS")
        )
        buckets["INCIDENTS"] = buckets["INCIDENTS"].astype("int64")

        return buckets


class BoroughMonthlyAggregator(BaseAggregator):
    """
    Per-borough monthly incident series used as regression input.

    With by_year=True the series is keyed on (YEAR, MONTH); with
    by_year=False the year is discarded and the series is keyed on MONTH
    only. Re-summing the first by MONTH reproduces the second.
    """

    def __init__(
        self,
        borough: str | None = None,
        by_year: bool = True,
        config: Settings | None = None,
    ):
        """
        Initialize the borough aggregator.

        Args:
            borough: Exact, case-sensitive BORO value (defaults to config)
            by_year: Keep YEAR in the grouping key
            config: Configuration object (uses default if not provided)
        """
        super().__init__(config)
        self.borough = borough or self.config.analysis.borough
        self.by_year = by_year

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_aggregation_name(self) -> str:
        """Return aggregate name."""
        suffix = "year_month" if self.by_year else "month"
        return f"{self.borough.lower()}_{suffix}_counts"

    def get_group_keys(self) -> list[str]:
        """Return grouping keys."""
        return ["YEAR", "MONTH"] if self.by_year else ["MONTH"]

    def get_column_definitions(self) -> list[ColumnDefinition]:
        """Return output column definitions."""
        definitions = [
            ColumnDefinition(
                name="MONTH",
                description="Calendar month of OCCUR_DATE",
                dtype="int",
                source_columns=["OCCUR_DATE"],
                min_value=1,
                max_value=12,
            ),
            ColumnDefinition(
                name="count",
                description=f"Incidents in {self.borough}",
                dtype="int",
                source_columns=["INCIDENT_KEY"],
                aggregation="count",
                min_value=1,
            ),
        ]
        if self.by_year:
            definitions.insert(
                0,
                ColumnDefinition(
                    name="YEAR",
                    description="Calendar year of OCCUR_DATE",
                    dtype="int",
                    source_columns=["OCCUR_DATE"],
                ),
            )
        return definitions

    def aggregate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents in the borough per month (and year).

        Args:
            df: Cleaned shooting DataFrame

        Returns:
            DataFrame with the grouping keys and a `count` column
        """
        # Nullable string comparisons yield NA for missing boroughs
        matches = (df["BORO"] == self.borough).fillna(False).astype(bool)
        in_borough = df[matches]

        if in_borough.empty:
            logger.warning(f"No records found for borough '{self.borough}'")

        dated = _drop_undated(in_borough, self)
        dated["YEAR"] = dated["OCCUR_DATE"].dt.year.astype("int64")
        dated["MONTH"] = dated["OCCUR_DATE"].dt.month.astype("int64")

        keys = self.get_group_keys()
        series = dated.groupby(keys, sort=True).size().reset_index(name="count")
        series["count"] = series["count"].astype("int64")

        self.add_note("borough", self.borough)
        self.add_note("borough_rows", len(in_borough))

        return series


def _drop_undated(df: pd.DataFrame, aggregator: BaseAggregator) -> pd.DataFrame:
    """Return a copy of df without rows whose OCCUR_DATE is null."""
    undated = df["OCCUR_DATE"].isna()
    aggregator.log_excluded_rows("null_occur_date", int(undated.sum()))
    return df[~undated].copy()
