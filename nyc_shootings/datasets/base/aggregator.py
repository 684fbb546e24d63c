"""
NYC Shootings - Base Aggregator

Abstract base class for aggregations over cleaned records. Provides a
consistent interface for:
- Group-and-count aggregation
- Per-column statistics on the output
- Validation of output columns against their definitions

Usage:
    class IncidentAggregator(BaseAggregator):
        def aggregate(self, df: pd.DataFrame) -> pd.DataFrame:
            ...
        def get_column_definitions(self) -> list[ColumnDefinition]:
            ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from nyc_shootings.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


@dataclass
class ColumnDefinition:
    """Definition of an aggregate output column."""

    name: str
    description: str
    dtype: str
    source_columns: list[str]
    aggregation: str | None = None  # count, sum, ...
    nullable: bool = False
    min_value: float | None = None
    max_value: float | None = None


@dataclass
class AggregationResult:
    """Result of an aggregation operation."""

    dataset: str
    name: str
    execution_date: str
    rows_input: int
    rows_output: int
    rows_excluded: int = 0
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    column_stats: dict[str, dict[str, Any]] = field(default_factory=dict)
    notes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "name": self.name,
            "execution_date": self.execution_date,
            "rows_input": self.rows_input,
            "rows_output": self.rows_output,
            "rows_excluded": self.rows_excluded,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "column_stats": self.column_stats,
            "notes": self.notes,
        }


class BaseAggregator(ABC):
    """
    Abstract base class for aggregations.

    Subclasses must implement:
    - aggregate(): Compute the aggregate from cleaned data
    - get_dataset_name(): Return the dataset name
    - get_aggregation_name(): Return a short name for this aggregate
    - get_column_definitions(): Return list of output column definitions
    - get_group_keys(): Return the grouping key column(s)
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the aggregator.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self._column_stats: dict[str, dict[str, Any]] = {}
        self._rows_excluded = 0
        self._notes: dict[str, Any] = {}

    @abstractmethod
    def aggregate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Aggregate cleaned data.

        Args:
            df: Cleaned DataFrame

        Returns:
            Aggregated DataFrame
        """
        pass

    @abstractmethod
    def get_dataset_name(self) -> str:
        """Get the dataset name."""
        pass

    @abstractmethod
    def get_aggregation_name(self) -> str:
        """Get the name of this aggregate (used in logs and reports)."""
        pass

    @abstractmethod
    def get_column_definitions(self) -> list[ColumnDefinition]:
        """
        Get list of output column definitions.

        Returns:
            List of ColumnDefinition objects describing each output column
        """
        pass

    @abstractmethod
    def get_group_keys(self) -> list[str]:
        """
        Get the grouping key columns.

        Returns:
            List of column names the aggregate is keyed on
        """
        pass

    def run(
        self,
        df: pd.DataFrame,
        execution_date: str,
    ) -> AggregationResult:
        """
        Run the aggregation.

        Args:
            df: Cleaned DataFrame
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            AggregationResult with details about the aggregation
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        name = self.get_aggregation_name()
        rows_input = len(df)

        logger.info(
            f"Starting aggregation '{name}' for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "aggregation": name,
                "execution_date": execution_date,
                "rows_input": rows_input,
            },
        )

        try:
            self._column_stats = {}
            self._rows_excluded = 0
            self._notes = {}

            aggregated = self.aggregate(df)

            self._compute_column_stats(aggregated)
            self._validate_columns(aggregated)

            duration = time.time() - start_time

            result = AggregationResult(
                dataset=dataset_name,
                name=name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=len(aggregated),
                rows_excluded=self._rows_excluded,
                duration_seconds=duration,
                success=True,
                column_stats=self._column_stats,
                notes=self._notes,
            )

            logger.info(
                f"Aggregation '{name}' complete for {dataset_name}: "
                f"{rows_input} rows -> {len(aggregated)} groups",
                extra=result.to_dict(),
            )

            self._data = aggregated

            return result

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Aggregation '{name}' failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "aggregation": name, "error": str(e)},
                exc_info=True,
            )

            return AggregationResult(
                dataset=dataset_name,
                name=name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=0,
                duration_seconds=duration,
                success=False,
                error_message=str(e),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently computed aggregate."""
        return getattr(self, "_data", None)

    def log_excluded_rows(self, reason: str, count: int) -> None:
        """Record rows left out of the aggregate."""
        if count > 0:
            self._rows_excluded += count
            self._notes[f"excluded_{reason}"] = self._notes.get(f"excluded_{reason}", 0) + count
            logger.warning(f"Excluded {count} rows from '{self.get_aggregation_name()}': {reason}")

    def add_note(self, key: str, value: Any) -> None:
        """Attach a data-quality note to the result."""
        self._notes[key] = value

    def _compute_column_stats(self, df: pd.DataFrame) -> None:
        """Compute statistics for each output column."""
        for col in df.columns:
            stats: dict[str, Any] = {
                "dtype": str(df[col].dtype),
                "null_count": int(df[col].isna().sum()),
            }

            if pd.api.types.is_numeric_dtype(df[col]) and not pd.api.types.is_bool_dtype(df[col]):
                non_null = df[col].dropna()
                if len(non_null) > 0:
                    stats.update(
                        {
                            "sum": float(non_null.sum()),
                            "mean": float(non_null.mean()),
                            "min": float(non_null.min()),
                            "max": float(non_null.max()),
                        }
                    )
            else:
                stats["unique_count"] = int(df[col].nunique())

            self._column_stats[col] = stats

    def _validate_columns(self, df: pd.DataFrame) -> None:
        """Validate output columns against definitions."""
        definitions = {d.name: d for d in self.get_column_definitions()}

        missing = [name for name in definitions if name not in df.columns]
        if missing:
            raise ValueError(f"Aggregate is missing columns: {missing}")

        for col, defn in definitions.items():
            if not defn.nullable and df[col].isna().any():
                logger.warning(f"Column '{col}' has null values but is marked as non-nullable")

            if pd.api.types.is_numeric_dtype(df[col]):
                if defn.min_value is not None and (df[col] < defn.min_value).any():
                    logger.warning(f"Column '{col}' has values below minimum {defn.min_value}")
                if defn.max_value is not None and (df[col] > defn.max_value).any():
                    logger.warning(f"Column '{col}' has values above maximum {defn.max_value}")
