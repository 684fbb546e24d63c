"""
NYC Shootings - Base Preprocessor

Abstract base class for dataset preprocessors. Provides a consistent interface
for data cleaning and transformation with:
- Data type conversion
- Missing value handling
- Tracking of applied transformations and unparseable values

Usage:
    class ShootingPreprocessor(BasePreprocessor):
        def transform(self, df: pd.DataFrame) -> pd.DataFrame:
            ...
        def get_required_columns(self) -> list[str]:
            return ["INCIDENT_KEY", "OCCUR_DATE"]
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

TRUTHY_VALUES = {"Y", "YES", "TRUE", "1"}


@dataclass
class PreprocessingResult:
    """Result of a preprocessing operation."""

    dataset: str
    execution_date: str
    rows_input: int
    rows_output: int
    columns_input: int
    columns_output: int
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    transformations_applied: list[str] = field(default_factory=list)
    parse_failures: dict[str, int] = field(default_factory=dict)
    values_filled: dict[str, int] = field(default_factory=dict)

    @property
    def rows_dropped(self) -> int:
        return self.rows_input - self.rows_output

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_input": self.rows_input,
            "rows_output": self.rows_output,
            "rows_dropped": self.rows_dropped,
            "columns_input": self.columns_input,
            "columns_output": self.columns_output,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "transformations_applied": self.transformations_applied,
            "parse_failures": self.parse_failures,
            "values_filled": self.values_filled,
        }


class BasePreprocessor(ABC):
    """
    Abstract base class for dataset preprocessing.

    Subclasses must implement:
    - transform(): Apply dataset-specific transformations
    - get_dataset_name(): Return the dataset name
    - get_required_columns(): Return list of required output columns
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the preprocessor.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self._transformations: list[str] = []
        self._parse_failures: dict[str, int] = {}
        self._values_filled: dict[str, int] = {}

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply dataset-specific transformations.

        Args:
            df: Raw DataFrame to transform

        Returns:
            Transformed DataFrame
        """
        pass

    @abstractmethod
    def get_dataset_name(self) -> str:
        """
        Get the dataset name.

        Returns:
            Dataset name (e.g., "shootings")
        """
        pass

    @abstractmethod
    def get_required_columns(self) -> list[str]:
        """
        Get list of required columns in the output.

        Returns:
            List of column names that must be present after preprocessing
        """
        pass

    def get_dtype_mappings(self) -> dict[str, str]:
        """
        Get data type mappings for columns.

        Override this method to specify target data types.
        """
        return {}

    def run(
        self,
        df: pd.DataFrame,
        execution_date: str,
    ) -> PreprocessingResult:
        """
        Run the preprocessing pipeline.

        Args:
            df: Raw DataFrame to preprocess
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            PreprocessingResult with details about the preprocessing
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        rows_input = len(df)
        columns_input = len(df.columns)

        logger.info(
            f"Starting preprocessing for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "rows_input": rows_input,
            },
        )

        try:
            # Reset tracking
            self._transformations = []
            self._parse_failures = {}
            self._values_filled = {}

            # Work on a copy so the raw frame stays untouched
            df = df.copy()

            df = self._apply_dtype_conversions(df)
            df = self.transform(df)

            self._validate_required_columns(df)

            duration = time.time() - start_time
            rows_output = len(df)

            result = PreprocessingResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=rows_output,
                columns_input=columns_input,
                columns_output=len(df.columns),
                duration_seconds=duration,
                success=True,
                transformations_applied=self._transformations,
                parse_failures=self._parse_failures,
                values_filled=self._values_filled,
            )

            logger.info(
                f"Preprocessing complete for {dataset_name}: {rows_input} -> {rows_output} rows",
                extra=result.to_dict(),
            )

            # Store processed data
            self._data = df

            return result

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Preprocessing failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )

            return PreprocessingResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=0,
                columns_input=columns_input,
                columns_output=0,
                duration_seconds=duration,
                success=False,
                error_message=str(e),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently processed data."""
        return getattr(self, "_data", None)

    def _apply_dtype_conversions(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply data type conversions."""
        for col, dtype in self.get_dtype_mappings().items():
            if col not in df.columns:
                continue
            if dtype == "int":
                df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")
            elif dtype == "float":
                df[col] = pd.to_numeric(df[col], errors="coerce")
            elif dtype == "bool":
                # Handle various representations: Y/N, 1/0, True/False, etc.
                df[col] = df[col].apply(lambda x: str(x).strip().upper() in TRUTHY_VALUES)
            elif dtype == "string":
                df[col] = df[col].astype("string")
            else:
                df[col] = df[col].astype(dtype)
            self._transformations.append(f"converted_{col}_to_{dtype}")
        return df

    def _validate_required_columns(self, df: pd.DataFrame) -> None:
        """Validate that all required columns are present."""
        missing = set(self.get_required_columns()) - set(df.columns)

        if missing:
            raise ValueError(f"Missing required columns: {sorted(missing)}")

    def log_transformation(self, name: str) -> None:
        """Log a transformation that was applied."""
        self._transformations.append(name)

    def log_parse_failures(self, col: str, count: int) -> None:
        """Record values in a column that could not be parsed."""
        if count > 0:
            self._parse_failures[col] = self._parse_failures.get(col, 0) + count
            logger.warning(f"{count} values in '{col}' could not be parsed and were set to null")

    # ==========================================================================
    # Common Preprocessing Utilities
    # ==========================================================================

    def fill_missing(
        self,
        df: pd.DataFrame,
        col: str,
        value: Any,
    ) -> pd.DataFrame:
        """Fill missing values in a column."""
        missing_count = int(df[col].isna().sum())
        if missing_count > 0:
            df[col] = df[col].fillna(value)
            self._values_filled[col] = missing_count
            self.log_transformation(f"fill_missing_{col}")
        return df
