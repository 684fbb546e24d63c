"""
NYC Shootings - Base Ingester

Abstract base class for dataset ingesters. Provides a consistent interface
for fetching a dataset from its source with:
- Timing and structured logging
- Error capture into a result object
- Basic schema checks

Usage:
    class ShootingIngester(BaseIngester):
        def fetch_data(self) -> pd.DataFrame:
            ...
        def get_date_field(self) -> str:
            return "OCCUR_DATE"
        def get_primary_key(self) -> str:
            return "INCIDENT_KEY"
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
class IngestionResult:
    """Result of a data ingestion operation."""

    dataset: str
    execution_date: str
    rows_fetched: int
    source_url: str | None = None
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    columns: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_fetched": self.rows_fetched,
            "source_url": self.source_url,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "columns": self.columns,
            "metadata": self.metadata,
        }


class BaseIngester(ABC):
    """
    Abstract base class for dataset ingestion.

    Subclasses must implement:
    - fetch_data(): Fetch data from the source
    - get_date_field(): Return the field holding the event date
    - get_primary_key(): Return the primary key field
    - get_dataset_name(): Return the dataset name
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the ingester.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()

    @abstractmethod
    def fetch_data(self) -> pd.DataFrame:
        """
        Fetch data from the source.

        Returns:
            DataFrame containing the fetched data
        """
        pass

    @abstractmethod
    def get_date_field(self) -> str:
        """
        Get the field name holding the event date.

        Returns:
            Column name of the raw date field
        """
        pass

    @abstractmethod
    def get_primary_key(self) -> str:
        """
        Get the primary key field name.

        Returns:
            Column name that identifies each record
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

    def get_source_url(self) -> str | None:
        """
        Get the source URL for this dataset (optional).

        Returns:
            Source URL or None if not applicable
        """
        return None

    def run(self, execution_date: str) -> IngestionResult:
        """
        Run the ingestion process.

        A single attempt is made; failures are captured in the result
        rather than raised.

        Args:
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            IngestionResult with details about the ingestion
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        source_url = self.get_source_url()

        logger.info(
            f"Starting ingestion for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "source_url": source_url,
            },
        )

        try:
            df = self.fetch_data()

            duration = time.time() - start_time

            result = IngestionResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_fetched=len(df),
                source_url=source_url,
                duration_seconds=duration,
                success=True,
                columns=list(df.columns),
                metadata={
                    "primary_key": self.get_primary_key(),
                    "date_field": self.get_date_field(),
                },
            )

            logger.info(
                f"Ingestion complete for {dataset_name}: {len(df)} rows",
                extra=result.to_dict(),
            )

            # Store the dataframe for downstream access
            self._data = df

            return result

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Ingestion failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )

            return IngestionResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_fetched=0,
                source_url=source_url,
                duration_seconds=duration,
                success=False,
                error_message=str(e),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently fetched data."""
        return getattr(self, "_data", None)

    def validate_schema(self, df: pd.DataFrame) -> tuple[bool, list[str]]:
        """
        Perform basic schema validation on fetched data.

        Args:
            df: DataFrame to validate

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        pk = self.get_primary_key()
        if pk not in df.columns:
            errors.append(f"Primary key column '{pk}' not found")

        date_field = self.get_date_field()
        if date_field not in df.columns:
            errors.append(f"Date field '{date_field}' not found")

        if len(df) == 0:
            errors.append("DataFrame is empty")

        return len(errors) == 0, errors
