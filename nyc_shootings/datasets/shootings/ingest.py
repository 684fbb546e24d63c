"""
NYC Shootings - Shooting Incident Ingester

Downloads the NYPD Shooting Incident Data (Historic) CSV from NYC Open Data.

Data Source:
    NYPD Shooting Incident Data (Historic)
    https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Configuration:
    Download URL and timeout from the `source` config section,
    field names from configs/datasets/shootings.yaml

Usage:
    from nyc_shootings.datasets.shootings.ingest import ShootingIngester

    ingester = ShootingIngester()
    result = ingester.run(execution_date="2024-01-15")
    df = ingester.get_data()
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Any

import pandas as pd
import requests

from nyc_shootings.datasets.base import BaseIngester
from nyc_shootings.shared.config import Settings, get_dataset_config

logger = logging.getLogger(__name__)

# =============================================================================
# Dataset Configuration (loaded from shootings.yaml)
# =============================================================================
DATASET_CONFIG = get_dataset_config("shootings")

INGESTION_CONFIG = DATASET_CONFIG.get("ingestion", {})
PRIMARY_KEY = INGESTION_CONFIG.get("primary_key", "INCIDENT_KEY")
DATE_FIELD = INGESTION_CONFIG.get("date_field", "OCCUR_DATE")
TIME_FIELD = INGESTION_CONFIG.get("time_field", "OCCUR_TIME")


class ShootingIngester(BaseIngester):
    """
    Ingester for NYPD shooting incident data.

    Makes a single GET request for the full CSV export; there is no
    pagination, retry or local caching.
    """

    def __init__(self, config: Settings | None = None):
        """Initialize shooting ingester with the configured source."""
        super().__init__(config)
        self.source_url = self.config.source.url
        self.timeout = self.config.source.timeout_seconds
        self.headers = {
            "User-Agent": self.config.source.user_agent,
            "Accept": "text/csv,*/*;q=0.8",
        }

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_date_field(self) -> str:
        """Return the raw date field (from config)."""
        return DATE_FIELD

    def get_primary_key(self) -> str:
        """Return the primary key field (from config)."""
        return PRIMARY_KEY

    def get_source_url(self) -> str:
        """Get the CSV download URL."""
        return self.source_url

    def _download(self) -> str:
        """Issue the GET request and return the response body."""
        logger.info(f"Downloading from: {self.source_url}")

        response = requests.get(self.source_url, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()

        logger.info(f"Response received. Status: {response.status_code}")
        return response.text

    def _read_csv(self, text: str, nrows: int | None = None) -> pd.DataFrame:
        """Parse the CSV payload, keeping date/time fields as text."""
        df = pd.read_csv(
            StringIO(text),
            nrows=nrows,
            dtype={PRIMARY_KEY: str, DATE_FIELD: str, TIME_FIELD: str},
        )
        if df.empty:
            raise ValueError("Downloaded dataset is empty")
        return df

    def fetch_data(self) -> pd.DataFrame:
        """
        Fetch the shooting incident CSV.

        Returns:
            DataFrame with one row per source record and the published columns

        Raises:
            requests.RequestException: network failure or non-2xx response
            pandas.errors.ParserError: payload is not well-formed CSV
            ValueError: payload has no rows
        """
        df = self._read_csv(self._download())

        logger.info(
            f"Fetched {len(df)} shooting records",
            extra={"rows": len(df), "columns": list(df.columns)},
        )

        return df

    def fetch_sample_data(self, n: int = 1000) -> pd.DataFrame:
        """
        Fetch only the first rows of the CSV for development.

        Args:
            n: Number of records to parse

        Returns:
            DataFrame with sample shooting data
        """
        return self._read_csv(self._download(), nrows=n)


# =============================================================================
# Convenience Functions
# =============================================================================


def ingest_shooting_data(
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for ingesting shooting data.

    Returns the ingestion result as a dictionary.
    """
    ingester = ShootingIngester(config)
    result = ingester.run(execution_date)
    return result.to_dict()


def get_shooting_sample(n: int = 1000, config: Settings | None = None) -> pd.DataFrame:
    """Convenience function to get a sample of shooting data."""
    ingester = ShootingIngester(config)
    return ingester.fetch_sample_data(n)
