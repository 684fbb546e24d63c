"""
NYC Shootings - Shooting Incident Preprocessor

Cleans the raw shooting incident table.

Transformations (in order):
    - OCCUR_DATE parsed from MM/DD/YY (MM/DD/YYYY also accepted),
      OCCUR_TIME parsed to a time of day; bad values become null
    - Projection onto the 12 analysis columns
    - HOUR derived from OCCUR_TIME
    - Missing perpetrator/victim age group and sex replaced with "UNKNOWN"

Only those four demographic columns are filled. Nulls elsewhere (dates,
times, HOUR, borough, coordinates) are left in place and reported.

Usage:
    from nyc_shootings.datasets.shootings.preprocess import ShootingPreprocessor

    preprocessor = ShootingPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2024-01-15")
    cleaned_df = preprocessor.get_data()
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from nyc_shootings.datasets.base import BasePreprocessor
from nyc_shootings.shared.config import Settings

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%m/%d/%y", "%m/%d/%Y")


def _as_text(values: pd.Series) -> pd.Series:
    """Stripped string values as an object Series, with None for missing."""
    stripped = values.astype("string").str.strip()
    return pd.Series(stripped.to_numpy(dtype=object, na_value=None), index=values.index)


def parse_occur_date(values: pd.Series) -> pd.Series:
    """
    Parse MM/DD/YY text into dates.

    Values that do not match a two-digit year are retried with a four-digit
    year, which is what the published export uses. Anything else becomes NaT.
    """
    text = _as_text(values)
    parsed = pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns]")
    for fmt in DATE_FORMATS:
        pending = parsed.isna() & text.notna()
        if not pending.any():
            break
        parsed[pending] = pd.to_datetime(text[pending], format=fmt, errors="coerce")
    return parsed


def parse_occur_time(values: pd.Series) -> pd.Series:
    """
    Parse HH:MM:SS text into a time of day, held as the offset since midnight.

    Values outside [00:00:00, 24:00:00) become NaT.
    """
    parsed = pd.to_timedelta(_as_text(values), errors="coerce")
    out_of_range = (parsed < pd.Timedelta(0)) | (parsed >= pd.Timedelta(days=1))
    return parsed.mask(out_of_range)


def hour_of_day(times: pd.Series) -> pd.Series:
    """Integer hour (0-23) of a time-of-day series; null times give null hours."""
    return (times // pd.Timedelta(hours=1)).astype("Int64")


class ShootingPreprocessor(BasePreprocessor):
    """
    Preprocessor for NYPD shooting incident data.

    Handles typed date/time parsing, column projection, hour derivation
    and "UNKNOWN" substitution for the demographic columns.
    """

    # Columns kept after cleaning, in output order
    OUTPUT_COLUMNS = [
        "INCIDENT_KEY",
        "OCCUR_TIME",
        "OCCUR_DATE",
        "BORO",
        "PRECINCT",
        "STATISTICAL_MURDER_FLAG",
        "PERP_AGE_GROUP",
        "PERP_SEX",
        "VIC_AGE_GROUP",
        "VIC_SEX",
        "Latitude",
        "Longitude",
    ]

    # Demographic columns whose nulls become the unknown label
    UNKNOWN_FILL_COLUMNS = [
        "PERP_AGE_GROUP",
        "PERP_SEX",
        "VIC_AGE_GROUP",
        "VIC_SEX",
    ]

    DTYPE_MAPPINGS = {
        "INCIDENT_KEY": "string",
        "BORO": "string",
        "PRECINCT": "int",
        "STATISTICAL_MURDER_FLAG": "bool",
        "PERP_AGE_GROUP": "string",
        "PERP_SEX": "string",
        "VIC_AGE_GROUP": "string",
        "VIC_SEX": "string",
        "Latitude": "float",
        "Longitude": "float",
    }

    def __init__(self, config: Settings | None = None):
        """Initialize shooting preprocessor."""
        super().__init__(config)
        self.unknown_label = self.config.analysis.unknown_label

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_required_columns(self) -> list[str]:
        """Return required output columns."""
        return self.OUTPUT_COLUMNS + ["HOUR"]

    def get_dtype_mappings(self) -> dict[str, str]:
        """Return data type mappings."""
        return self.DTYPE_MAPPINGS

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply shooting-specific cleaning.

        The steps run in a fixed order: HOUR needs the parsed OCCUR_TIME,
        and the fill must see the projected columns only.

        Args:
            df: Raw DataFrame

        Returns:
            Cleaned DataFrame with the 12 projected columns plus HOUR
        """
        df = self._parse_datetime_fields(df)
        df = self._select_output_columns(df)
        df = self._derive_hour(df)
        df = self._fill_unknown_demographics(df)
        return df

    def _parse_datetime_fields(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse OCCUR_DATE and OCCUR_TIME; bad rows become NaT."""
        parsers = {"OCCUR_DATE": parse_occur_date, "OCCUR_TIME": parse_occur_time}

        for col, parse in parsers.items():
            if col not in df.columns:
                continue
            parsed = parse(df[col])
            self.log_parse_failures(col, int((parsed.isna() & df[col].notna()).sum()))
            df[col] = parsed
            self.log_transformation(f"parse_{col.lower()}")

        return df

    def _select_output_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Project onto exactly the analysis columns."""
        missing = [c for c in self.OUTPUT_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        df = df[self.OUTPUT_COLUMNS].copy()
        self.log_transformation("select_output_columns")
        return df

    def _derive_hour(self, df: pd.DataFrame) -> pd.DataFrame:
        """Derive the integer hour of day from OCCUR_TIME."""
        df["HOUR"] = hour_of_day(df["OCCUR_TIME"])

        null_hours = int(df["HOUR"].isna().sum())
        if null_hours > 0:
            logger.warning(f"{null_hours} records have no usable OCCUR_TIME; HOUR left null")

        self.log_transformation("derive_hour")
        return df

    def _fill_unknown_demographics(self, df: pd.DataFrame) -> pd.DataFrame:
        """Replace missing demographic values with the unknown label."""
        for col in self.UNKNOWN_FILL_COLUMNS:
            df = self.fill_missing(df, col, self.unknown_label)
        return df


# =============================================================================
# Convenience Functions
# =============================================================================


def preprocess_shooting_data(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for preprocessing shooting data.

    Returns the preprocessing result as a dictionary.
    """
    preprocessor = ShootingPreprocessor(config)
    result = preprocessor.run(df, execution_date)
    return result.to_dict()
