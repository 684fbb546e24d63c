"""
NYC Shootings - Shooting Incident Dataset

NYPD Shooting Incident Data (Historic), one row per shooting incident.

Components:
    - ShootingIngester: Downloads the CSV export from NYC Open Data
    - ShootingPreprocessor: Parses dates/times, projects and fills columns
    - IncidentAggregator: Counts incidents per demographic/time bucket
    - BoroughMonthlyAggregator: Monthly incident series for one borough

Usage:
    from nyc_shootings.datasets.shootings import (
        IncidentAggregator,
        ShootingIngester,
        ShootingPreprocessor,
    )

    ingester = ShootingIngester()
    result = ingester.run(execution_date="2024-01-15")
    raw_df = ingester.get_data()

    preprocessor = ShootingPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2024-01-15")
    cleaned_df = preprocessor.get_data()

    aggregator = IncidentAggregator()
    result = aggregator.run(cleaned_df, execution_date="2024-01-15")
    buckets = aggregator.get_data()
"""

from nyc_shootings.datasets.shootings.aggregate import (
    BoroughMonthlyAggregator,
    IncidentAggregator,
    totals_by,
)
from nyc_shootings.datasets.shootings.ingest import (
    ShootingIngester,
    get_shooting_sample,
    ingest_shooting_data,
)
from nyc_shootings.datasets.shootings.preprocess import (
    ShootingPreprocessor,
    preprocess_shooting_data,
)

__all__ = [
    "ShootingIngester",
    "ShootingPreprocessor",
    "IncidentAggregator",
    "BoroughMonthlyAggregator",
    "totals_by",
    "ingest_shooting_data",
    "preprocess_shooting_data",
    "get_shooting_sample",
]
