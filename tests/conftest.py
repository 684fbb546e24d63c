"""
NYC Shootings - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Configuration fixtures
- Sample raw and cleaned shooting records
- Mock fixtures for the CSV download
"""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402
import pytest  # noqa: E402

# Set test environment
os.environ["NS_ENVIRONMENT"] = "dev"

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def configs_dir(project_root: Path) -> Path:
    """Get the configs directory."""
    return project_root / "configs"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config() -> Any:
    """Get test configuration."""
    from nyc_shootings.shared.config import reload_config

    # Ensure fresh config for tests
    return reload_config("dev")


@pytest.fixture
def output_config(test_config: Any, tmp_path: Path) -> Any:
    """Test configuration writing its output under tmp_path."""
    return test_config.model_copy(
        update={
            "output": test_config.output.model_copy(
                update={"directory": str(tmp_path / "output"), "dpi": 50}
            )
        }
    )


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def raw_shootings() -> pd.DataFrame:
    """Raw records in the published CSV layout, as read by pandas."""
    return pd.DataFrame(
        {
            "INCIDENT_KEY": ["1001", "1002", "1003", "1004", "1005", "1006"],
            "OCCUR_DATE": [
                "01/05/2023",
                "01/07/2023",
                "02/01/2023",
                "03/15/2022",
                "not a date",
                "07/04/2022",
            ],
            "OCCUR_TIME": ["13:45:00", "00:10:00", "23:59:59", "garbage", "08:00:00", None],
            "BORO": ["BROOKLYN", "BROOKLYN", "BROOKLYN", "BRONX", "QUEENS", "MANHATTAN"],
            "LOC_OF_OCCUR_DESC": ["OUTSIDE", None, "INSIDE", None, None, "OUTSIDE"],
            "PRECINCT": [75, 73, 67, 44, 103, 28],
            "JURISDICTION_CODE": [0, 0, 2, 0, 0, 0],
            "STATISTICAL_MURDER_FLAG": [False, True, False, False, True, False],
            "PERP_AGE_GROUP": ["18-24", None, "25-44", "1020", None, "UNKNOWN"],
            "PERP_SEX": ["M", None, "M", "F", None, "U"],
            "PERP_RACE": ["BLACK", None, "WHITE HISPANIC", "BLACK", None, "UNKNOWN"],
            "VIC_AGE_GROUP": ["25-44", "18-24", None, "<18", "45-64", "25-44"],
            "VIC_SEX": ["M", "M", "F", None, "M", "M"],
            "VIC_RACE": ["BLACK", "BLACK", "WHITE", "BLACK", "ASIAN / PACIFIC ISLANDER", "BLACK"],
            "X_COORD_CD": [1000953.0, 1004000.5, 998000.0, 1010000.0, 1040000.0, 998500.0],
            "Y_COORD_CD": [185000.0, 183000.0, 176000.0, 245000.0, 195000.0, 231000.0],
            "Latitude": [40.67, 40.66, 40.65, 40.84, 40.70, 40.80],
            "Longitude": [-73.88, -73.90, -73.92, -73.91, -73.80, -73.94],
            "Lon_Lat": [None] * 6,
        }
    )


@pytest.fixture
def cleaned_shootings(raw_shootings: pd.DataFrame, test_config: Any) -> pd.DataFrame:
    """The raw sample after cleaning."""
    from nyc_shootings.datasets.shootings.preprocess import ShootingPreprocessor

    preprocessor = ShootingPreprocessor(test_config)
    result = preprocessor.run(raw_shootings, execution_date="2024-01-15")
    assert result.success, result.error_message
    return preprocessor.get_data()


@pytest.fixture
def raw_csv_text(raw_shootings: pd.DataFrame) -> str:
    """The raw sample serialised as the CSV download would return it."""
    return raw_shootings.to_csv(index=False)


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_csv_download(mocker: Any, raw_csv_text: str) -> Any:
    """Mock a successful CSV download."""
    mock_response = mocker.MagicMock()
    mock_response.status_code = 200
    mock_response.text = raw_csv_text
    mock_response.raise_for_status = mocker.MagicMock()
    return mocker.patch(
        "nyc_shootings.datasets.shootings.ingest.requests.get", return_value=mock_response
    )


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def cleanup_env() -> Generator[None, None, None]:
    """Clean up environment variables after each test."""
    original_env = os.environ.copy()
    yield
    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)
