"""
Unit tests for the charts.
"""

import matplotlib.pyplot as plt
import pandas as pd
import pytest
from matplotlib.figure import Figure

from nyc_shootings.datasets.shootings.aggregate import IncidentAggregator
from nyc_shootings.modeling.regression import fit_month_model, fit_month_year_model
from nyc_shootings.visualization.charts import (
    plot_incidents_by_borough,
    plot_incidents_by_month,
    plot_incidents_by_victim_age,
    plot_month_model,
    plot_month_year_model,
    save_figure,
)


@pytest.fixture
def buckets(test_config, cleaned_shootings):
    """Bucket aggregate of the sample records."""
    aggregator = IncidentAggregator(test_config)
    aggregator.run(cleaned_shootings, execution_date="2024-01-15")
    return aggregator.get_data()


@pytest.fixture
def year_month_series():
    """Two years of monthly counts."""
    rows = [
        {"YEAR": year, "MONTH": month, "count": 10 + month + (year - 2021) * 3 + month % 2}
        for year in (2021, 2022)
        for month in range(1, 13)
    ]
    return pd.DataFrame(rows)


@pytest.fixture
def month_series(year_month_series):
    """Month-only totals of the two-year series."""
    return year_month_series.groupby("MONTH", as_index=False)["count"].sum()


@pytest.fixture(autouse=True)
def close_figures():
    """Close any figures a test leaves open."""
    yield
    plt.close("all")


class TestAggregateCharts:
    """Test cases for the aggregate charts."""

    def test_incidents_by_month(self, buckets):
        """Test the month chart plots one point per observed month."""
        fig = plot_incidents_by_month(buckets)

        assert isinstance(fig, Figure)
        ax = fig.axes[0]
        assert ax.get_title() == "Shooting Incidents by Month"
        assert list(ax.lines[0].get_ydata()) == [2, 1, 1, 1]

    def test_incidents_by_victim_age(self, buckets):
        """Test the victim age chart has one bar per age group."""
        fig = plot_incidents_by_victim_age(buckets)

        ax = fig.axes[0]
        assert ax.get_title() == "Shooting Incidents by Victim Age Group"
        groups = buckets["VIC_AGE_GROUP"].nunique()
        assert len(ax.patches) == groups

    def test_incidents_by_borough(self, buckets):
        """Test the borough chart has one point per borough."""
        fig = plot_incidents_by_borough(buckets)

        ax = fig.axes[0]
        assert ax.get_xlabel() == "Borough"
        assert len(ax.collections[0].get_offsets()) == buckets["BORO"].nunique()

    @pytest.mark.parametrize(
        "plot",
        [plot_incidents_by_month, plot_incidents_by_victim_age, plot_incidents_by_borough],
    )
    def test_empty_input_rejected(self, plot, buckets):
        """Test empty aggregates are rejected."""
        with pytest.raises(ValueError, match="input is empty"):
            plot(buckets.iloc[0:0])


class TestModelCharts:
    """Test cases for the regression charts."""

    def test_month_model(self, month_series):
        """Test observed points and the fitted line are drawn."""
        result = fit_month_model(month_series, borough="BROOKLYN")

        fig = plot_month_model(month_series, result)

        ax = fig.axes[0]
        assert "Brooklyn" in ax.get_title()
        assert len(ax.collections[0].get_offsets()) == 12
        assert len(ax.lines) == 1
        assert len(ax.lines[0].get_xdata()) == 12

    def test_month_year_model(self, year_month_series):
        """Test one fitted line per year."""
        result = fit_month_year_model(year_month_series, borough="BROOKLYN")

        fig = plot_month_year_model(year_month_series, result)

        ax = fig.axes[0]
        assert len(ax.lines) == 2
        assert len(ax.collections) == 2
        assert "R²" in ax.get_title()

    def test_empty_series_rejected(self, month_series):
        """Test an empty series is rejected."""
        result = fit_month_model(month_series)

        with pytest.raises(ValueError):
            plot_month_model(month_series.iloc[0:0], result)


class TestSaveFigure:
    """Test cases for save_figure."""

    def test_writes_and_closes(self, buckets, tmp_path):
        """Test the file is written and the figure closed."""
        fig = plot_incidents_by_month(buckets)
        path = tmp_path / "figures" / "incidents_by_month.png"

        written = save_figure(fig, path, dpi=50)

        assert written == path
        assert path.exists()
        assert path.stat().st_size > 0
        assert not plt.fignum_exists(fig.number)
