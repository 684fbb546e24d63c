"""
Unit tests for the incident aggregations.

Tests bucket counts, the borough monthly series and their totals.
"""

import pandas as pd
import pytest

from nyc_shootings.datasets.shootings.aggregate import (
    MONTH_NAMES,
    BoroughMonthlyAggregator,
    IncidentAggregator,
    month_names,
    totals_by,
)


def _cleaned(records):
    """Build a cleaned-shaped frame from (date, boro, hour) tuples."""
    df = pd.DataFrame(records, columns=["OCCUR_DATE", "BORO", "HOUR"])
    df["INCIDENT_KEY"] = [str(i) for i in range(len(df))]
    df["OCCUR_DATE"] = pd.to_datetime(df["OCCUR_DATE"])
    df["BORO"] = df["BORO"].astype("string")
    df["HOUR"] = df["HOUR"].astype("Int64")
    for col in ["PERP_AGE_GROUP", "PERP_SEX", "VIC_AGE_GROUP", "VIC_SEX"]:
        df[col] = pd.Series(["UNKNOWN"] * len(df), dtype="string")
    return df


@pytest.fixture
def multi_year():
    """Brooklyn and Bronx incidents spread over three years."""
    records = []
    for year in (2020, 2021, 2022):
        for month in range(1, 13):
            for day in range(1, 1 + (month % 4) + (year - 2019)):
                records.append((f"{year}-{month:02d}-{day:02d}", "BROOKLYN", day % 24))
            records.append((f"{year}-{month:02d}-15", "BRONX", 12))
    return _cleaned(records)


class TestMonthNames:
    """Test cases for month_names."""

    def test_ordered_categorical(self):
        """Test month names sort in calendar order."""
        names = month_names(pd.Series(pd.to_datetime(["2023-12-01", "2023-01-31"])))

        assert list(names) == ["December", "January"]
        assert names.cat.ordered
        assert list(names.cat.categories) == MONTH_NAMES


class TestIncidentAggregator:
    """Test cases for IncidentAggregator class."""

    @pytest.fixture
    def aggregator(self, test_config):
        """Create an IncidentAggregator instance."""
        return IncidentAggregator(test_config)

    def test_names(self, aggregator):
        """Test dataset and aggregate names."""
        assert aggregator.get_dataset_name() == "shootings"
        assert aggregator.get_aggregation_name() == "incident_buckets"

    def test_run_success(self, aggregator, cleaned_shootings):
        """Test the bucket aggregate is produced."""
        result = aggregator.run(cleaned_shootings, execution_date="2024-01-15")
        buckets = aggregator.get_data()

        assert result.success is True
        assert list(buckets.columns) == IncidentAggregator.GROUP_KEYS + ["INCIDENTS"]
        assert buckets["INCIDENTS"].dtype == "int64"
        assert (buckets["INCIDENTS"] >= 1).all()
        assert result.rows_output == len(buckets)

    def test_sum_equals_dated_rows(self, aggregator, cleaned_shootings):
        """Test INCIDENTS sums to the number of rows with an OCCUR_DATE."""
        result = aggregator.run(cleaned_shootings, execution_date="2024-01-15")

        dated = int(cleaned_shootings["OCCUR_DATE"].notna().sum())
        assert aggregator.get_data()["INCIDENTS"].sum() == dated == 5
        assert result.rows_excluded == 1
        assert result.notes["excluded_null_occur_date"] == 1

    def test_sum_invariant_large(self, aggregator, multi_year):
        """Test the sum invariant when many rows share a bucket."""
        aggregator.run(multi_year, execution_date="2024-01-15")
        buckets = aggregator.get_data()

        assert buckets["INCIDENTS"].sum() == len(multi_year)
        assert len(buckets) < len(multi_year)

    def test_null_hour_bucket(self, aggregator, cleaned_shootings):
        """Test records without an hour are counted in a null-HOUR bucket."""
        result = aggregator.run(cleaned_shootings, execution_date="2024-01-15")
        buckets = aggregator.get_data()

        null_hour = buckets[buckets["HOUR"].isna()]
        assert null_hour["INCIDENTS"].sum() == 2
        assert result.notes["rows_in_null_key_buckets"] == 2

    def test_null_borough_bucket(self, aggregator):
        """Test records without a borough are kept."""
        df = _cleaned(
            [("2023-01-01", None, 1), ("2023-01-01", None, 1), ("2023-01-02", "BRONX", 1)]
        )

        aggregator.run(df, execution_date="2024-01-15")
        buckets = aggregator.get_data()

        assert buckets["INCIDENTS"].sum() == 3
        assert buckets.loc[buckets["BORO"].isna(), "INCIDENTS"].tolist() == [2]

    def test_missing_perp_sex_in_unknown_bucket(self, aggregator, cleaned_shootings):
        """Test a record with no PERP_SEX is counted under UNKNOWN."""
        aggregator.run(cleaned_shootings, execution_date="2024-01-15")
        buckets = aggregator.get_data()

        unknown = buckets[buckets["PERP_SEX"] == "UNKNOWN"]
        assert unknown["INCIDENTS"].sum() == 1
        assert unknown["HOUR"].tolist() == [0]
        assert buckets["PERP_SEX"].notna().all()

    def test_month_is_name(self, aggregator, cleaned_shootings):
        """Test MONTH holds month names."""
        aggregator.run(cleaned_shootings, execution_date="2024-01-15")
        months = set(aggregator.get_data()["MONTH"].astype(str))
        assert months == {"January", "February", "March", "July"}

    def test_missing_column_fails(self, aggregator, cleaned_shootings):
        """Test a missing key column fails the run."""
        result = aggregator.run(
            cleaned_shootings.drop(columns=["VIC_SEX"]), execution_date="2024-01-15"
        )
        assert result.success is False
        assert aggregator.get_data() is None

    def test_column_stats(self, aggregator, cleaned_shootings):
        """Test per-column statistics are recorded."""
        result = aggregator.run(cleaned_shootings, execution_date="2024-01-15")

        assert result.column_stats["INCIDENTS"]["sum"] == 5.0
        assert result.column_stats["HOUR"]["null_count"] == 2


class TestTotalsBy:
    """Test cases for totals_by."""

    @pytest.fixture
    def buckets(self, test_config, cleaned_shootings):
        aggregator = IncidentAggregator(test_config)
        aggregator.run(cleaned_shootings, execution_date="2024-01-15")
        return aggregator.get_data()

    def test_month_totals_in_calendar_order(self, buckets):
        """Test month totals follow January..December."""
        totals = totals_by(buckets, "MONTH")

        assert list(totals["MONTH"].astype(str)) == ["January", "February", "March", "July"]
        assert list(totals["INCIDENTS"]) == [2, 1, 1, 1]

    def test_borough_totals(self, buckets):
        """Test borough totals."""
        totals = totals_by(buckets, "BORO").set_index("BORO")["INCIDENTS"]

        assert totals["BROOKLYN"] == 3
        assert totals["BRONX"] == 1
        assert totals.sum() == buckets["INCIDENTS"].sum()


class TestBoroughMonthlyAggregator:
    """Test cases for BoroughMonthlyAggregator class."""

    def test_names(self, test_config):
        """Test aggregate names reflect borough and keys."""
        by_year = BoroughMonthlyAggregator("BROOKLYN", by_year=True, config=test_config)
        by_month = BoroughMonthlyAggregator("BROOKLYN", by_year=False, config=test_config)

        assert by_year.get_aggregation_name() == "brooklyn_year_month_counts"
        assert by_year.get_group_keys() == ["YEAR", "MONTH"]
        assert by_month.get_aggregation_name() == "brooklyn_month_counts"
        assert by_month.get_group_keys() == ["MONTH"]

    def test_borough_from_config(self, test_config):
        """Test the borough defaults to the configured one."""
        aggregator = BoroughMonthlyAggregator(config=test_config)
        assert aggregator.borough == "BROOKLYN"

    def test_three_brooklyn_rows(self, test_config, cleaned_shootings):
        """Test the Brooklyn series from the sample records."""
        aggregator = BoroughMonthlyAggregator("BROOKLYN", by_year=True, config=test_config)
        result = aggregator.run(cleaned_shootings, execution_date="2024-01-15")
        series = aggregator.get_data()

        assert result.success is True
        assert list(series.columns) == ["YEAR", "MONTH", "count"]
        assert series.to_dict("records") == [
            {"YEAR": 2023, "MONTH": 1, "count": 2},
            {"YEAR": 2023, "MONTH": 2, "count": 1},
        ]
        assert result.notes["borough_rows"] == 3

    def test_month_only(self, test_config, cleaned_shootings):
        """Test the month-only series drops the year."""
        aggregator = BoroughMonthlyAggregator("BROOKLYN", by_year=False, config=test_config)
        aggregator.run(cleaned_shootings, execution_date="2024-01-15")
        series = aggregator.get_data()

        assert list(series.columns) == ["MONTH", "count"]
        assert dict(zip(series["MONTH"], series["count"])) == {1: 2, 2: 1}
        assert series["MONTH"].dtype == "int64"
        assert series["count"].dtype == "int64"

    def test_month_totals_match_year_month(self, test_config, multi_year):
        """Test re-summing the year/month series by month gives the month series."""
        by_year = BoroughMonthlyAggregator("BROOKLYN", by_year=True, config=test_config)
        by_month = BoroughMonthlyAggregator("BROOKLYN", by_year=False, config=test_config)
        by_year.run(multi_year, execution_date="2024-01-15")
        by_month.run(multi_year, execution_date="2024-01-15")

        resummed = by_year.get_data().groupby("MONTH")["count"].sum()
        expected = by_month.get_data().set_index("MONTH")["count"]

        pd.testing.assert_series_equal(resummed, expected, check_names=False)
        assert len(by_year.get_data()) == 36
        assert expected.sum() == (multi_year["BORO"] == "BROOKLYN").sum()

    def test_borough_is_case_sensitive(self, test_config, cleaned_shootings):
        """Test a borough in the wrong case matches nothing."""
        aggregator = BoroughMonthlyAggregator("brooklyn", by_year=True, config=test_config)
        result = aggregator.run(cleaned_shootings, execution_date="2024-01-15")

        assert result.success is True
        assert aggregator.get_data().empty
        assert result.notes["borough_rows"] == 0

    def test_undated_rows_excluded(self, test_config):
        """Test records without OCCUR_DATE are left out of the series."""
        df = _cleaned([("2023-03-01", "BROOKLYN", 1), (None, "BROOKLYN", 2)])
        aggregator = BoroughMonthlyAggregator("BROOKLYN", by_year=False, config=test_config)

        result = aggregator.run(df, execution_date="2024-01-15")

        assert aggregator.get_data()["count"].sum() == 1
        assert result.rows_excluded == 1
