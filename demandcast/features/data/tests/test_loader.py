"""Tests for CSV loading."""

import pytest

from demandcast.core.exceptions import NotFoundError, ValidationError
from demandcast.features.data.loader import load_grouped_series, load_series, preview


class TestLoadSeries:
    """Tests for load_series."""

    def test_filtered_series(self, inventory_csv):
        """Filters select one store; rows keep file order."""
        series = load_series(inventory_csv, "Units Sold", filters={"Store ID": "S001"})

        assert series.values == [127.0, 132.0, 129.0, 140.0]
        assert series.dates == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04"]

    def test_non_numeric_cells_dropped(self, inventory_csv):
        """Rows with non-numeric targets are removed with their dates."""
        series = load_series(inventory_csv, "Units Sold", filters={"Store ID": "S002"})

        assert series.values == [150.0, 161.0, 158.0]
        assert series.dates == ["2024-01-01", "2024-01-03", "2024-01-04"]

    def test_unfiltered_keeps_all_rows(self, inventory_csv):
        """Without filters every numeric row is used."""
        series = load_series(inventory_csv, "Units Sold")

        assert len(series.values) == 7

    def test_without_date_column(self, inventory_csv):
        """date_column=None gives an undated series."""
        series = load_series(inventory_csv, "Price", date_column=None)

        assert series.dates is None
        assert len(series.values) == 7

    def test_missing_file(self, tmp_path):
        """A missing file raises NotFoundError."""
        with pytest.raises(NotFoundError):
            load_series(tmp_path / "missing.csv", "Units Sold")

    def test_unknown_target_column(self, inventory_csv):
        """An unknown column raises ValidationError listing it."""
        with pytest.raises(ValidationError, match="Revenue") as exc_info:
            load_series(inventory_csv, "Revenue")

        assert exc_info.value.details["missing"] == ["Revenue"]

    def test_unknown_filter_column(self, inventory_csv):
        """Filter columns must exist too."""
        with pytest.raises(ValidationError, match="Region"):
            load_series(inventory_csv, "Units Sold", filters={"Region": "North"})

    def test_no_numeric_values(self, inventory_csv):
        """A non-numeric target column raises ValidationError."""
        with pytest.raises(ValidationError, match="No numeric values"):
            load_series(inventory_csv, "Category")

    def test_filter_matches_nothing(self, inventory_csv):
        """Filters excluding every row raise ValidationError."""
        with pytest.raises(ValidationError):
            load_series(inventory_csv, "Units Sold", filters={"Store ID": "S999"})


class TestLoadGroupedSeries:
    """Tests for load_grouped_series."""

    def test_group_by_store(self, inventory_csv):
        """One series per store in first-appearance order."""
        groups = load_grouped_series(inventory_csv, "Units Sold", group_by="Store ID")

        assert list(groups) == ["S001", "S002"]
        assert groups["S001"].values == [127.0, 132.0, 129.0, 140.0]
        assert groups["S002"].values == [150.0, 161.0, 158.0]

    def test_multi_column_keys(self, inventory_csv):
        """Multi-column keys are joined with '/'."""
        groups = load_grouped_series(
            inventory_csv, "Units Sold", group_by=["Store ID", "Product ID"]
        )

        assert list(groups) == ["S001/P0001", "S002/P0001"]

    def test_unknown_group_column(self, inventory_csv):
        """Group columns must exist."""
        with pytest.raises(ValidationError):
            load_grouped_series(inventory_csv, "Units Sold", group_by="Region")


class TestPreview:
    """Tests for preview."""

    def test_headers_and_rows(self, inventory_csv):
        """Preview returns headers, first rows and total count."""
        response = preview(inventory_csv, n_rows=2)

        assert response.headers == [
            "Date",
            "Store ID",
            "Product ID",
            "Category",
            "Units Sold",
            "Price",
        ]
        assert len(response.rows) == 2
        assert response.rows[0]["Store ID"] == "S001"
        assert response.total_rows == 8

    def test_missing_cells_are_null(self, inventory_csv):
        """Empty cells serialize as None."""
        response = preview(inventory_csv, n_rows=8)

        assert response.rows[-1]["Price"] is None

    def test_missing_file(self, tmp_path):
        """A missing file raises NotFoundError."""
        with pytest.raises(NotFoundError):
            preview(tmp_path / "missing.csv")
