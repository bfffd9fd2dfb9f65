"""Test fixtures for the data module."""

from pathlib import Path

import pytest

INVENTORY_CSV = """Date,Store ID,Product ID,Category,Units Sold,Price
2024-01-01,S001,P0001,Groceries,127,33.50
2024-01-01,S002,P0001,Groceries,150,33.50
2024-01-02,S001,P0001,Groceries,132,33.50
2024-01-02,S002,P0001,Groceries,n/a,33.50
2024-01-03,S001,P0001,Groceries,129,31.00
2024-01-03,S002,P0001,Groceries,161,31.00
2024-01-04,S001,P0001,Groceries,140,31.00
2024-01-04,S002,P0001,Groceries,158,
"""


@pytest.fixture
def inventory_csv(tmp_path: Path) -> Path:
    """Write a small retail inventory CSV and return its path."""
    path = tmp_path / "retail_store_inventory.csv"
    path.write_text(INVENTORY_CSV)
    return path
