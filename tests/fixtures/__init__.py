"""Test fixtures for visium-concordance.

Provides mock data generators and test utilities.
"""

from .mock_visium import (
    REGIONS,
    create_annotation_table,
    create_de_records,
    create_mock_visium,
    make_barcodes,
)

__all__ = [
    "REGIONS",
    "create_annotation_table",
    "create_de_records",
    "create_mock_visium",
    "make_barcodes",
]
