"""Command-line interface for visium-concordance.

Example Usage
-------------
    visium-concordance --help
    visium-concordance run --dataset sample.h5ad --annotation regions.csv --out out/
    visium-concordance agreement --table out/spot_labels.csv --col-a expert_label --col-b cluster
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
