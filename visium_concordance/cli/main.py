"""Command-line interface for visium-concordance."""

import sys
from pathlib import Path
from typing import Optional

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="visium-concordance")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--log-dir", type=click.Path(file_okay=False), default=None,
              help="Directory for the run log file (default: console only)")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_dir: Optional[str]) -> None:
    """visium-concordance: expert regions vs clusters for Visium data.

    Examples:

        # Whole workflow
        visium-concordance run --dataset sample.h5ad --annotation regions.csv --out out/

        # ARI between two columns of a table
        visium-concordance agreement --table out/spot_labels.csv \\
            --col-a expert_label --col-b cluster

        # Top markers from an exported DE table
        visium-concordance markers --records out/de_cluster.csv --out top.csv
    """
    from ..io.logging import setup_logging

    ctx.ensure_object(dict)
    ctx.obj["logger"] = setup_logging(verbose, log_dir=log_dir)


@cli.command()
@click.option("--dataset", "-d", required=True, type=click.Path(exists=True),
              help="Spatial dataset (.h5ad or Space Ranger outs directory)")
@click.option("--annotation", "-a", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Expert annotation CSV")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output directory")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Run configuration (YAML)")
@click.option("--label-column", default=None, help="Annotation column with expert labels")
@click.option("--barcode-column", default=None, help="Annotation column with spot barcodes")
@click.option("--resolution", type=float, default=None, help="Clustering resolution")
@click.option("--skip-figures", is_flag=True, help="Skip figure generation")
@click.pass_context
def run(
    ctx: click.Context,
    dataset: str,
    annotation: str,
    output_path: str,
    config_path: Optional[str],
    label_column: Optional[str],
    barcode_column: Optional[str],
    resolution: Optional[float],
    skip_figures: bool,
) -> None:
    """Run the whole workflow: join, filter, cluster, score, DE, figures."""
    logger = ctx.obj["logger"]

    from ..core.clustering import ConcordanceConfig
    from ..core.errors import ConcordanceError
    from ..core.workflow import run_concordance

    config = ConcordanceConfig.from_yaml(Path(config_path)) if config_path else ConcordanceConfig()
    if label_column:
        config.annotation.label_column = label_column
    if barcode_column:
        config.annotation.barcode_column = barcode_column
    if resolution is not None:
        config.clustering.resolution = resolution
    if skip_figures:
        config.figures.skip = True

    try:
        result = run_concordance(dataset, annotation, output_path, config, logger)
    except (ConcordanceError, FileNotFoundError, ValueError, KeyError) as e:
        logger.error("Concordance run failed: %s", e)
        sys.exit(1)

    click.echo(f"ARI ({config.annotation.label_key} vs {config.clustering.cluster_key}): "
               f"{result.agreement.ari:.4f}")
    click.echo(f"Spots: {result.n_spots_labeled} labeled of {result.n_spots_total}")
    click.echo(f"Output saved to: {result.output_dir}")


@cli.command()
@click.option("--table", "-t", required=True, type=click.Path(exists=True, dir_okay=False),
              help="CSV with one row per spot")
@click.option("--col-a", required=True, help="First partition column")
@click.option("--col-b", required=True, help="Second partition column")
@click.option("--exclude", multiple=True, default=("",),
              help="Labels in --col-a treated as unlabeled (repeatable)")
@click.pass_context
def agreement(
    ctx: click.Context,
    table: str,
    col_a: str,
    col_b: str,
    exclude: tuple,
) -> None:
    """Adjusted Rand Index between two columns of a table."""
    import pandas as pd

    from ..core.agreement import compare_partitions
    from ..core.errors import ConcordanceError

    logger = ctx.obj["logger"]
    df = pd.read_csv(table, dtype=str, keep_default_na=False)
    missing = [c for c in (col_a, col_b) if c not in df.columns]
    if missing:
        raise click.BadParameter(f"Columns not found in {table}: {missing}")

    df = df[~df[col_a].isin(set(exclude))]
    try:
        result = compare_partitions(df[col_a], df[col_b], name_a=col_a, name_b=col_b)
    except ConcordanceError as e:
        logger.error("Agreement failed: %s", e)
        sys.exit(1)

    click.echo(f"ARI ({col_a} vs {col_b}): {result.ari:.4f} over {result.n_units} spots")


@cli.command()
@click.option("--records", "-r", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Differential test records CSV (group, names, logfoldchanges, pvals_adj)")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(dir_okay=False),
              help="Output CSV")
@click.option("--group", "groups", multiple=True, help="Only these groups (repeatable)")
@click.option("--top-k", type=int, default=5, help="Markers per group")
@click.option("--pval", type=float, default=0.05, help="Adjusted p-value threshold")
@click.option("--lfc", type=float, default=0.5, help="Absolute log2 fold-change threshold")
@click.pass_context
def markers(
    ctx: click.Context,
    records: str,
    output_path: str,
    groups: tuple,
    top_k: int,
    pval: float,
    lfc: float,
) -> None:
    """Top significant markers per group from a DE table."""
    from ..core.errors import MissingGroupError
    from ..core.markers import MarkerSummaryConfig, summarize_markers, summary_to_frame
    from ..io.csv import load_de_records, write_dataframe

    logger = ctx.obj["logger"]
    df = load_de_records(records)
    config = MarkerSummaryConfig(pval_threshold=pval, lfc_threshold=lfc, top_k=top_k)
    try:
        summary = summarize_markers(df, config, groups=groups or None)
    except MissingGroupError as e:
        logger.error("%s", e)
        sys.exit(1)

    path = write_dataframe(summary_to_frame(summary), output_path)
    for group, top in summary.items():
        click.echo(f"{group}: {', '.join(top['gene']) or '-'}")
    click.echo(f"Output saved to: {path}")


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
