"""End-to-end concordance run.

Steps:
1. Load the spatial dataset and the expert annotation table
2. Join canonicalized expert labels onto spots
3. Drop unlabeled spots
4. Normalize and cluster
5. Score expert regions against clusters (Adjusted Rand Index)
6. Differential expression per expert region and per cluster
7. Top-marker summaries, tables, figures and a YAML run summary

Every step receives the partition it works on explicitly.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ..io.csv import ensure_output_dir, load_annotation_table, write_dataframe
from ..io.logging import log_yaml
from ..io.spatial import load_spatial_dataset
from .agreement import AgreementResult, compare_partitions
from .annotation import LabelRuleTable, filter_unlabeled, join_annotations
from .clustering import ClusteringEngine, ClusteringResult, ConcordanceConfig, DERunner
from .markers import summarize_markers, summary_to_frame

PathLike = Union[str, Path]


@dataclass
class ConcordanceResult:
    """Outputs of a concordance run.

    Attributes
    ----------
    adata : AnnData
        Filtered, normalized and clustered dataset
    agreement : AgreementResult
        ARI and contingency table of expert regions vs clusters
    clustering : ClusteringResult
        Cluster statistics
    de_records : Dict[str, pd.DataFrame]
        Partition name -> differential test records
    marker_summaries : Dict[str, Dict[str, pd.DataFrame]]
        Partition name -> group -> top markers
    skipped_groups : Dict[str, List[str]]
        Partition name -> groups too small for differential testing
    n_spots_total : int
        Spots before filtering
    n_spots_labeled : int
        Spots kept after filtering
    figures : List[str]
        Generated figure paths
    output_dir : Path, optional
        Where tables and figures were written
    """

    adata: Any
    agreement: AgreementResult
    clustering: ClusteringResult
    de_records: Dict[str, pd.DataFrame] = field(default_factory=dict)
    marker_summaries: Dict[str, Dict[str, pd.DataFrame]] = field(default_factory=dict)
    skipped_groups: Dict[str, List[str]] = field(default_factory=dict)
    n_spots_total: int = 0
    n_spots_labeled: int = 0
    figures: List[str] = field(default_factory=list)
    output_dir: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        """Run summary for reporting."""
        return {
            "n_spots_total": self.n_spots_total,
            "n_spots_labeled": self.n_spots_labeled,
            "agreement": self.agreement.to_dict(),
            "clustering": self.clustering.to_dict(),
            "top_markers": {
                partition: {
                    group: df["gene"].tolist() for group, df in summary.items()
                }
                for partition, summary in self.marker_summaries.items()
            },
            "skipped_groups": {
                partition: list(groups) for partition, groups in self.skipped_groups.items()
            },
            "n_figures": len(self.figures),
        }


def analyze(
    adata: Any,  # AnnData
    annotation: pd.DataFrame,
    config: Optional[ConcordanceConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> ConcordanceResult:
    """Run the in-memory part of the workflow on a loaded dataset.

    Parameters
    ----------
    adata : AnnData
        Spatial dataset with raw counts in X; not modified
    annotation : pd.DataFrame
        Expert annotation table
    config : ConcordanceConfig, optional
        Run configuration
    logger : logging.Logger, optional
        Logger instance

    Returns
    -------
    ConcordanceResult
        Results without figures
    """
    config = config or ConcordanceConfig()
    logger = logger or logging.getLogger(__name__)
    ann_cfg = config.annotation
    cluster_key = config.clustering.cluster_key

    n_total = adata.n_obs
    adata = adata.copy()
    rules = LabelRuleTable.from_config(ann_cfg)
    join_annotations(adata, annotation, ann_cfg, rules=rules, logger=logger)
    adata = filter_unlabeled(
        adata, label_key=ann_cfg.label_key, unlabeled=ann_cfg.unlabeled, logger=logger
    )

    engine = ClusteringEngine(config, logger)
    engine.normalize(adata)
    clustering = engine.run_clustering(adata, cluster_key=cluster_key)

    agreement = compare_partitions(
        adata.obs[ann_cfg.label_key].astype(str),
        adata.obs[cluster_key].astype(str),
        name_a=ann_cfg.label_key,
        name_b=cluster_key,
    )
    logger.info(
        "Adjusted Rand Index (%s vs %s): %.4f over %d spots",
        ann_cfg.label_key,
        cluster_key,
        agreement.ari,
        agreement.n_units,
    )

    runner = DERunner(config, logger)
    de_records: Dict[str, pd.DataFrame] = {}
    summaries: Dict[str, Dict[str, pd.DataFrame]] = {}
    skipped: Dict[str, List[str]] = {}
    for partition in (ann_cfg.label_key, cluster_key):
        de = runner.run_de_tests(adata, groupby=partition)
        de_records[partition] = de.records
        skipped[partition] = de.skipped
        summaries[partition] = summarize_markers(de.records, config.markers)

    return ConcordanceResult(
        adata=adata,
        agreement=agreement,
        clustering=clustering,
        de_records=de_records,
        marker_summaries=summaries,
        skipped_groups=skipped,
        n_spots_total=n_total,
        n_spots_labeled=adata.n_obs,
    )


def write_outputs(
    result: ConcordanceResult,
    output_dir: PathLike,
    config: Optional[ConcordanceConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> Path:
    """Write tables, figures and the YAML run summary."""
    config = config or ConcordanceConfig()
    logger = logger or logging.getLogger(__name__)
    output_dir = ensure_output_dir(output_dir)
    ann_cfg = config.annotation
    cluster_key = config.clustering.cluster_key
    obs = result.adata.obs

    spot_labels = pd.DataFrame({
        "barcode": result.adata.obs_names,
        ann_cfg.raw_key: obs[ann_cfg.raw_key].astype(str).to_numpy(),
        ann_cfg.label_key: obs[ann_cfg.label_key].astype(str).to_numpy(),
        cluster_key: obs[cluster_key].astype(str).to_numpy(),
    })
    write_dataframe(spot_labels, output_dir / "spot_labels.csv")
    write_dataframe(result.agreement.contingency, output_dir / "contingency.csv", index=True)

    for partition, records in result.de_records.items():
        write_dataframe(records, output_dir / f"de_{partition}.csv")
        write_dataframe(
            summary_to_frame(result.marker_summaries[partition]),
            output_dir / f"top_markers_{partition}.csv",
        )
    logger.info("Wrote tables to %s", output_dir)

    if not config.figures.skip:
        from ..viz import generate_figures

        result.figures = generate_figures(
            result.adata,
            output_dir / "figures",
            label_key=ann_cfg.label_key,
            cluster_key=cluster_key,
            contingency=result.agreement.contingency,
            de_records=result.de_records,
            figure_config=config.figures,
            marker_config=config.markers,
            logger=logger,
        )

    summary_path = output_dir / "summary.yaml"
    summary_path.unlink(missing_ok=True)
    log_yaml(summary_path, {"config": config.to_dict(), "result": result.to_dict()})
    result.output_dir = output_dir
    return summary_path


def run_concordance(
    dataset_path: PathLike,
    annotation_path: PathLike,
    output_dir: PathLike,
    config: Optional[ConcordanceConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> ConcordanceResult:
    """Run the whole workflow from files to exported artifacts.

    Parameters
    ----------
    dataset_path : PathLike
        ``.h5ad`` file or Space Ranger output directory
    annotation_path : PathLike
        Expert annotation CSV
    output_dir : PathLike
        Output directory for tables, figures and ``summary.yaml``
    config : ConcordanceConfig, optional
        Run configuration
    logger : logging.Logger, optional
        Logger instance

    Returns
    -------
    ConcordanceResult
        Run results
    """
    config = config or ConcordanceConfig()
    logger = logger or logging.getLogger(__name__)
    start = time.time()

    logger.info("Dataset: %s", dataset_path)
    logger.info("Annotation: %s", annotation_path)
    logger.info("Output: %s", output_dir)

    adata = load_spatial_dataset(dataset_path)
    table = load_annotation_table(
        annotation_path,
        label_column=config.annotation.label_column,
        barcode_column=config.annotation.barcode_column,
    )

    result = analyze(adata, table, config, logger)
    write_outputs(result, output_dir, config, logger)

    logger.info("Concordance run completed in %.1fs", time.time() - start)
    logger.info("  Spots: %d labeled of %d", result.n_spots_labeled, result.n_spots_total)
    logger.info("  Clusters: %d", result.clustering.n_clusters)
    logger.info("  ARI: %.4f", result.agreement.ari)
    return result
