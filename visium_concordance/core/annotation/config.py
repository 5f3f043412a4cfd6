"""Configuration for expert-annotation reconciliation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_VOCABULARY: List[str] = [
    "chondrocyte",
    "pre-osteoblast",
    "secondary hypertrophic",
    "superficial",
    "hypertrophic",
    "pre-hypertrophic",
]

# Typos and plurals found in the expert annotation export
DEFAULT_RULES: List[List[str]] = [
    ["chondrocytes", "chondrocyte"],
    ["pre-osteo", "pre-osteoblast"],
    ["pre-osteoblasr", "pre-osteoblast"],
    ["secondary hypertophic", "secondary hypertrophic"],
]


@dataclass
class AnnotationConfig:
    """Configuration for loading and canonicalizing expert labels.

    Attributes
    ----------
    label_column : str
        Column of the annotation CSV holding the raw expert label
    barcode_column : str, optional
        Column holding the spot barcode. When present in the table the
        labels are joined by key, otherwise by row position.
    rules : List[List[str]]
        Ordered ``[raw, canonical]`` pairs
    vocabulary : List[str]
        Canonical region names
    unlabeled : str
        Label value meaning "no annotation"
    raw_key : str
        obs column receiving the raw label
    label_key : str
        obs column receiving the canonical label
    """

    label_column: str = "annotation"
    barcode_column: Optional[str] = "Barcode"
    rules: List[List[str]] = field(
        default_factory=lambda: [list(pair) for pair in DEFAULT_RULES]
    )
    vocabulary: List[str] = field(default_factory=lambda: list(DEFAULT_VOCABULARY))
    unlabeled: str = ""
    raw_key: str = "expert_label_raw"
    label_key: str = "expert_label"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnnotationConfig":
        """Build from a plain mapping, e.g. a YAML section."""
        data = dict(data or {})
        rules = data.pop("rules", None)
        config = cls(**data)
        if rules is not None:
            if isinstance(rules, dict):
                config.rules = [[k, v] for k, v in rules.items()]
            else:
                config.rules = [list(pair) for pair in rules]
        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "AnnotationConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "annotation" in data:
            data = data["annotation"]
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "label_column": self.label_column,
            "barcode_column": self.barcode_column,
            "rules": [list(pair) for pair in self.rules],
            "vocabulary": list(self.vocabulary),
            "unlabeled": self.unlabeled,
            "raw_key": self.raw_key,
            "label_key": self.label_key,
        }
