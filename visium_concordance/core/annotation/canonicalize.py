"""Canonicalization of raw expert region labels.

Expert annotations arrive with inconsistent spellings ("chondrocytes",
"pre-osteoblasr", ...). A ``LabelRuleTable`` maps each known variant to a
single entry of the controlled vocabulary and passes everything else
through unchanged.
"""

from __future__ import annotations

import logging
import warnings
from typing import Dict, Iterable, Mapping, Optional, Sequence, Set, Tuple, Union

import pandas as pd

from ..errors import UnknownLabelWarning
from .config import DEFAULT_RULES, DEFAULT_VOCABULARY

logger = logging.getLogger(__name__)

RuleSource = Union[Mapping[str, str], Iterable[Sequence[str]]]


class LabelRuleTable:
    """Lookup table from raw label to canonical label.

    Parameters
    ----------
    rules : mapping or iterable of (raw, canonical) pairs
        Correction rules. A raw label listed twice with the same target is
        collapsed into one rule; listed twice with different targets is an
        error.
    vocabulary : iterable of str
        Canonical label names. Labels already in the vocabulary pass through
        silently.
    unlabeled : str
        Value meaning "no annotation". Never rewritten.

    Raises
    ------
    ValueError
        If a raw label maps to two different canonical labels, a rule
        target is itself rewritten by another rule, or a rule would rewrite
        the unlabeled value.

    Example
    -------
    >>> table = LabelRuleTable.default()
    >>> table.canonicalize("chondrocytes")
    'chondrocyte'
    """

    def __init__(
        self,
        rules: Optional[RuleSource] = None,
        vocabulary: Optional[Iterable[str]] = None,
        unlabeled: str = "",
    ):
        self.unlabeled = unlabeled
        self.vocabulary: Set[str] = set(
            DEFAULT_VOCABULARY if vocabulary is None else vocabulary
        )
        self.rules: Dict[str, str] = {}
        self._warned: Set[str] = set()

        pairs = DEFAULT_RULES if rules is None else rules
        if isinstance(pairs, Mapping):
            pairs = list(pairs.items())

        for raw, canonical in pairs:
            if raw == unlabeled:
                raise ValueError(
                    f"Rule would rewrite the unlabeled value {unlabeled!r}"
                )
            existing = self.rules.get(raw)
            if existing is None:
                self.rules[raw] = canonical
            elif existing == canonical:
                logger.debug("Dropping duplicate label rule %r -> %r", raw, canonical)
            else:
                raise ValueError(
                    f"Conflicting rules for label {raw!r}: "
                    f"{existing!r} vs {canonical!r}"
                )

        chained = sorted(
            target for target in set(self.rules.values())
            if self.rules.get(target, target) != target
        )
        if chained:
            raise ValueError(f"Rule targets are themselves rewritten: {chained}")

        # Rule targets are canonical by definition
        self.vocabulary.update(self.rules.values())

    @classmethod
    def default(cls) -> "LabelRuleTable":
        """Rule table for the growth-plate annotation export."""
        return cls(DEFAULT_RULES, DEFAULT_VOCABULARY)

    @classmethod
    def from_config(cls, config) -> "LabelRuleTable":
        """Build from an ``AnnotationConfig``."""
        return cls(config.rules, config.vocabulary, config.unlabeled)

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, raw: str) -> bool:
        return raw in self.rules

    def is_known(self, label: str) -> bool:
        """True for the unlabeled value, rule sources and vocabulary terms."""
        return label == self.unlabeled or label in self.rules or label in self.vocabulary

    def canonicalize(self, raw: str) -> str:
        """Return the canonical form of ``raw``.

        Unknown labels are returned unchanged and reported once with an
        ``UnknownLabelWarning``.
        """
        canonical = self.rules.get(raw)
        if canonical is not None:
            return canonical
        if not self.is_known(raw):
            self._warn_unknown(raw)
        return raw

    def canonicalize_series(self, labels: pd.Series) -> pd.Series:
        """Canonicalize a Series of raw labels.

        Missing values are treated as the unlabeled value. The index is
        preserved. Each unknown label is reported once per call.
        """
        raw = labels.astype(object).where(labels.notna(), self.unlabeled).astype(str)
        unknown = sorted(
            label for label in raw.unique() if not self.is_known(label)
        )
        for label in unknown:
            self._warn_unknown(label, force=True)
        return raw.map(lambda label: self.rules.get(label, label)).rename(labels.name)

    def summarize(self, labels: pd.Series) -> Tuple[int, int]:
        """Count labels rewritten by a rule and labels left unknown."""
        raw = labels.fillna(self.unlabeled).astype(str)
        n_rewritten = int(raw.isin(list(self.rules)).sum())
        n_unknown = int((~raw.map(self.is_known)).sum())
        return n_rewritten, n_unknown

    def _warn_unknown(self, label: str, force: bool = False) -> None:
        if label in self._warned and not force:
            return
        self._warned.add(label)
        logger.warning("Label %r is not in the vocabulary; keeping it as-is", label)
        warnings.warn(
            f"Unknown annotation label {label!r} passed through unchanged",
            UnknownLabelWarning,
            stacklevel=3,
        )


def canonicalize(raw: str, table: Optional[LabelRuleTable] = None) -> str:
    """Canonicalize a single raw label with ``table`` or the default rules.

    Without ``table`` a fresh default table is built, so every call
    reports its own unknown label.
    """
    if table is None:
        table = LabelRuleTable.default()
    return table.canonicalize(raw)
