"""Errors and warnings raised by the concordance engines.

Alignment and degeneracy errors are structural: they abort a run because
no safe default exists. Unknown labels only warn and pass through.
"""


class ConcordanceError(Exception):
    """Base class for all visium-concordance errors."""

    pass


class AlignmentError(ConcordanceError, ValueError):
    """Annotation source does not line up 1:1 with the dataset spots."""

    def __init__(self, message: str, offending=None):
        self.offending = list(offending) if offending is not None else []
        if self.offending:
            sample = ", ".join(str(x) for x in self.offending[:5])
            more = len(self.offending) - 5
            if more > 0:
                sample += f", ... (+{more} more)"
            message = f"{message}: {sample}"
        super().__init__(message)


class DegenerateInputError(ConcordanceError, ValueError):
    """Agreement statistic is ill-defined for the given partitions."""

    pass


class DegeneratePartitionError(DegenerateInputError):
    """Exactly one partition collapses all units into a single category."""

    pass


class MissingGroupError(ConcordanceError, KeyError):
    """Requested group is absent from the current partition."""

    def __init__(self, group, available=()):
        self.group = group
        self.available = sorted(str(g) for g in available)
        super().__init__(group)

    def __str__(self) -> str:
        return (
            f"Group '{self.group}' not found in partition "
            f"(available: {', '.join(self.available) or 'none'})"
        )


class UnknownLabelWarning(UserWarning):
    """Raw label not covered by a rule and not in the vocabulary."""

    pass
