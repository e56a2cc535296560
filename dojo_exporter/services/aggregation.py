"""Aggregate a product's findings into counts by status, severity and CWE."""

from collections import defaultdict
from enum import Enum

from dojo_exporter.schemas.defectdojo import Finding


class StatusDimension(str, Enum):
    """Finding status flags that each get their own gauge family."""

    ACTIVE = "active"
    DUPLICATE = "duplicate"
    UNDER_REVIEW = "under_review"
    FALSE_POSITIVE = "false_positive"
    OUT_OF_SCOPE = "out_of_scope"
    RISK_ACCEPTED = "risk_accepted"
    VERIFIED = "verified"
    MITIGATED = "mitigated"


# Dimension -> Finding attribute holding its flag.
STATUS_FLAGS: dict[StatusDimension, str] = {
    StatusDimension.ACTIVE: "active",
    StatusDimension.DUPLICATE: "duplicate",
    StatusDimension.UNDER_REVIEW: "under_review",
    StatusDimension.FALSE_POSITIVE: "false_positive",
    StatusDimension.OUT_OF_SCOPE: "out_of_scope",
    StatusDimension.RISK_ACCEPTED: "risk_accepted",
    StatusDimension.VERIFIED: "verified",
    StatusDimension.MITIGATED: "mitigated",
}

# (severity, cwe) label pair
SeriesKey = tuple[str, str]
CountTable = dict[StatusDimension, dict[SeriesKey, int]]


def series_key(finding: Finding) -> SeriesKey:
    """Label values for a finding: lower-cased severity and the CWE id as a decimal string."""
    return finding.severity.lower(), str(finding.cwe)


def aggregate_findings(findings: list[Finding]) -> CountTable:
    """
    Count findings per status dimension and (severity, cwe).

    A finding is counted once in every dimension whose flag it has set; a finding
    with no flags set is not counted anywhere. Every dimension is present in the
    result, possibly empty.
    """
    counts: dict[StatusDimension, defaultdict[SeriesKey, int]] = {
        dimension: defaultdict(int) for dimension in StatusDimension
    }
    for finding in findings:
        key = series_key(finding)
        for dimension, flag in STATUS_FLAGS.items():
            if getattr(finding, flag):
                counts[dimension][key] += 1
    return {dimension: dict(table) for dimension, table in counts.items()}
