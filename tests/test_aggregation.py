"""Unit tests for dojo_exporter.services.aggregation: per-status counts by severity and CWE."""

import unittest

from dojo_exporter.schemas.defectdojo import Finding
from dojo_exporter.services.aggregation import StatusDimension, aggregate_findings
from tests.helpers import _finding


class TestMultiFlagCounting(unittest.TestCase):
    """A finding is counted once in every dimension whose flag is set."""

    def test_active_and_verified_counted_in_both(self) -> None:
        table = aggregate_findings([_finding(active=True, verified=True, duplicate=False)])
        self.assertEqual(table[StatusDimension.ACTIVE], {("high", "79"): 1})
        self.assertEqual(table[StatusDimension.VERIFIED], {("high", "79"): 1})
        for dimension in StatusDimension:
            if dimension in (StatusDimension.ACTIVE, StatusDimension.VERIFIED):
                continue
            self.assertEqual(table[dimension], {}, dimension)

    def test_all_flags_set(self) -> None:
        finding = _finding(
            severity="Critical",
            cwe=101,
            active=True,
            duplicate=True,
            under_review=True,
            false_positive=True,
            out_of_scope=True,
            risk_accepted=True,
            verified=True,
            mitigated=True,
        )
        table = aggregate_findings([finding])
        for dimension in StatusDimension:
            self.assertEqual(table[dimension], {("critical", "101"): 1}, dimension)

    def test_no_flags_counts_nowhere(self) -> None:
        table = aggregate_findings([_finding()])
        self.assertEqual(set(table), set(StatusDimension))
        self.assertTrue(all(not counts for counts in table.values()))


class TestKeys(unittest.TestCase):
    """Severity is lower-cased and CWE rendered as a decimal string."""

    def test_severity_case_folded_into_one_key(self) -> None:
        table = aggregate_findings(
            [
                _finding(severity="HIGH", active=True),
                _finding(severity="high", active=True),
                _finding(severity="High", active=True),
            ]
        )
        self.assertEqual(table[StatusDimension.ACTIVE], {("high", "79"): 3})

    def test_distinct_cwe_and_severity_keys(self) -> None:
        table = aggregate_findings(
            [
                _finding(severity="Low", cwe=89, active=True),
                _finding(severity="Low", cwe=79, active=True),
                _finding(severity="Medium", cwe=89, active=True),
                _finding(severity="Low", cwe=89, mitigated=True),
            ]
        )
        self.assertEqual(
            table[StatusDimension.ACTIVE],
            {("low", "89"): 1, ("low", "79"): 1, ("medium", "89"): 1},
        )
        self.assertEqual(table[StatusDimension.MITIGATED], {("low", "89"): 1})

    def test_null_cwe_from_api_is_zero(self) -> None:
        finding = Finding.model_validate({"severity": "Info", "cwe": None, "active": True})
        table = aggregate_findings([finding])
        self.assertEqual(table[StatusDimension.ACTIVE], {("info", "0"): 1})

    def test_api_aliases_map_to_dimensions(self) -> None:
        finding = Finding.model_validate(
            {"severity": "Medium", "cwe": 22, "false_p": True, "is_mitigated": True}
        )
        table = aggregate_findings([finding])
        self.assertEqual(table[StatusDimension.FALSE_POSITIVE], {("medium", "22"): 1})
        self.assertEqual(table[StatusDimension.MITIGATED], {("medium", "22"): 1})
        self.assertEqual(table[StatusDimension.ACTIVE], {})

    def test_empty_input(self) -> None:
        table = aggregate_findings([])
        self.assertEqual(len(table), 8)


if __name__ == "__main__":
    unittest.main()
