"""Unit tests for dojo_exporter.services.freshness: skip products without newer engagement updates."""

import asyncio
import unittest
from datetime import datetime, timedelta, timezone

from dojo_exporter.services.freshness import EngagementFreshness

T = datetime(2025, 6, 13, 11, 16, 13, tzinfo=timezone.utc)


def _advance(freshness: EngagementFreshness, *updates: tuple[str, datetime | None]) -> list[bool]:
    async def scenario() -> list[bool]:
        return [await freshness.advance(name, latest) for name, latest in updates]

    return asyncio.run(scenario())


class TestFirstObservation(unittest.TestCase):
    def test_first_observation_recorded_and_collected(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        self.assertEqual(_advance(freshness, ("E", T)), [True])
        self.assertEqual(freshness.get("E"), T)

    def test_first_observation_without_engagements(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        self.assertEqual(_advance(freshness, ("E", None), ("E", None)), [True, False])
        self.assertIn("E", freshness)
        self.assertIsNone(freshness.get("E"))


class TestSkip(unittest.TestCase):
    """Not strictly newer: skip and leave state unchanged."""

    def test_equal_timestamp_skips(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        self.assertEqual(_advance(freshness, ("E", T), ("E", T)), [True, False])
        self.assertEqual(freshness.get("E"), T)

    def test_older_timestamp_skips_and_keeps_newer(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        older = T - timedelta(days=1)
        self.assertEqual(_advance(freshness, ("E", T), ("E", older)), [True, False])
        self.assertEqual(freshness.get("E"), T)

    def test_engagements_gone_skips(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        self.assertEqual(_advance(freshness, ("E", T), ("E", None)), [True, False])
        self.assertEqual(freshness.get("E"), T)


class TestAdvance(unittest.TestCase):
    def test_newer_timestamp_collects_and_records(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        newer = T + timedelta(seconds=1)
        self.assertEqual(_advance(freshness, ("E", T), ("E", newer)), [True, True])
        self.assertEqual(freshness.get("E"), newer)

    def test_timezones_compared_as_instants(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        # 11:16+05:00 is 06:16 UTC, earlier than 07:00 UTC
        plus_five = datetime(2025, 6, 13, 11, 16, tzinfo=timezone(timedelta(hours=5)))
        utc = datetime(2025, 6, 13, 7, 0, tzinfo=timezone.utc)
        self.assertEqual(_advance(freshness, ("E", utc), ("E", plus_five)), [True, False])

    def test_products_tracked_independently(self) -> None:
        freshness = EngagementFreshness(asyncio.Lock())
        self.assertEqual(
            _advance(freshness, ("A", T), ("B", T), ("A", T)),
            [True, True, False],
        )


if __name__ == "__main__":
    unittest.main()
