import unittest
from datetime import date, datetime, timedelta, timezone

from tots.config import AppConfig
from tots.schemas import CareEvent, EventCategory, SubjectProfile
from tots.scheduler import (
    DUE_NOW,
    SCHEDULED_CATEGORIES,
    countdown_for,
    countdowns,
    default_intervals,
    format_countdown,
    interval_for,
    next_expected,
)

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


def logged(category: EventCategory, hours_ago: float) -> CareEvent:
    return CareEvent(category=category, timestamp=NOW - timedelta(hours=hours_ago))


class FormatCountdownTests(unittest.TestCase):
    def test_hours_and_minutes(self):
        self.assertEqual(format_countdown(2 * 3600 + 15 * 60), "2h 15m")

    def test_minutes_only(self):
        self.assertEqual(format_countdown(45 * 60 + 30), "45m")

    def test_zero_and_under_a_minute_are_due(self):
        self.assertEqual(format_countdown(0), DUE_NOW)
        self.assertEqual(format_countdown(59), DUE_NOW)
        self.assertEqual(format_countdown(None), DUE_NOW)


class CountdownTests(unittest.TestCase):
    def setUp(self):
        self.config = AppConfig()
        self.profile = SubjectProfile(birth_date=(NOW - timedelta(days=180)).date())

    def test_overdue_feeding_is_due_now(self):
        result = countdown_for([logged(EventCategory.FEEDING, 4)], EventCategory.FEEDING, NOW, profile=self.profile, config=self.config)
        self.assertEqual(result.seconds_remaining, 0)
        self.assertEqual(result.label, DUE_NOW)

    def test_remaining_time_after_recent_feeding(self):
        result = countdown_for([logged(EventCategory.FEEDING, 1)], EventCategory.FEEDING, NOW, config=self.config)
        self.assertEqual(result.seconds_remaining, 2 * 3600)
        self.assertEqual(result.label, "2h 0m")
        self.assertEqual(result.next_expected_at, NOW + timedelta(hours=2))

    def test_no_events_means_due_now(self):
        self.assertEqual(next_expected([], EventCategory.DIAPER, timedelta(hours=2), NOW), NOW)

    def test_only_latest_event_of_the_category_counts(self):
        events = [logged(EventCategory.FEEDING, 5), logged(EventCategory.FEEDING, 0.5), logged(EventCategory.DIAPER, 0.1)]
        result = countdown_for(events, EventCategory.FEEDING, NOW, config=self.config)
        self.assertEqual(result.seconds_remaining, 2.5 * 3600)

    def test_active_session_suppresses_countdown(self):
        result = countdown_for(
            [logged(EventCategory.PUMPING, 1)],
            EventCategory.PUMPING,
            NOW,
            active_sessions={EventCategory.PUMPING},
            config=self.config,
        )
        self.assertIsNone(result.seconds_remaining)
        self.assertIsNone(result.label)

    def test_profile_override_beats_config(self):
        profile = SubjectProfile(interval_overrides={EventCategory.DIAPER: 4.0})
        self.assertEqual(interval_for(EventCategory.DIAPER, profile, self.config), timedelta(hours=4))
        self.assertEqual(interval_for(EventCategory.FEEDING, profile, self.config), timedelta(hours=3))

    def test_defaults_come_from_config(self):
        config = AppConfig(diaper_interval_hours=2.5)
        self.assertEqual(default_intervals(config)[EventCategory.DIAPER], 2.5)

    def test_one_countdown_per_scheduled_category(self):
        results = countdowns([], NOW, config=self.config)
        self.assertEqual([c.category for c in results], list(SCHEDULED_CATEGORIES))


if __name__ == "__main__":
    unittest.main()
