import math
import unittest
from datetime import date, datetime, timezone

import pytest

from tots.percentiles import (
    PERCENTILE_CEILING,
    PERCENTILE_FLOOR,
    age_in_months,
    bmi,
    erf,
    normal_cdf,
    percentile,
    percentiles_for_entry,
)
from tots.reference_curves import REFERENCE_CURVES, GrowthMetric
from tots.schemas import Gender, GrowthEntry, SubjectProfile


class ErfTests(unittest.TestCase):
    def test_matches_math_erf(self):
        for x in (-3.0, -1.2, -0.3, 0.0, 0.4, 1.0, 2.5):
            self.assertAlmostEqual(erf(x), math.erf(x), places=6)

    def test_normal_cdf_is_symmetric(self):
        self.assertAlmostEqual(normal_cdf(0.0), 0.5, places=6)
        self.assertAlmostEqual(normal_cdf(1.0) + normal_cdf(-1.0), 1.0, places=6)


@pytest.mark.parametrize("key", sorted(REFERENCE_CURVES, key=lambda k: (k[0].value, str(k[1]))))
def test_expected_value_is_median_for_every_table_month(key):
    metric, gender = key
    curve = REFERENCE_CURVES[key]
    for month, point in enumerate(curve.points):
        assert abs(percentile(metric, point.mean, month, gender) - 50) <= 1


@pytest.mark.parametrize("value", [0.0001, 0.5, 3.0, 60.0, 1e6])
def test_percentile_is_clamped(value):
    result = percentile(GrowthMetric.WEIGHT, value, 4)
    assert PERCENTILE_FLOOR <= result <= PERCENTILE_CEILING


def test_extreme_values_hit_the_clamp():
    assert percentile(GrowthMetric.HEIGHT, 10.0, 6) == PERCENTILE_FLOOR
    assert percentile(GrowthMetric.HEIGHT, 200.0, 6) == PERCENTILE_CEILING


def test_ages_past_the_table_still_produce_a_percentile():
    assert PERCENTILE_FLOOR <= percentile(GrowthMetric.WEIGHT, 14.0, 30) <= PERCENTILE_CEILING
    assert percentile(GrowthMetric.WEIGHT, 3.3, -2, Gender.MALE) == 50


def test_bmi_ignores_gender():
    assert percentile(GrowthMetric.BMI, 17.0, 6, Gender.MALE) == percentile(GrowthMetric.BMI, 17.0, 6, Gender.FEMALE)


def test_age_in_months_counts_whole_months():
    born = date(2024, 1, 31)
    assert age_in_months(born, date(2024, 2, 29)) == 0
    assert age_in_months(born, date(2024, 3, 31)) == 2
    assert age_in_months(born, datetime(2024, 7, 30, tzinfo=timezone.utc)) == 5
    assert age_in_months(born, date(2023, 12, 1)) == 0


def test_bmi_requires_both_measurements():
    assert bmi(6.0, 0.0) is None
    assert bmi(None, 60.0) is None
    assert bmi(6.0, 60.0) == pytest.approx(16.666, rel=1e-3)


def test_five_point_six_kg_at_two_months_is_median():
    profile = SubjectProfile(birth_date=date(2025, 1, 1))
    entry = GrowthEntry(date=datetime(2025, 3, 5, tzinfo=timezone.utc), weight=5.6, height=0.0, head_circumference=0.0)
    result = percentiles_for_entry(entry, profile)
    assert result.age_months == 2
    assert abs(result.weight - 50) <= 1
    assert result.height is None
    assert result.head_circumference is None
    assert result.bmi is None


def test_entry_age_uses_profile_calendar_day():
    entry = GrowthEntry(date=datetime(2025, 3, 15, 5, 0, tzinfo=timezone.utc), weight=5.6, height=0.0, head_circumference=0.0)
    los_angeles = SubjectProfile(birth_date=date(2025, 1, 15), timezone="America/Los_Angeles")
    assert percentiles_for_entry(entry, los_angeles).age_months == 1

    late = entry.model_copy(update={"date": datetime(2025, 3, 14, 20, 0, tzinfo=timezone.utc)})
    tokyo = SubjectProfile(birth_date=date(2025, 1, 15), timezone="Asia/Tokyo")
    assert percentiles_for_entry(late, tokyo).age_months == 2


if __name__ == "__main__":
    unittest.main()
