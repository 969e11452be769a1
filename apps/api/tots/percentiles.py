"""Growth percentiles from reference curves using a z-score / normal-CDF model."""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from .reference_curves import CurvePoint, GrowthMetric, curve_for
from .schemas import Gender, GrowthEntry, GrowthPercentiles, SubjectProfile

PERCENTILE_FLOOR = 3
PERCENTILE_CEILING = 97

# Abramowitz & Stegun 7.1.26, |error| <= 1.5e-7
_ERF_P = 0.3275911
_ERF_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)


def erf(x: float) -> float:
    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _ERF_P * x)
    a1, a2, a3, a4, a5 = _ERF_A
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    return sign * (1.0 - poly * math.exp(-x * x))


def normal_cdf(z: float) -> float:
    return 0.5 * (1.0 + erf(z / math.sqrt(2.0)))


def z_score(value: float, point: CurvePoint) -> float:
    return (value - point.mean) / point.sd


def percentile(
    metric: GrowthMetric,
    value: float,
    age_months: int,
    gender: Optional[Gender] = None,
) -> int:
    """Population percentile for a measurement, clamped to [3, 97]."""
    point = curve_for(metric, gender).at(age_months)
    raw = round(normal_cdf(z_score(value, point)) * 100)
    return int(min(PERCENTILE_CEILING, max(PERCENTILE_FLOOR, raw)))


def age_in_months(birth_date: date, at: date | datetime) -> int:
    """Whole calendar months between birth and ``at``; never negative."""
    if isinstance(at, datetime):
        at = at.date()
    months = (at.year - birth_date.year) * 12 + (at.month - birth_date.month)
    if at.day < birth_date.day:
        months -= 1
    return max(0, months)


def bmi(weight_kg: Optional[float], height_cm: Optional[float]) -> Optional[float]:
    if not weight_kg or not height_cm or weight_kg <= 0 or height_cm <= 0:
        return None
    meters = height_cm / 100.0
    return weight_kg / (meters * meters)


def percentiles_for_entry(entry: GrowthEntry, profile: SubjectProfile) -> GrowthPercentiles:
    # Age is measured on the calendar day of the entry in the profile timezone.
    age = age_in_months(profile.birth_date, entry.date.astimezone(ZoneInfo(profile.timezone)))
    gender = profile.gender

    def _maybe(metric: GrowthMetric, value: Optional[float]) -> Optional[int]:
        if value is None or value <= 0:
            return None
        return percentile(metric, value, age, gender)

    return GrowthPercentiles(
        entry_id=entry.id,
        age_months=age,
        weight=_maybe(GrowthMetric.WEIGHT, entry.weight),
        height=_maybe(GrowthMetric.HEIGHT, entry.height),
        head_circumference=_maybe(GrowthMetric.HEAD_CIRCUMFERENCE, entry.head_circumference),
        bmi=_maybe(GrowthMetric.BMI, bmi(entry.weight, entry.height)),
    )
