"""Population reference curves (expected value and standard deviation by age in months).

Values follow the published 0-24 month infant growth standards, rounded to the
precision the app displays. Weight is kg; height and head circumference are cm;
BMI is kg/m^2.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from .schemas import Gender


class GrowthMetric(str, Enum):
    WEIGHT = "weight"
    HEIGHT = "height"
    HEAD_CIRCUMFERENCE = "head_circumference"
    BMI = "bmi"


@dataclass(frozen=True)
class CurvePoint:
    mean: float
    sd: float


@dataclass(frozen=True)
class ReferenceCurve:
    metric: GrowthMetric
    gender: Optional[Gender]
    points: Tuple[CurvePoint, ...]

    @property
    def last_month(self) -> int:
        return len(self.points) - 1

    def at(self, age_months: int) -> CurvePoint:
        """Expected value and sd at an age; never fails for out-of-range ages."""
        if age_months <= 0:
            return self.points[0]
        if age_months <= self.last_month:
            return self.points[age_months]
        return extrapolate(self.points, age_months)


def extrapolate(points: Sequence[CurvePoint], age_months: int) -> CurvePoint:
    """Extend a table past its last month using the last observed monthly delta."""
    if len(points) < 2:
        return points[-1]
    last_month = len(points) - 1
    last, previous = points[-1], points[-2]
    months_past = age_months - last_month
    return CurvePoint(
        mean=last.mean + (last.mean - previous.mean) * months_past,
        sd=last.sd + (last.sd - previous.sd) * months_past,
    )


def _curve(
    metric: GrowthMetric,
    gender: Optional[Gender],
    means: Sequence[float],
    sds: Sequence[float],
) -> ReferenceCurve:
    if len(means) != len(sds):
        raise ValueError(f"{metric.value} table has {len(means)} means and {len(sds)} sds")
    return ReferenceCurve(
        metric=metric,
        gender=gender,
        points=tuple(CurvePoint(mean=m, sd=s) for m, s in zip(means, sds)),
    )


WEIGHT_MALE = _curve(
    GrowthMetric.WEIGHT,
    Gender.MALE,
    [3.3, 4.5, 5.6, 6.4, 7.0, 7.5, 7.9, 8.3, 8.6, 8.9, 9.2, 9.4, 9.6,
     9.9, 10.1, 10.3, 10.5, 10.7, 10.9, 11.1, 11.3, 11.5, 11.8, 12.0, 12.2],
    [0.45, 0.58, 0.67, 0.74, 0.78, 0.82, 0.86, 0.89, 0.92, 0.95, 0.98, 1.00, 1.02,
     1.05, 1.07, 1.09, 1.11, 1.14, 1.16, 1.18, 1.21, 1.23, 1.26, 1.28, 1.31],
)

WEIGHT_FEMALE = _curve(
    GrowthMetric.WEIGHT,
    Gender.FEMALE,
    [3.2, 4.2, 5.1, 5.8, 6.4, 6.9, 7.3, 7.6, 7.9, 8.2, 8.5, 8.7, 8.9,
     9.2, 9.4, 9.6, 9.8, 10.0, 10.2, 10.4, 10.6, 10.9, 11.1, 11.3, 11.5],
    [0.44, 0.55, 0.63, 0.70, 0.75, 0.80, 0.84, 0.88, 0.91, 0.94, 0.97, 1.00, 1.03,
     1.06, 1.08, 1.11, 1.13, 1.16, 1.18, 1.21, 1.24, 1.26, 1.29, 1.31, 1.34],
)

WEIGHT_NEUTRAL = _curve(
    GrowthMetric.WEIGHT,
    None,
    [3.3, 4.4, 5.6, 6.1, 6.7, 7.2, 7.6, 8.0, 8.3, 8.6, 8.9, 9.1, 9.3,
     9.6, 9.8, 10.0, 10.2, 10.4, 10.6, 10.8, 11.0, 11.2, 11.5, 11.7, 11.9],
    [0.45, 0.57, 0.65, 0.72, 0.77, 0.81, 0.85, 0.89, 0.92, 0.95, 0.98, 1.00, 1.03,
     1.06, 1.08, 1.10, 1.12, 1.15, 1.17, 1.20, 1.23, 1.25, 1.28, 1.30, 1.33],
)

HEIGHT_MALE = _curve(
    GrowthMetric.HEIGHT,
    Gender.MALE,
    [49.9, 54.7, 58.4, 61.4, 63.9, 65.9, 67.6, 69.2, 70.6, 72.0, 73.3, 74.5, 75.7,
     76.9, 78.0, 79.1, 80.2, 81.2, 82.3, 83.2, 84.2, 85.1, 86.0, 86.9, 87.8],
    [1.89, 1.95, 2.00, 2.05, 2.08, 2.12, 2.15, 2.18, 2.22, 2.26, 2.30, 2.34, 2.38,
     2.43, 2.47, 2.52, 2.56, 2.61, 2.65, 2.70, 2.74, 2.79, 2.83, 2.87, 2.92],
)

HEIGHT_FEMALE = _curve(
    GrowthMetric.HEIGHT,
    Gender.FEMALE,
    [49.1, 53.7, 57.1, 59.8, 62.1, 64.0, 65.7, 67.3, 68.7, 70.1, 71.5, 72.8, 74.0,
     75.2, 76.4, 77.5, 78.6, 79.7, 80.7, 81.7, 82.7, 83.7, 84.6, 85.5, 86.4],
    [1.86, 1.95, 2.03, 2.10, 2.16, 2.21, 2.26, 2.31, 2.36, 2.41, 2.46, 2.51, 2.56,
     2.61, 2.66, 2.71, 2.76, 2.81, 2.86, 2.91, 2.96, 3.00, 3.05, 3.09, 3.14],
)

HEIGHT_NEUTRAL = _curve(
    GrowthMetric.HEIGHT,
    None,
    [49.5, 54.2, 57.8, 60.6, 63.0, 65.0, 66.7, 68.3, 69.7, 71.1, 72.4, 73.7, 74.9,
     76.1, 77.2, 78.3, 79.4, 80.5, 81.5, 82.5, 83.5, 84.4, 85.3, 86.2, 87.1],
    [1.88, 1.95, 2.02, 2.08, 2.12, 2.17, 2.21, 2.25, 2.29, 2.34, 2.38, 2.43, 2.47,
     2.52, 2.57, 2.62, 2.66, 2.71, 2.76, 2.81, 2.85, 2.90, 2.94, 2.98, 3.03],
)

HEAD_CIRCUMFERENCE_MALE = _curve(
    GrowthMetric.HEAD_CIRCUMFERENCE,
    Gender.MALE,
    [34.5, 37.3, 39.1, 40.5, 41.6, 42.6, 43.3, 44.0, 44.5, 45.0, 45.4, 45.8, 46.1,
     46.3, 46.6, 46.8, 47.0, 47.2, 47.4, 47.5, 47.7, 47.8, 48.0, 48.1, 48.3],
    [1.27, 1.17, 1.16, 1.16, 1.16, 1.17, 1.18, 1.19, 1.20, 1.21, 1.22, 1.23, 1.24,
     1.24, 1.25, 1.25, 1.26, 1.26, 1.27, 1.27, 1.28, 1.28, 1.29, 1.29, 1.30],
)

HEAD_CIRCUMFERENCE_FEMALE = _curve(
    GrowthMetric.HEAD_CIRCUMFERENCE,
    Gender.FEMALE,
    [33.9, 36.5, 38.3, 39.5, 40.6, 41.5, 42.2, 42.8, 43.4, 43.8, 44.2, 44.6, 44.9,
     45.2, 45.4, 45.7, 45.9, 46.1, 46.2, 46.4, 46.6, 46.7, 46.9, 47.0, 47.2],
    [1.18, 1.19, 1.20, 1.21, 1.23, 1.24, 1.25, 1.27, 1.28, 1.29, 1.30, 1.31, 1.32,
     1.33, 1.34, 1.34, 1.35, 1.36, 1.36, 1.37, 1.38, 1.38, 1.39, 1.39, 1.40],
)

HEAD_CIRCUMFERENCE_NEUTRAL = _curve(
    GrowthMetric.HEAD_CIRCUMFERENCE,
    None,
    [34.2, 36.9, 38.7, 40.0, 41.1, 42.1, 42.8, 43.4, 44.0, 44.4, 44.8, 45.2, 45.5,
     45.8, 46.0, 46.3, 46.5, 46.7, 46.8, 47.0, 47.2, 47.3, 47.5, 47.6, 47.8],
    [1.23, 1.18, 1.18, 1.19, 1.20, 1.21, 1.22, 1.23, 1.24, 1.25, 1.26, 1.27, 1.28,
     1.29, 1.30, 1.30, 1.31, 1.31, 1.32, 1.32, 1.33, 1.33, 1.34, 1.34, 1.35],
)

# Only a gender-neutral BMI table exists; curve_for() ignores gender for BMI.
BMI_NEUTRAL = _curve(
    GrowthMetric.BMI,
    None,
    [13.4, 14.9, 16.3, 16.9, 17.2, 17.3, 17.3, 17.3, 17.2, 17.0, 16.9, 16.8, 16.7,
     16.6, 16.5, 16.4, 16.3, 16.2, 16.1, 16.1, 16.0, 15.9, 15.9, 15.8, 15.8],
    [1.2, 1.3, 1.4, 1.4, 1.4, 1.4, 1.4, 1.4, 1.4, 1.4, 1.3, 1.3, 1.3,
     1.3, 1.3, 1.3, 1.3, 1.3, 1.3, 1.3, 1.3, 1.3, 1.3, 1.3, 1.3],
)


REFERENCE_CURVES: Dict[Tuple[GrowthMetric, Optional[Gender]], ReferenceCurve] = {
    (curve.metric, curve.gender): curve
    for curve in (
        WEIGHT_MALE,
        WEIGHT_FEMALE,
        WEIGHT_NEUTRAL,
        HEIGHT_MALE,
        HEIGHT_FEMALE,
        HEIGHT_NEUTRAL,
        HEAD_CIRCUMFERENCE_MALE,
        HEAD_CIRCUMFERENCE_FEMALE,
        HEAD_CIRCUMFERENCE_NEUTRAL,
        BMI_NEUTRAL,
    )
}


def curve_for(metric: GrowthMetric, gender: Optional[Gender] = None) -> ReferenceCurve:
    if metric == GrowthMetric.BMI:
        return BMI_NEUTRAL
    return REFERENCE_CURVES.get((metric, gender)) or REFERENCE_CURVES[(metric, None)]
