"""Unit conversion and display for growth measurements.

Measurements are stored metric (kg, cm); imperial values only exist at the edges.
"""
from __future__ import annotations

from typing import Optional

from .schemas import Measurements, UnitSystem

KG_PER_POUND = 0.45359237
OUNCES_PER_POUND = 16
CM_PER_INCH = 2.54
INCHES_PER_FOOT = 12


def pounds_to_kg(pounds: float, ounces: float = 0.0) -> float:
    return (pounds + ounces / OUNCES_PER_POUND) * KG_PER_POUND


def kg_to_pounds(kg: float) -> float:
    return kg / KG_PER_POUND


def inches_to_cm(inches: float, feet: float = 0.0) -> float:
    return (feet * INCHES_PER_FOOT + inches) * CM_PER_INCH


def cm_to_inches(cm: float) -> float:
    return cm / CM_PER_INCH


def imperial_measurements(
    *,
    pounds: Optional[float] = None,
    ounces: float = 0.0,
    feet: float = 0.0,
    inches: Optional[float] = None,
    head_inches: Optional[float] = None,
) -> Measurements:
    """Build metric measurements from a lb/oz and ft/in entry."""
    return Measurements(
        weight=pounds_to_kg(pounds, ounces) if pounds is not None else None,
        height=inches_to_cm(inches or 0.0, feet) if inches is not None or feet else None,
        head_circumference=inches_to_cm(head_inches) if head_inches is not None else None,
    )


def format_weight(kg: Optional[float], unit_system: UnitSystem) -> str:
    if not kg or kg <= 0:
        return "-"
    if unit_system == UnitSystem.IMPERIAL:
        total_ounces = round(kg_to_pounds(kg) * OUNCES_PER_POUND)
        pounds, ounces = divmod(total_ounces, OUNCES_PER_POUND)
        return f"{pounds} lb {ounces} oz"
    return f"{kg:.2f} kg"


def format_length(cm: Optional[float], unit_system: UnitSystem) -> str:
    if not cm or cm <= 0:
        return "-"
    if unit_system == UnitSystem.IMPERIAL:
        return f"{cm_to_inches(cm):.1f} in"
    return f"{cm:.1f} cm"
