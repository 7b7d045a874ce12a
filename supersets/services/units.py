from __future__ import annotations

from ..models import WeightUnit

# Conversion constants
LB_TO_KG = 0.453592
IN_TO_CM = 2.54


def lb_to_kg(lb: float) -> float:
    return lb * LB_TO_KG


def kg_to_lb(kg: float) -> float:
    return kg / LB_TO_KG


def in_to_cm(inches: float) -> float:
    return inches * IN_TO_CM


def cm_to_in(cm: float) -> float:
    return cm / IN_TO_CM


def to_kg(weight: float, unit: WeightUnit) -> float:
    """Body or bar weight in kilograms, whatever unit it was stored in."""
    if unit == WeightUnit.lbs:
        return lb_to_kg(weight)
    return weight


def to_cm(length: float, unit: WeightUnit) -> float:
    """Lengths follow the weight unit: inches for lbs, centimeters for kg."""
    if unit == WeightUnit.lbs:
        return in_to_cm(length)
    return length
