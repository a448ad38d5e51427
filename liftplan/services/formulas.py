"""Load arithmetic shared by generation and stats."""
from decimal import Decimal, ROUND_HALF_UP


def round1(value: float) -> float:
    """Round half-up to one decimal place (116.65 -> 116.7)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def round_load(value: float, increment: float | None = None) -> float:
    """Round a computed load, optionally snapping to a plate increment first."""
    if increment and increment > 0:
        value = round(value / increment) * increment
    return round1(value)


def epley_e1rm(weight_kg: float, reps: int) -> float:
    """Estimated one-rep max by Epley: weight * (1 + reps / 30), one decimal."""
    return round1(weight_kg * (1 + reps / 30))


def tonnage(weight_kg: float | None, reps: int | None) -> float:
    if weight_kg is None or reps is None:
        return 0.0
    return weight_kg * reps
