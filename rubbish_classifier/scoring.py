import math
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Optional, Union

from .categories import Category
from .errors import InvalidWeightError

# Peso típico (gramos) cuando el cliente no manda el peso
WEIGHT_ESTIMATES_GRAMS = MappingProxyType({
    Category.PLASTIC: 25.0,
    Category.PAPER: 50.0,
    Category.GLASS: 300.0,
    Category.METAL: 15.0,
    Category.ORGANIC: 150.0,
    Category.HAZARDOUS: 50.0,
    Category.UNKNOWN: 20.0,
})

# Puntos por gramo; hazardous/unknown no suman nunca
POINTS_PER_GRAM = MappingProxyType({
    Category.PLASTIC: 0.02,
    Category.PAPER: 0.01,
    Category.GLASS: 0.015,
    Category.METAL: 0.03,
    Category.ORGANIC: 0.005,
    Category.HAZARDOUS: 0.0,
    Category.UNKNOWN: 0.0,
})

MIN_POINTS = 0.1
LIGHT_ITEM_GRAMS = 5.0


def _round_tenth(value: float) -> float:
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def parse_weight(value: Union[None, str, int, float]) -> Optional[float]:
    """Peso desde form/JSON: None o "" = sin peso; número o string numérico."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidWeightError(f"Invalid weight: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        weight = float(value)
    except (TypeError, ValueError):
        raise InvalidWeightError(f"Invalid weight: {value!r}")
    if not math.isfinite(weight):
        raise InvalidWeightError(f"Invalid weight: {value!r}")
    if weight < 0:
        raise InvalidWeightError(f"Weight must be non-negative, got {weight}")
    return weight


def score_points(category: Category, weight_grams: Optional[float] = None) -> float:
    """
    Puntos = peso * multiplicador, redondeado a 1 decimal (half-up).
    Objetos reciclables muy livianos (0 < peso < 5 g) reciben al menos 0.1.
    """
    category = Category(category)
    weight = parse_weight(weight_grams)
    if weight is None:
        weight = WEIGHT_ESTIMATES_GRAMS[category]

    multiplier = POINTS_PER_GRAM[category]
    points = weight * multiplier

    if 0 < weight < LIGHT_ITEM_GRAMS and multiplier > 0 and points < MIN_POINTS:
        points = MIN_POINTS

    return _round_tenth(points)
