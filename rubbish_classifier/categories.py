from enum import Enum
from types import MappingProxyType
from typing import Optional


class Category(str, Enum):
    """Categorías de residuo que devuelve el servicio."""

    PLASTIC = "plastic"
    PAPER = "paper"
    GLASS = "glass"
    METAL = "metal"
    ORGANIC = "organic"
    HAZARDOUS = "hazardous"
    UNKNOWN = "unknown"


CATEGORY_NAMES = tuple(c.value for c in Category)

# El orden de iteración decide los empates: "plastic bottle glass" cae en
# plastic porque plastic va antes que glass. No reordenar.
CATEGORY_KEYWORDS = MappingProxyType({
    Category.PAPER: (
        "paper", "cardboard", "newspaper", "magazine", "book", "receipt",
        "tissue", "toilet paper", "napkin", "document", "envelope",
        "pizza box", "cereal box", "milk carton", "egg carton",
    ),
    Category.PLASTIC: (
        "plastic", "bottle", "container", "bag", "packaging", "wrapper", "cup",
        "straw", "utensil", "water bottle", "soda bottle", "yogurt container",
        "takeout container", "plastic bag", "bubble wrap", "styrofoam",
    ),
    Category.GLASS: (
        "glass", "jar", "bottle glass", "window", "mirror", "glassware",
        "wine bottle", "beer bottle", "jam jar", "pickle jar", "glass container",
    ),
    Category.METAL: (
        "metal", "aluminum", "can", "tin", "steel", "copper", "iron", "foil",
        "soda can", "beer can", "food can", "aluminum foil", "metal lid",
        "bottle cap",
    ),
    Category.ORGANIC: (
        "organic", "food", "fruit", "vegetable", "compost", "biodegradable",
        "apple", "banana", "waste food", "food scraps", "peel", "core",
        "leftovers", "coffee grounds", "tea bag",
    ),
    Category.HAZARDOUS: (
        "battery", "electronic", "chemical", "paint", "toxic", "dangerous",
        "hazardous", "medical", "phone", "computer", "lightbulb", "motor oil",
        "cleaning product",
    ),
})


def normalize_label(raw_label: Optional[str]) -> str:
    return (raw_label or "").strip().lower()


def map_label(raw_label: Optional[str]) -> Category:
    """
    Traduce la respuesta libre del modelo a una Category.
    - coincidencia exacta con un nombre canónico
    - si no, primera categoría (en orden de tabla) con una keyword contenida en la etiqueta
    - si nada coincide: unknown
    """
    label = normalize_label(raw_label)
    if label in CATEGORY_NAMES:
        return Category(label)

    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in label for keyword in keywords):
            return category

    return Category.UNKNOWN
