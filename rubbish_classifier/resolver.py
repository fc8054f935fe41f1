import logging
import random
from typing import Optional

from .categories import Category, map_label, normalize_label
from .errors import LabelingError
from .images import ImageInput, prepare_image
from .settings import Settings
from .vision import Labeler

logger = logging.getLogger(__name__)

RANDOM_FALLBACK_POOL = (
    Category.PLASTIC,
    Category.PAPER,
    Category.GLASS,
    Category.METAL,
    Category.ORGANIC,
)


class CategoryResolver:
    """
    Imagen -> Category. La API de visión es inyectable (cualquier Labeler).
    Sólo InvalidImageError sale de resolve(); cualquier excepción del labeler
    o etiqueta vacía termina en la política de fallback configurada.
    """

    def __init__(self, labeler: Labeler, settings: Settings, rng: Optional[random.Random] = None):
        self.labeler = labeler
        self.fallback_policy = settings.fallback_policy
        self.fallback_category = settings.fallback_category
        self._rng = rng or random.Random()

    def fallback(self) -> Category:
        if self.fallback_policy == "random":
            return self._rng.choice(RANDOM_FALLBACK_POOL)
        return self.fallback_category

    def resolve(self, image: ImageInput) -> Category:
        image_uri = prepare_image(image)

        try:
            raw_label = self.labeler.label(image_uri)
        except LabelingError as e:
            category = self.fallback()
            logger.warning("⚠️ Clasificación falló (%s), usando fallback: %s", e, category.value)
            return category
        except Exception:
            category = self.fallback()
            logger.exception("⚠️ Error inesperado del labeler, usando fallback: %s", category.value)
            return category

        if not normalize_label(raw_label):
            category = self.fallback()
            logger.warning("⚠️ Respuesta vacía del modelo, usando fallback: %s", category.value)
            return category

        category = map_label(raw_label)
        logger.info('AI said: "%s" -> Mapped to: "%s"', raw_label, category.value)
        return category
