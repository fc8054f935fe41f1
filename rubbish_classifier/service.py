from typing import Optional, Union

from .images import ImageInput
from .resolver import CategoryResolver
from .schemas import ClassificationResult, ScoreResult
from .scoring import parse_weight, score_points


def classify(resolver: CategoryResolver, image: ImageInput) -> ClassificationResult:
    return ClassificationResult(category=resolver.resolve(image))


def classify_with_weight(
    resolver: CategoryResolver,
    image: ImageInput,
    weight: Union[None, str, int, float] = None,
) -> ScoreResult:
    # El peso se valida antes de llamar a la API de visión
    grams: Optional[float] = parse_weight(weight)
    category = resolver.resolve(image)
    return ScoreResult(points=score_points(category, grams))
