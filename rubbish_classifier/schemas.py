from pydantic import BaseModel, Field

from .categories import Category


class ClassificationResult(BaseModel):
    category: Category


class ScoreResult(BaseModel):
    points: float = Field(ge=0)


class PointsResponse(BaseModel):
    success: bool
    points: float
    timestamp: str
