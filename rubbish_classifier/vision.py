import logging
from typing import Protocol

import requests

from .errors import LabelingError
from .settings import Settings

logger = logging.getLogger(__name__)

CLASSIFY_PROMPT = (
    "Look at this waste item and classify it into ONE category: plastic, paper, "
    "glass, metal, organic, hazardous, or unknown. Respond with just the category "
    "name. Examples: toilet paper = paper, aluminum can = metal, plastic bottle = "
    "plastic, unidentifiable item = unknown."
)
MAX_TOKENS = 20


class Labeler(Protocol):
    def label(self, image_uri: str) -> str:
        """Devuelve la etiqueta libre del modelo o lanza LabelingError."""
        ...


def build_payload(model: str, image_uri: str) -> dict:
    return {
        "model": model,
        "messages": [{
            "role": "user",
            "content": [
                {"type": "text", "text": CLASSIFY_PROMPT},
                {"type": "image_url", "image_url": {"url": image_uri, "detail": "low"}},
            ],
        }],
        "max_tokens": MAX_TOKENS,
        "temperature": 0,
    }


def extract_content(data) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise LabelingError(f"Respuesta inesperada de la API: {e!r}") from e
    if content is None:
        return ""
    if not isinstance(content, str):
        raise LabelingError(f"Contenido no textual: {type(content).__name__}")
    return content


class OpenAIVisionLabeler:
    """Cliente mínimo de chat completions con imagen (una llamada, sin reintentos).
    No guarda estado entre llamadas."""

    def __init__(self, settings: Settings):
        self.url = f"{settings.openai_base_url}/chat/completions"
        self.model = settings.openai_model
        self.timeout = settings.vision_timeout_seconds
        self._api_key = settings.openai_api_key

    def label(self, image_uri: str) -> str:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            # Una llamada independiente por imagen: sin cookies ni conexiones compartidas
            r = requests.post(
                self.url,
                headers=headers,
                json=build_payload(self.model, image_uri),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise LabelingError(f"OpenAI no disponible: {e}") from e

        if not r.ok:
            raise LabelingError(f"OpenAI API error: {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise LabelingError(f"Cuerpo no es JSON: {e}") from e

        content = extract_content(data)
        logger.debug("🧠 %s respondió: %r", self.model, content)
        return content
