import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .categories import Category

FALLBACK_POLICIES = ("default", "random")


class Settings(BaseModel):
    """Configuración del servicio. Se construye una vez y no se modifica."""

    model_config = ConfigDict(frozen=True)

    # Proveedor de visión (OpenAI chat completions)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: str = "https://api.openai.com/v1"
    vision_timeout_seconds: float = Field(15.0, gt=0)

    # Qué hacer cuando la API de visión falla o no contesta nada útil
    fallback_policy: str = "default"
    fallback_category: Category = Category.PLASTIC

    # Servidor / CORS
    allowed_origins: List[str] = ["*"]
    max_image_bytes: int = Field(10 * 1024 * 1024, gt=0)
    port: int = 3000
    log_level: str = "INFO"

    @field_validator("fallback_policy")
    @classmethod
    def _check_policy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in FALLBACK_POLICIES:
            raise ValueError(f"fallback_policy debe ser uno de {FALLBACK_POLICIES}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


def settings_from_env(env: Optional[dict] = None) -> Settings:
    """Lee las variables de entorno (o un dict equivalente) y valida."""
    env = os.environ if env is None else env
    values = {
        "openai_api_key": env.get("OPENAI_API_KEY", ""),
        "openai_model": env.get("OPENAI_MODEL", "gpt-4o"),
        "openai_base_url": env.get("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
        "vision_timeout_seconds": env.get("VISION_TIMEOUT_SECONDS", "15"),
        "fallback_policy": env.get("FALLBACK_POLICY", "default"),
        "fallback_category": env.get("FALLBACK_CATEGORY", "plastic").strip().lower(),
        "allowed_origins": _split_origins(env.get("ALLOWED_ORIGINS", "*")),
        "max_image_bytes": env.get("MAX_IMAGE_BYTES", str(10 * 1024 * 1024)),
        "port": env.get("PORT", "3000"),
        "log_level": env.get("LOG_LEVEL", "INFO"),
    }
    return Settings(**values)


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    return settings_from_env()
