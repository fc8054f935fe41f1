import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from .categories import CATEGORY_NAMES, Category
from .errors import InputError
from .logging_config import configure_logging
from .resolver import CategoryResolver
from .schemas import ClassificationResult, PointsResponse
from .service import classify, classify_with_weight
from .settings import Settings, get_settings
from .vision import OpenAIVisionLabeler

logger = logging.getLogger(__name__)

SERVICE_NAME = "Rubbish Classifier API"
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


class PayloadTooLarge(Exception):
    pass


def now_iso_utc() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _declared_length(request: Request) -> Optional[int]:
    try:
        return int(request.headers.get("content-length", ""))
    except ValueError:
        return None


async def read_payload(request: Request, max_bytes: int):
    """
    Devuelve (imagen, peso) desde multipart (campo "image" archivo o texto)
    o desde un JSON {"image": "...", "weight": ...}.
    El tamaño se controla antes de leer el cuerpo completo.
    """
    declared = _declared_length(request)
    if declared is not None and declared > max_bytes:
        raise PayloadTooLarge(f"Request larger than {max_bytes} bytes")

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        field = form.get("image")
        weight = form.get("weight")
        if isinstance(field, UploadFile):
            image = await field.read(max_bytes + 1)
            logger.info("📁 Processing file upload, size: %d", len(image))
        else:
            image = field
    else:
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}
        image = body.get("image")
        weight = body.get("weight")
        if image:
            logger.info("📋 Processing base64 image")

    if isinstance(image, (bytes, str)) and len(image) > max_bytes:
        raise PayloadTooLarge(f"Image larger than {max_bytes} bytes")
    return image or None, weight


def build_resolver(settings: Settings) -> CategoryResolver:
    return CategoryResolver(OpenAIVisionLabeler(settings), settings)


def create_app(settings: Optional[Settings] = None, resolver: Optional[CategoryResolver] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if not settings.openai_api_key and resolver is None:
        logger.warning("OPENAI_API_KEY no está definido; todas las clasificaciones usarán el fallback")

    app = FastAPI(title=SERVICE_NAME, version="1.0.0")
    app.state.settings = settings
    app.state.resolver = resolver or build_resolver(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=settings.allowed_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/classify", response_model=PointsResponse)
    async def classify_points(request: Request):
        logger.info("📸 Received classification request")
        try:
            image, weight = await read_payload(request, settings.max_image_bytes)
        except PayloadTooLarge as e:
            return JSONResponse(status_code=413, content={"success": False, "error": str(e), "points": 0})

        if image is None:
            logger.info("❌ No image data found")
            return JSONResponse(status_code=400, content={
                "success": False, "error": "No image provided", "points": 0,
            })

        try:
            result = await run_in_threadpool(classify_with_weight, app.state.resolver, image, weight)
        except InputError as e:
            logger.info("❌ Invalid input: %s", e)
            return JSONResponse(status_code=400, content={"success": False, "error": str(e), "points": 0})
        except Exception as e:
            logger.exception("❌ Classification error")
            return JSONResponse(status_code=500, content={"success": False, "error": str(e), "points": 0})

        logger.info("✅ Classification complete, points: %s", result.points)
        return PointsResponse(success=True, points=result.points, timestamp=now_iso_utc())

    @app.post("/category", response_model=ClassificationResult)
    async def classify_category(request: Request):
        logger.info("📸 Received category classification request")
        unknown = Category.UNKNOWN.value
        try:
            image, _ = await read_payload(request, settings.max_image_bytes)
        except PayloadTooLarge as e:
            return JSONResponse(status_code=413, content={"error": str(e), "category": unknown})

        if image is None:
            logger.info("❌ No image data found")
            return JSONResponse(status_code=400, content={"error": "No image provided", "category": unknown})

        try:
            result = await run_in_threadpool(classify, app.state.resolver, image)
        except InputError as e:
            logger.info("❌ Invalid input: %s", e)
            return JSONResponse(status_code=400, content={"error": str(e), "category": unknown})
        except Exception as e:
            logger.exception("❌ Classification error")
            return JSONResponse(status_code=500, content={"error": str(e), "category": unknown})

        logger.info("✅ Classification complete, category: %s", result.category.value)
        return result

    @app.get("/test")
    def test():
        return {"message": "API is working!", "timestamp": now_iso_utc()}

    @app.get("/health")
    def health():
        return {"status": "OK", "service": SERVICE_NAME, "categories": list(CATEGORY_NAMES)}

    return app


app = create_app()


def run():
    import uvicorn

    settings = get_settings()
    logger.info("🚀 %s running on port %s", SERVICE_NAME, settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
