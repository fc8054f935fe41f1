import base64
import binascii
import io
import logging
import re
from typing import Union

from PIL import Image, UnidentifiedImageError

from .errors import InvalidImageError

logger = logging.getLogger(__name__)

DEFAULT_MIME = "image/jpeg"
DATA_URI_PREFIX = "data:"
DATA_URI_RE = re.compile(r"^data:(image/[a-z0-9.+-]+);base64,(.*)$", re.IGNORECASE | re.DOTALL)

ImageInput = Union[bytes, bytearray, str]


def _mime_from_bytes(content: bytes) -> str:
    # Pillow sólo lee la cabecera; no decodifica la imagen completa
    try:
        with Image.open(io.BytesIO(content)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Invalid image: {e}") from e
    if not fmt:
        return DEFAULT_MIME
    return Image.MIME.get(fmt, f"image/{fmt.lower()}")


def _decode_base64(payload: str) -> bytes:
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Invalid base64 image: {e}") from e
    if not content:
        raise InvalidImageError("Empty image string")
    return content


def bytes_to_data_uri(content: bytes) -> str:
    if not content:
        raise InvalidImageError("Empty file")
    mime = _mime_from_bytes(bytes(content))
    logger.debug("Imagen %s de %d bytes", mime, len(content))
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def prepare_image(image: ImageInput) -> str:
    """
    Normaliza la imagen al formato que espera la API de visión (data URI).
    Acepta bytes crudos (upload), un data URI data:image/<tipo>;base64,...
    o base64 sin prefijo. En todos los casos el contenido tiene que ser una
    imagen que Pillow reconozca.
    """
    if isinstance(image, (bytes, bytearray)):
        return bytes_to_data_uri(bytes(image))

    if isinstance(image, str):
        payload = image.strip()
        if not payload:
            raise InvalidImageError("Empty image string")
        if payload.startswith(DATA_URI_PREFIX):
            match = DATA_URI_RE.match(payload)
            if match is None:
                raise InvalidImageError("Unsupported data URI, expected data:image/<type>;base64,...")
            _mime_from_bytes(_decode_base64(match.group(2)))
            return payload
        return bytes_to_data_uri(_decode_base64(payload))

    raise InvalidImageError(f"Invalid image format: {type(image).__name__}")
