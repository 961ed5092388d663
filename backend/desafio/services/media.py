from __future__ import annotations
from PIL import Image, UnidentifiedImageError
import io
import os
import re

from desafio.errors import ValidationError

FORMAT_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "HEIF": "image/heif",
    "BMP": "image/bmp",
}
EXT_FOR_MIME = {"image/jpeg": "jpg"}
DEFAULT_EXT = "png"

_EXT_RE = re.compile(r"^[a-z0-9]{1,8}$")


def sniff_mime(data: bytes) -> str | None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            if not img.format:
                return None
            return FORMAT_MIME.get(img.format, f"image/{img.format.lower()}")
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def check_screenshot(data: bytes, content_type: str | None, max_bytes: int) -> str:
    """
    Validate an uploaded print and return its content type.
    - declared content type must be image/*
    - size must not exceed max_bytes
    - Pillow must recognise the bytes as an image
    """
    if not data:
        raise ValidationError("Envie o print do Strava.")
    if not (content_type or "").startswith("image/"):
        raise ValidationError("Envie um arquivo de imagem.")
    if len(data) > max_bytes:
        raise ValidationError(f"A imagem deve ter no maximo {max_bytes // (1024 * 1024)}MB.")
    if sniff_mime(data) is None:
        raise ValidationError("Arquivo de imagem invalido.")
    return content_type


def ext_for_upload(filename: str | None, mime: str | None) -> str:
    """Extension from the original filename, else from the MIME subtype, else png."""
    _, dot_ext = os.path.splitext(filename or "")
    ext = dot_ext[1:].lower()
    if _EXT_RE.match(ext):
        return ext
    if mime and "/" in mime:
        if mime in EXT_FOR_MIME:
            return EXT_FOR_MIME[mime]
        subtype = mime.split("/", 1)[1].lower()
        if _EXT_RE.match(subtype):
            return subtype
    return DEFAULT_EXT
