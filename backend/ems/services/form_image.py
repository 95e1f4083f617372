from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

import fitz

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
PDF_RENDER_DPI = 150

SUPPORTED_CONTENT_TYPES = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
    "application/pdf": "pdf",
}


class FormImageError(Exception):
    pass


@dataclass(frozen=True)
class FormImage:
    data: bytes
    mime_type: str

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def rasterize_pdf(file_bytes: bytes) -> bytes:
    """Render the first page of a scanned form to PNG."""
    try:
        doc = fitz.open(stream=file_bytes, filetype="pdf")
        try:
            if doc.page_count == 0:
                raise FormImageError("PDF has no pages")
            pixmap = doc[0].get_pixmap(dpi=PDF_RENDER_DPI)
            return pixmap.tobytes("png")
        finally:
            doc.close()
    except FormImageError:
        raise
    except Exception as e:
        logger.error("PDF rasterization failed: %s", e)
        raise FormImageError(f"Failed to render PDF form: {e}") from e


def prepare_form_image(file_bytes: bytes, content_type: str | None) -> FormImage:
    if content_type not in SUPPORTED_CONTENT_TYPES:
        raise FormImageError(f"Unsupported content type: {content_type}")

    if not file_bytes:
        raise FormImageError("Empty file")

    if len(file_bytes) > MAX_FILE_SIZE:
        raise FormImageError(f"File too large: {len(file_bytes)} bytes (max {MAX_FILE_SIZE})")

    if SUPPORTED_CONTENT_TYPES[content_type] == "pdf":
        return FormImage(data=rasterize_pdf(file_bytes), mime_type="image/png")
    return FormImage(data=file_bytes, mime_type=content_type)
