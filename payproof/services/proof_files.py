# payproof/services/proof_files.py
"""
Proof-of-payment file handling.

Uploads are sniffed from their leading bytes (the client-supplied
Content-Type and extension are ignored). Raster images are decoded,
downscaled to a maximum width and re-encoded; PDFs pass through
untouched; everything else is rejected.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from payproof.errors import ProofFileError

log = logging.getLogger(__name__)

SNIFF_LEN = 512

IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/bmp", "image/tiff"}
PDF_TYPE = "application/pdf"

# (prefix, mime) checked in order against the first bytes
_SIGNATURES: Tuple[Tuple[bytes, str], ...] = (
    (b"%PDF-", PDF_TYPE),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)

# Pillow format -> (output format, mime, extension)
_OUTPUT_FORMATS = {
    "JPEG": ("JPEG", "image/jpeg", ".jpg"),
    "PNG": ("PNG", "image/png", ".png"),
    "GIF": ("GIF", "image/gif", ".gif"),
}
_FALLBACK_OUTPUT = ("JPEG", "image/jpeg", ".jpg")


@dataclass
class ProcessedProof:
    filename: str
    mimetype: str
    content: bytes

    @property
    def is_image(self) -> bool:
        return self.mimetype.startswith("image/")


def sniff_content_type(head: bytes) -> str:
    """Return the detected MIME type, or application/octet-stream."""
    data = head[:SNIFF_LEN]
    for prefix, mime in _SIGNATURES:
        if data.startswith(prefix):
            return mime
    return "application/octet-stream"


def read_upload(storage: Optional[FileStorage], max_bytes: int) -> bytes:
    """
    Read an uploaded file fully, enforcing presence and size limits.
    Reads at most max_bytes + 1 bytes so oversized files are never buffered whole.
    """
    if storage is None or not storage.filename:
        raise ProofFileError(code="file_required")

    try:
        data = storage.stream.read(max_bytes + 1)
    except OSError:
        log.exception("Failed reading uploaded proof %r", storage.filename)
        raise ProofFileError(code="file_read_error", status=500)

    if not data:
        raise ProofFileError(code="file_required")
    if len(data) > max_bytes:
        raise ProofFileError({"max_bytes": max_bytes}, code="file_too_large")
    return data


def downscale_image(data: bytes, max_width: int) -> Tuple[bytes, str, str]:
    """
    Decode, downscale to max_width (aspect preserved) and re-encode.
    Returns (bytes, mimetype, extension).
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        log.warning("Rejected undecodable image: %s", e)
        raise ProofFileError(code="invalid_image")

    source_format = (img.format or "").upper()
    out_format, mimetype, ext = _OUTPUT_FORMATS.get(source_format, _FALLBACK_OUTPUT)

    try:
        img = ImageOps.exif_transpose(img)

        if max_width and img.width > max_width:
            # Pillow falls back to NEAREST for palette and bilevel images
            if img.mode == "P":
                img = img.convert("RGBA")
            elif img.mode == "1":
                img = img.convert("L")
            height = max(1, round(img.height * max_width / img.width))
            img = img.resize((max_width, height), Image.Resampling.LANCZOS)

        if out_format == "JPEG" and img.mode not in ("RGB", "L", "CMYK"):
            img = img.convert("RGB")
        elif out_format == "GIF" and img.mode in ("RGB", "RGBA"):
            img = img.quantize(colors=256)

        buf = BytesIO()
        save_kwargs = {"optimize": True}
        if out_format == "JPEG":
            save_kwargs["quality"] = 85
        img.save(buf, format=out_format, **save_kwargs)
    except (OSError, ValueError) as e:
        log.error("Image re-encode failed (%s -> %s): %s", source_format, out_format, e, exc_info=True)
        raise ProofFileError(code="image_processing_error", status=500)

    return buf.getvalue(), mimetype, ext


def attachment_name(original: Optional[str], ext: Optional[str] = None) -> str:
    """Sanitised filename; swap the extension when the format changed."""
    name = secure_filename(original or "") or "comprobante"
    if ext:
        stem, old_ext = os.path.splitext(name)
        if old_ext.lower() != ext and not (ext == ".jpg" and old_ext.lower() == ".jpeg"):
            name = f"{stem or 'comprobante'}{ext}"
    return name


def process_proof(filename: Optional[str], data: bytes, *, max_width: int = 800) -> ProcessedProof:
    """Sniff and transform an uploaded proof. Raises ProofFileError."""
    mime = sniff_content_type(data)

    if mime in IMAGE_TYPES:
        content, out_mime, ext = downscale_image(data, max_width)
        log.info(
            "Proof image %s processed: %d -> %d bytes (%s)",
            filename,
            len(data),
            len(content),
            out_mime,
        )
        return ProcessedProof(
            filename=attachment_name(filename, ext),
            mimetype=out_mime,
            content=content,
        )

    if mime == PDF_TYPE:
        return ProcessedProof(
            filename=attachment_name(filename, ".pdf"),
            mimetype=PDF_TYPE,
            content=data,
        )

    raise ProofFileError({"detected": mime}, code="file_type_not_allowed")


__all__ = [
    "ProcessedProof",
    "sniff_content_type",
    "read_upload",
    "downscale_image",
    "attachment_name",
    "process_proof",
]
