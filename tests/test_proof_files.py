from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from payproof.errors import ProofFileError
from payproof.services.proof_files import (
    attachment_name,
    downscale_image,
    process_proof,
    read_upload,
    sniff_content_type,
)

from conftest import PDF_BYTES, image_bytes


def _storage(content: bytes, filename: str = "pago.png") -> FileStorage:
    return FileStorage(stream=BytesIO(content), filename=filename)


@pytest.mark.parametrize(
    "fmt,mime",
    [
        ("PNG", "image/png"),
        ("JPEG", "image/jpeg"),
        ("GIF", "image/gif"),
        ("BMP", "image/bmp"),
        ("TIFF", "image/tiff"),
    ],
)
def test_sniff_images(fmt: str, mime: str) -> None:
    assert sniff_content_type(image_bytes(fmt, size=(10, 10))) == mime


def test_sniff_pdf_and_unknown() -> None:
    assert sniff_content_type(PDF_BYTES) == "application/pdf"
    assert sniff_content_type(b"hola mundo") == "application/octet-stream"
    assert sniff_content_type(b"") == "application/octet-stream"


def test_sniff_ignores_extension() -> None:
    proof = process_proof("comprobante.pdf", image_bytes("PNG", size=(20, 10)))
    assert proof.mimetype == "image/png"
    assert proof.filename == "comprobante.png"


def test_wide_image_downscaled_keeping_aspect() -> None:
    content, mime, ext = downscale_image(image_bytes("PNG", size=(1600, 1200)), 800)

    assert (mime, ext) == ("image/png", ".png")
    with Image.open(BytesIO(content)) as img:
        assert img.size == (800, 600)


def test_narrow_image_not_upscaled() -> None:
    content, mime, _ = downscale_image(image_bytes("JPEG", size=(400, 300)), 800)

    assert mime == "image/jpeg"
    with Image.open(BytesIO(content)) as img:
        assert img.size == (400, 300)


def test_bmp_reencoded_as_jpeg() -> None:
    proof = process_proof("voucher.bmp", image_bytes("BMP", size=(1000, 500)))

    assert proof.mimetype == "image/jpeg"
    assert proof.filename == "voucher.jpg"
    assert proof.is_image
    with Image.open(BytesIO(proof.content)) as img:
        assert img.format == "JPEG"
        assert img.size == (800, 400)


def test_rgba_png_stays_png() -> None:
    proof = process_proof("captura.png", image_bytes("PNG", size=(900, 900), mode="RGBA"))

    assert proof.mimetype == "image/png"
    with Image.open(BytesIO(proof.content)) as img:
        assert img.size == (800, 800)


def test_pdf_passes_through_untouched() -> None:
    proof = process_proof("recibo.pdf", PDF_BYTES)

    assert proof.mimetype == "application/pdf"
    assert proof.content == PDF_BYTES
    assert proof.filename == "recibo.pdf"
    assert not proof.is_image


def test_unsupported_type_rejected() -> None:
    with pytest.raises(ProofFileError) as exc:
        process_proof("notas.txt", b"solo texto, nada de imagen")

    assert exc.value.code == "file_type_not_allowed"
    assert exc.value.status == 400
    assert exc.value.details == {"detected": "application/octet-stream"}


def test_truncated_image_is_invalid() -> None:
    broken = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

    with pytest.raises(ProofFileError) as exc:
        process_proof("roto.png", broken)

    assert exc.value.code == "invalid_image"
    assert exc.value.status == 400


def test_read_upload_requires_file() -> None:
    with pytest.raises(ProofFileError) as exc:
        read_upload(None, 1024)
    assert exc.value.code == "file_required"

    with pytest.raises(ProofFileError) as exc:
        read_upload(_storage(b"", filename="vacio.png"), 1024)
    assert exc.value.code == "file_required"


def test_read_upload_enforces_limit() -> None:
    assert read_upload(_storage(b"x" * 1024), 1024) == b"x" * 1024

    with pytest.raises(ProofFileError) as exc:
        read_upload(_storage(b"x" * 1025), 1024)

    assert exc.value.code == "file_too_large"
    assert exc.value.details == {"max_bytes": 1024}


@pytest.mark.parametrize(
    "original,ext,expected",
    [
        ("foto.jpeg", ".jpg", "foto.jpeg"),
        ("foto.JPG", ".jpg", "foto.JPG"),
        ("scan.tiff", ".jpg", "scan.jpg"),
        ("../../etc/pago.png", ".png", "etc_pago.png"),
        ("", ".pdf", "comprobante.pdf"),
        (None, None, "comprobante"),
    ],
)
def test_attachment_name(original, ext, expected) -> None:
    assert attachment_name(original, ext) == expected


def test_exif_orientation_applied_before_resize() -> None:
    # Stored portrait, tagged "rotate 90 CW" so it displays landscape
    exif = Image.Exif()
    exif[0x0112] = 6
    buf = BytesIO()
    Image.new("RGB", (1200, 1600), "blue").save(buf, format="JPEG", exif=exif.tobytes())

    content, mime, _ = downscale_image(buf.getvalue(), 800)

    assert mime == "image/jpeg"
    with Image.open(BytesIO(content)) as img:
        assert img.size == (800, 600)


def test_gif_resized_and_kept_as_gif() -> None:
    proof = process_proof("animo.gif", image_bytes("GIF", size=(1000, 500)))

    assert proof.mimetype == "image/gif"
    assert proof.filename == "animo.gif"
    with Image.open(BytesIO(proof.content)) as img:
        assert img.format == "GIF"
        assert img.mode == "P"
        assert img.size == (800, 400)
