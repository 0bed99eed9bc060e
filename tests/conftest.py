from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, Iterator

import pytest
from flask import Flask
from PIL import Image

from payproof import create_app
from payproof.config import TestingConfig
from payproof.extensions import db


def build_app(**overrides: Any) -> Flask:
    """Testing app, optionally with config attributes overridden."""
    cfg = type("OverrideConfig", (TestingConfig,), overrides) if overrides else TestingConfig
    return create_app(cfg)


@pytest.fixture()
def app() -> Iterator[Flask]:
    app = build_app()
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask):
    return app.test_client()


def image_bytes(fmt: str = "PNG", size: tuple = (1600, 1200), mode: str = "RGB") -> bytes:
    buf = BytesIO()
    Image.new(mode, size, "red").save(buf, format=fmt)
    return buf.getvalue()


PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


def form_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "nombres": "Ana María",
        "apellidos": "Quispe Huamán",
        "correo": "ana.quispe@example.pe",
        "telefono": "987654321",
        "universidad": "Universidad Nacional de Ingeniería",
        "entrada": "Estudiante",
        "codigo": "20231234",
        "carrera": "Ingeniería de Sistemas",
        "tipo_operacion": "Yape",
        "numero_operacion": "00123456",
        "dni": "71234567",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


def with_file(data: Dict[str, Any], content: bytes, filename: str = "comprobante.png") -> Dict[str, Any]:
    out = dict(data)
    out["comprobante_pago"] = (BytesIO(content), filename)
    return out
