"""
Error catalog + exception hierarchy for the public endpoints.

Services raise PayProofError subclasses; blueprints and the app-level
handlers turn them into the JSON error shape:

    {"error_code": "...", "error": "...", "details": ...}
"""

from __future__ import annotations

from typing import Any, Optional

from flask import jsonify

ERROR_MESSAGES = {
    "missing_fields": "Faltan campos obligatorios",
    "invalid_email": "El correo electrónico no es válido",
    "invalid_fields": "Algunos campos no son válidos",
    "duplicate_operation": "Número de operación ya registrado previamente",
    "file_required": "Debe cargar un archivo de comprobante de pago válido",
    "file_too_large": "El archivo supera el tamaño máximo permitido de 5 MB",
    "file_read_error": "Error al leer el archivo",
    "file_type_not_allowed": "El tipo de archivo no está permitido",
    "invalid_image": "Formato de imagen inválido",
    "image_processing_error": "Error al comprimir la imagen",
    "database_error": "Error en la base de datos",
    "email_error": "Error al enviar el correo",
    "report_error": "Error al obtener datos",
    "internal_error": "Error interno del servidor",
}


def error_response(code: str, status: int, details: Any = None, message: Optional[str] = None):
    resp = jsonify(
        {
            "error_code": code,
            "error": message or ERROR_MESSAGES.get(code, code),
            "details": details,
        }
    )
    resp.status_code = int(status)
    return resp


class PayProofError(Exception):
    code = "internal_error"
    status = 500

    def __init__(self, details: Any = None, *, code: Optional[str] = None, status: Optional[int] = None):
        if code:
            self.code = code
        if status:
            self.status = status
        self.details = details
        super().__init__(ERROR_MESSAGES.get(self.code, self.code))

    @property
    def message(self) -> str:
        return ERROR_MESSAGES.get(self.code, self.code)

    def to_response(self):
        return error_response(self.code, self.status, self.details)


class SubmissionInvalid(PayProofError):
    code = "missing_fields"
    status = 400


class DuplicateOperation(PayProofError):
    code = "duplicate_operation"
    status = 400


class ProofFileError(PayProofError):
    code = "file_type_not_allowed"
    status = 400


class StorageError(PayProofError):
    code = "database_error"
    status = 500


class NotificationError(PayProofError):
    code = "email_error"
    status = 500


class ReportError(PayProofError):
    code = "report_error"
    status = 500


__all__ = [
    "ERROR_MESSAGES",
    "error_response",
    "PayProofError",
    "SubmissionInvalid",
    "DuplicateOperation",
    "ProofFileError",
    "StorageError",
    "NotificationError",
    "ReportError",
]
