# payproof/forms/payment_form.py
from __future__ import annotations

from typing import Any, Dict, List

from flask_wtf import FlaskForm
from flask_wtf.file import FileField
from wtforms import StringField
from wtforms.validators import DataRequired, Length, Optional, Regexp

from payproof.errors import SubmissionInvalid
from payproof.models import PAYMENT_FIELDS

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _required(max_len: int) -> list:
    return [
        DataRequired(message="Este campo es obligatorio."),
        Length(max=max_len, message=f"Máximo {max_len} caracteres."),
    ]


class PaymentForm(FlaskForm):
    """
    Public payment-confirmation form.
    Field names are the multipart keys posted by the front-end.
    """

    class Meta:
        # Posted cross-origin by a static page; no session to bind a token to
        csrf = False

    nombres = StringField("Nombres", filters=[_strip], validators=_required(255))
    apellidos = StringField("Apellidos", filters=[_strip], validators=_required(255))
    correo = StringField(
        "Correo",
        filters=[_strip],
        validators=[
            DataRequired(message="Este campo es obligatorio."),
            Regexp(EMAIL_PATTERN, message="El correo electrónico no es válido."),
            Length(max=255, message="Máximo 255 caracteres."),
        ],
    )
    telefono = StringField("Teléfono", filters=[_strip], validators=_required(50))
    universidad = StringField("Universidad", filters=[_strip], validators=_required(255))
    entrada = StringField("Entrada", filters=[_strip], validators=_required(50))
    codigo = StringField(
        "Código",
        filters=[_strip],
        validators=[Optional(), Length(max=50, message="Máximo 50 caracteres.")],
    )
    carrera = StringField("Carrera", filters=[_strip], validators=_required(255))
    tipo_operacion = StringField("Tipo de Operación", filters=[_strip], validators=_required(50))
    numero_operacion = StringField("Número de Operación", filters=[_strip], validators=_required(50))
    dni = StringField("DNI", filters=[_strip], validators=_required(20))

    # Checked by the intake flow after the duplicate check
    comprobante_pago = FileField("Comprobante de pago")

    def missing_fields(self) -> List[str]:
        """Required text fields left empty, in submission order."""
        missing: List[str] = []
        for name in PAYMENT_FIELDS:
            field = self[name]
            if not any(isinstance(v, DataRequired) for v in field.validators):
                continue
            if not field.data:
                missing.append(name)
        return missing

    def check(self) -> None:
        """
        Validate and raise SubmissionInvalid with the catalog code:
        missing_fields → invalid_email → invalid_fields.
        """
        if self.validate():
            return

        missing = self.missing_fields()
        if missing:
            raise SubmissionInvalid(missing, code="missing_fields")

        if "correo" in self.errors and any(
            isinstance(v, Regexp) and not v.regex.match(self.correo.data or "")
            for v in self.correo.validators
        ):
            raise SubmissionInvalid(["correo"], code="invalid_email")

        errors: Dict[str, Any] = {k: v for k, v in self.errors.items() if k in PAYMENT_FIELDS}
        raise SubmissionInvalid(errors, code="invalid_fields")

    def to_record(self) -> Dict[str, Any]:
        data = {name: self[name].data for name in PAYMENT_FIELDS}
        data["codigo"] = data.get("codigo") or None
        return data
