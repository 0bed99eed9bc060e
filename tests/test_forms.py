from __future__ import annotations

import pytest
from flask import Flask

from payproof.errors import SubmissionInvalid
from payproof.forms import PaymentForm

from conftest import form_data


def _check(app: Flask, data) -> None:
    with app.test_request_context("/sendemail", method="POST", data=data):
        PaymentForm().check()


def test_valid_submission_passes(app: Flask) -> None:
    _check(app, form_data())


def test_missing_fields_listed_in_submission_order(app: Flask) -> None:
    with pytest.raises(SubmissionInvalid) as exc:
        _check(app, {"nombres": "Ana"})

    assert exc.value.code == "missing_fields"
    assert exc.value.status == 400
    assert exc.value.details == [
        "apellidos",
        "correo",
        "telefono",
        "universidad",
        "entrada",
        "carrera",
        "tipo_operacion",
        "numero_operacion",
        "dni",
    ]


def test_whitespace_only_counts_as_missing(app: Flask) -> None:
    with pytest.raises(SubmissionInvalid) as exc:
        _check(app, form_data(dni="   "))

    assert exc.value.code == "missing_fields"
    assert exc.value.details == ["dni"]


def test_codigo_is_optional(app: Flask) -> None:
    with app.test_request_context("/sendemail", method="POST", data=form_data(codigo="")):
        form = PaymentForm()
        form.check()
        assert form.to_record()["codigo"] is None


@pytest.mark.parametrize("email", ["sin-arroba", "ana@dominio", "ana@dominio.c", "ana @x.com"])
def test_invalid_email(app: Flask, email: str) -> None:
    with pytest.raises(SubmissionInvalid) as exc:
        _check(app, form_data(correo=email))

    assert exc.value.code == "invalid_email"
    assert exc.value.details == ["correo"]


def test_missing_fields_win_over_invalid_email(app: Flask) -> None:
    with pytest.raises(SubmissionInvalid) as exc:
        _check(app, form_data(correo="nope", dni=""))

    assert exc.value.code == "missing_fields"


def test_too_long_value_is_invalid_field(app: Flask) -> None:
    with pytest.raises(SubmissionInvalid) as exc:
        _check(app, form_data(dni="1" * 21))

    assert exc.value.code == "invalid_fields"
    assert set(exc.value.details) == {"dni"}


def test_values_are_trimmed(app: Flask) -> None:
    with app.test_request_context("/sendemail", method="POST", data=form_data(nombres="  Ana  ")):
        form = PaymentForm()
        form.check()
        record = form.to_record()

    assert record["nombres"] == "Ana"
    assert "comprobante_pago" not in record
