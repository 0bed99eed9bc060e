# payproof/services/notifications.py
from __future__ import annotations

import logging
import smtplib
from typing import List, Tuple

from flask import current_app, render_template
from flask_mail import BadHeaderError

from payproof.errors import NotificationError
from payproof.extensions import EmailAttachment, send_email
from payproof.models import Payment
from payproof.services.proof_files import ProcessedProof

log = logging.getLogger(__name__)

# (column, label) in the order shown to the operator
FIELD_LABELS: Tuple[Tuple[str, str], ...] = (
    ("nombres", "Nombres"),
    ("apellidos", "Apellidos"),
    ("correo", "Correo"),
    ("telefono", "Teléfono"),
    ("universidad", "Universidad"),
    ("entrada", "Entrada"),
    ("codigo", "Código"),
    ("carrera", "Carrera"),
    ("tipo_operacion", "Tipo de Operación"),
    ("numero_operacion", "Número de Operación"),
    ("dni", "DNI"),
)


def payment_rows(payment: Payment) -> List[Tuple[str, str]]:
    return [(label, getattr(payment, name) or "") for name, label in FIELD_LABELS]


def _recipients() -> List[str]:
    raw = current_app.config.get("PAYMENT_NOTIFY_TO") or ""
    return [r.strip() for r in str(raw).split(",") if r.strip()]


def notify_operator(payment: Payment, proof: ProcessedProof) -> None:
    """Mail the operator the payment details with the processed proof attached."""
    recipients = _recipients()
    if not recipients:
        log.error("No operator address configured (EMAILOUT); cannot notify payment id=%s", payment.id)
        raise NotificationError({"reason": "no_recipient"})

    if not current_app.config.get("MAIL_DEFAULT_SENDER"):
        log.error("No sender address configured (EMAIL); cannot notify payment id=%s", payment.id)
        raise NotificationError({"reason": "no_sender"})

    rows = payment_rows(payment)
    html = render_template("emails/payment_notification.html", rows=rows, payment=payment, proof=proof)
    body = render_template("emails/payment_notification.txt", rows=rows, payment=payment, proof=proof)

    try:
        send_email(
            current_app,
            current_app.config.get("PAYMENT_NOTIFY_SUBJECT", "Nuevo Pago Registrado"),
            recipients,
            html=html,
            body=body,
            attachments=[EmailAttachment(proof.filename, proof.content, proof.mimetype)],
        )
    except (smtplib.SMTPException, BadHeaderError, OSError) as e:
        log.error("Operator mail failed for payment id=%s: %s", payment.id, e, exc_info=True)
        raise NotificationError()

    log.info("Operator notified for payment id=%s (%s)", payment.id, ", ".join(recipients))
