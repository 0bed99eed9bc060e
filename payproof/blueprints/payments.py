"""
Payment intake
--------------
POST /sendemail: multipart form with payer data + proof-of-payment file.
Validates, checks the operation is new, processes the proof, stores the
record and mails the operator.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from payproof.errors import PayProofError
from payproof.extensions import csrf
from payproof.forms import PaymentForm
from payproof.services.notifications import notify_operator
from payproof.services.payments import PaymentService
from payproof.services.proof_files import process_proof, read_upload

bp = Blueprint("payments", __name__)

SUCCESS_MESSAGE = "Formulario enviado con éxito"


@bp.post("/sendemail")
@csrf.exempt
def submit_payment():
    form = PaymentForm()

    try:
        form.check()
        record = form.to_record()

        PaymentService.ensure_unique(record["tipo_operacion"], record["numero_operacion"])

        upload = form.comprobante_pago.data
        data = read_upload(upload, int(current_app.config.get("PROOF_MAX_BYTES", 5 * 1024 * 1024)))
        proof = process_proof(
            upload.filename,
            data,
            max_width=int(current_app.config.get("PROOF_MAX_WIDTH", 800)),
        )

        payment = PaymentService.register(record)

        # The record stays stored even when the mail fails
        notify_operator(payment, proof)
    except PayProofError as e:
        current_app.logger.info("Submission rejected: %s (%s)", e.code, e.details)
        return e.to_response()

    return jsonify({"message": SUCCESS_MESSAGE})
