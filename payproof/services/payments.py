# payproof/services/payments.py
import logging
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from payproof.errors import DuplicateOperation, StorageError
from payproof.extensions import db
from payproof.models import Payment

log = logging.getLogger(__name__)


class PaymentService:
    """Uniqueness check + persistence for submitted payments."""

    @staticmethod
    def ensure_unique(tipo_operacion: str, numero_operacion: str) -> None:
        try:
            exists = Payment.operation_exists(tipo_operacion, numero_operacion)
        except SQLAlchemyError as e:
            db.session.rollback()
            log.error("Duplicate check failed: %s", e, exc_info=True)
            raise StorageError()

        if exists:
            log.info("Rejected duplicate operation %s:%s", tipo_operacion, numero_operacion)
            raise DuplicateOperation()

    @staticmethod
    def register(record: Dict[str, Any]) -> Payment:
        """
        Insert one payment. The (tipo_operacion, numero_operacion)
        unique constraint is the final arbiter when two submissions race.
        """
        payment = Payment(**record)
        db.session.add(payment)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            log.info(
                "Unique constraint hit for %s:%s",
                record.get("tipo_operacion"),
                record.get("numero_operacion"),
            )
            raise DuplicateOperation()
        except SQLAlchemyError as e:
            db.session.rollback()
            log.error("Payment insert failed: %s", e, exc_info=True)
            raise StorageError()

        log.info(
            "Registered payment id=%s operation=%s:%s",
            payment.id,
            payment.tipo_operacion,
            payment.numero_operacion,
        )
        return payment
