from __future__ import annotations

# -----------------------------------------------------------------------------
# Payment Model
# One row per submitted payment confirmation. An operation is identified
# by (tipo_operacion, numero_operacion); the pair is unique.
# -----------------------------------------------------------------------------

from typing import Optional

from sqlalchemy import UniqueConstraint, select
from sqlalchemy.orm import Mapped, mapped_column

from payproof.extensions import db

from .mixins import RegisteredAtMixin

# Form/column names in submission order
PAYMENT_FIELDS = (
    "nombres",
    "apellidos",
    "correo",
    "telefono",
    "universidad",
    "entrada",
    "codigo",
    "carrera",
    "tipo_operacion",
    "numero_operacion",
    "dni",
)


class Payment(db.Model, RegisteredAtMixin):
    __tablename__ = "pagos"
    __table_args__ = (
        UniqueConstraint("tipo_operacion", "numero_operacion", name="uq_pagos_operacion"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # ---- Payer ----
    nombres: Mapped[str] = mapped_column(db.String(255), nullable=False)
    apellidos: Mapped[str] = mapped_column(db.String(255), nullable=False)
    correo: Mapped[str] = mapped_column(db.String(255), nullable=False, index=True)
    telefono: Mapped[str] = mapped_column(db.String(50), nullable=False)
    dni: Mapped[str] = mapped_column(db.String(20), nullable=False, index=True)

    # ---- Enrolment ----
    universidad: Mapped[str] = mapped_column(db.String(255), nullable=False)
    entrada: Mapped[str] = mapped_column(db.String(50), nullable=False)
    codigo: Mapped[Optional[str]] = mapped_column(db.String(50), nullable=True)
    carrera: Mapped[str] = mapped_column(db.String(255), nullable=False)

    # ---- Operation ----
    tipo_operacion: Mapped[str] = mapped_column(
        db.String(50),
        nullable=False,
        doc="Transaction type (bank transfer, wallet, deposit...).",
    )
    numero_operacion: Mapped[str] = mapped_column(
        db.String(50),
        nullable=False,
        index=True,
        doc="Transaction reference as printed on the proof.",
    )

    @classmethod
    def operation_exists(cls, tipo_operacion: str, numero_operacion: str) -> bool:
        stmt = select(
            select(cls.id)
            .where(
                cls.tipo_operacion == tipo_operacion,
                cls.numero_operacion == numero_operacion,
            )
            .exists()
        )
        return bool(db.session.execute(stmt).scalar())

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Payment {self.id} {self.tipo_operacion}:{self.numero_operacion}>"
