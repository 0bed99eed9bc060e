from __future__ import annotations

from payproof.extensions import db
from payproof.models.payment import PAYMENT_FIELDS, Payment

from .mixins import RegisteredAtMixin

__all__ = ["db", "Payment", "PAYMENT_FIELDS", "RegisteredAtMixin"]
