# payproof/models/mixins.py
"""Shared SQLAlchemy mixins."""

from datetime import datetime

from sqlalchemy import func

from payproof.extensions import db


class RegisteredAtMixin:
    """Adds the fecha_registro column, stamped on insert."""

    fecha_registro = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        server_default=func.current_timestamp(),
        nullable=False,
        index=True,
    )

    @property
    def registered_at_text(self) -> str:
        """Registration time as YYYY-MM-DD HH:MM:SS (empty when unset)."""
        if not self.fecha_registro:
            return ""
        return self.fecha_registro.strftime("%Y-%m-%d %H:%M:%S")
