import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from flask_cors import CORS
from flask_mail import Mail, Message
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect
from sqlalchemy.exc import SQLAlchemyError

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Core singletons
# ─────────────────────────────────────────────────────────────
db = SQLAlchemy()
migrate = Migrate()
mail = Mail()
csrf = CSRFProtect()
cors = CORS()


# ─────────────────────────────────────────────────────────────
# Safe DB helpers
# ─────────────────────────────────────────────────────────────
def safe_commit() -> bool:
    try:
        db.session.commit()
        return True
    except SQLAlchemyError as e:
        log.error("DB commit failed: %s", e, exc_info=True)
        db.session.rollback()
        return False


# ─────────────────────────────────────────────────────────────
# Email helper
# ─────────────────────────────────────────────────────────────
@dataclass
class EmailAttachment:
    filename: str
    content: bytes
    mimetype: str = "application/octet-stream"


def _attach(msg: Message, attachments: Optional[Iterable[EmailAttachment]]) -> None:
    if not attachments:
        return
    for a in attachments:
        msg.attach(
            filename=a.filename,
            content_type=a.mimetype or "application/octet-stream",
            data=a.content,
        )


def send_email(
    app: Any,
    subject: str,
    recipients: List[str],
    *,
    html: Optional[str] = None,
    body: Optional[str] = None,
    attachments: Optional[Iterable[EmailAttachment]] = None,
    sender: Optional[str] = None,
) -> None:
    """
    Build and send one message synchronously.
    Errors from the SMTP layer propagate to the caller.
    """
    msg = Message(
        subject=subject,
        recipients=recipients,
        sender=sender or app.config.get("MAIL_DEFAULT_SENDER"),
        html=html,
        body=body,
    )
    _attach(msg, attachments)
    mail.send(msg)


# ─────────────────────────────────────────────────────────────
# Init all extensions
# ─────────────────────────────────────────────────────────────
def init_all_extensions(app: Any, *, cors_origins: Any = "*") -> None:
    db.init_app(app)
    migrate.init_app(app, db, compare_type=True, render_as_batch=True)
    mail.init_app(app)
    csrf.init_app(app)

    # Browser rule: cannot use credentials with wildcard origin
    cors.init_app(
        app,
        resources={
            r"/sendemail": {"origins": cors_origins, "methods": ["POST"]},
            r"/descargarreporte": {"origins": cors_origins, "methods": ["GET"]},
        },
        supports_credentials=False,
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )


__all__ = [
    "db",
    "migrate",
    "mail",
    "csrf",
    "cors",
    "safe_commit",
    "EmailAttachment",
    "send_email",
    "init_all_extensions",
]
