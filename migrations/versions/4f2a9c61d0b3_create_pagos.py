"""create pagos

Revision ID: 4f2a9c61d0b3
Revises:
Create Date: 2026-09-28 18:12:40.512377
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "4f2a9c61d0b3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "pagos",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("nombres", sa.String(length=255), nullable=False),
        sa.Column("apellidos", sa.String(length=255), nullable=False),
        sa.Column("correo", sa.String(length=255), nullable=False),
        sa.Column("telefono", sa.String(length=50), nullable=False),
        sa.Column("dni", sa.String(length=20), nullable=False),
        sa.Column("universidad", sa.String(length=255), nullable=False),
        sa.Column("entrada", sa.String(length=50), nullable=False),
        sa.Column("codigo", sa.String(length=50), nullable=True),
        sa.Column("carrera", sa.String(length=255), nullable=False),
        sa.Column("tipo_operacion", sa.String(length=50), nullable=False),
        sa.Column("numero_operacion", sa.String(length=50), nullable=False),
        sa.Column(
            "fecha_registro",
            sa.DateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.UniqueConstraint("tipo_operacion", "numero_operacion", name="uq_pagos_operacion"),
    )
    with op.batch_alter_table("pagos") as batch_op:
        batch_op.create_index(batch_op.f("ix_pagos_correo"), ["correo"], unique=False)
        batch_op.create_index(batch_op.f("ix_pagos_dni"), ["dni"], unique=False)
        batch_op.create_index(batch_op.f("ix_pagos_numero_operacion"), ["numero_operacion"], unique=False)
        batch_op.create_index(batch_op.f("ix_pagos_fecha_registro"), ["fecha_registro"], unique=False)


def downgrade():
    with op.batch_alter_table("pagos") as batch_op:
        batch_op.drop_index(batch_op.f("ix_pagos_fecha_registro"))
        batch_op.drop_index(batch_op.f("ix_pagos_numero_operacion"))
        batch_op.drop_index(batch_op.f("ix_pagos_dni"))
        batch_op.drop_index(batch_op.f("ix_pagos_correo"))
    op.drop_table("pagos")
