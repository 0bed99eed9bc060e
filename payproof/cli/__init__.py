import click
from faker import Faker
from flask.cli import AppGroup
from sqlalchemy import func, select

from payproof.extensions import db, safe_commit
from payproof.models import Payment
from payproof.services.reports import REPORT_FILENAME, write_payments_report

payments_cli = AppGroup("payments", help="Payment records tools.")

OPERATION_TYPES = ["Transferencia", "Yape", "Plin", "Depósito"]
ENTRY_TYPES = ["General", "Estudiante", "VIP"]


@payments_cli.command("init-db")
def init_db():
    """Create missing tables (use `flask db upgrade` for managed schemas)."""
    db.create_all()
    click.secho("✅ Tables created or already present.", fg="bright_green")


@payments_cli.command("export-report")
@click.option("--output", "-o", default=REPORT_FILENAME, show_default=True, type=click.Path(dir_okay=False))
def export_report(output):
    """Write the payments spreadsheet to a file."""
    write_payments_report(output)
    click.secho(f"✅ Report written to {output}", fg="bright_green")


@payments_cli.command("stats")
def stats():
    """Count stored payments per operation type."""
    rows = db.session.execute(
        select(Payment.tipo_operacion, func.count(Payment.id))
        .group_by(Payment.tipo_operacion)
        .order_by(Payment.tipo_operacion)
    ).all()
    total = 0
    for tipo, count in rows:
        click.echo(f"{tipo:<20} {count:>6}")
        total += count
    click.secho(f"{'TOTAL':<20} {total:>6}", bold=True)


@payments_cli.command("seed-demo")
@click.option("--count", default=10, show_default=True)
@click.option("--clear", is_flag=True)
def seed_demo(count, clear):
    """Seed demo payments (for trying out the export)."""
    fake = Faker("es_ES")

    if clear:
        deleted = Payment.query.delete()
        click.secho(f"🧹 Cleared {deleted} payments", fg="yellow")

    for _ in range(count):
        db.session.add(
            Payment(
                nombres=fake.first_name(),
                apellidos=fake.last_name(),
                correo=fake.unique.ascii_free_email(),
                telefono=fake.numerify("9########"),
                universidad=f"Universidad {fake.city()}",
                entrada=fake.random_element(ENTRY_TYPES),
                codigo=fake.bothify("20##-####") if fake.boolean(70) else None,
                carrera=fake.job()[:255],
                tipo_operacion=fake.random_element(OPERATION_TYPES),
                numero_operacion=fake.unique.numerify("##########"),
                dni=fake.numerify("########"),
            )
        )

    if not safe_commit():
        raise click.ClickException("Seeding failed (see log).")
    click.secho(f"✅ Seeded {count} payments!", fg="bright_green", bold=True)


__all__ = ["payments_cli"]
