from __future__ import annotations

import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Tuple

import typer

from delivery_ledger.auth import StaticIdentityProvider, is_admin_email
from delivery_ledger.config import Settings, get_settings
from delivery_ledger.domain.models import AuthenticatedUser
from delivery_ledger.errors import DeliveryError, InputError
from delivery_ledger.infrastructure.store import DeliveryStore
from delivery_ledger.reporter import (
    format_currency,
    render_personal_report,
    render_range_report,
    write_csv,
)
from delivery_ledger.service import DeliveryService
from delivery_ledger.utils.logging import configure_logging

app = typer.Typer(help="Delivery ledger CLI: register deliveries and build range reports.")

USER_ID_OPTION = typer.Option(..., "--user-id", "-u", help="Id of the acting user.")
EMAIL_OPTION = typer.Option(None, "--email", "-e", help="Email of the acting user.")


def _fail(exc: DeliveryError) -> NoReturn:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=2 if isinstance(exc, InputError) else 1)


def _parse_labels(labels: Optional[List[str]]) -> dict:
    parsed = {}
    for item in labels or []:
        owner_id, sep, email = item.partition("=")
        if not sep or not owner_id.strip() or not email.strip():
            raise typer.BadParameter(f"expected OWNER_ID=EMAIL, got {item!r}", param_hint="--label")
        parsed[owner_id.strip()] = email.strip()
    return parsed


def _context(
    user_id: str,
    email: Optional[str],
    labels: Optional[List[str]] = None,
) -> Tuple[Settings, AuthenticatedUser, DeliveryService]:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    user = AuthenticatedUser(
        id=user_id,
        email=email,
        is_admin=is_admin_email(email, settings.admin_email_list),
    )
    emails = _parse_labels(labels)
    if email:
        emails.setdefault(user_id, email)
    service = DeliveryService(
        store=DeliveryStore(settings=settings),
        settings=settings,
        identity=StaticIdentityProvider(emails=emails),
    )
    return settings, user, service


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    admins = ", ".join(settings.admin_email_list) or "(none)"
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"env={settings.app_env} admins={admins} currency={settings.currency_code} "
        f"strict_calendar_dates={settings.strict_calendar_dates}"
    )


@app.command()
def add(
    service_date: str = typer.Option(..., "--date", "-d", help="Service date, YYYY-MM-DD."),
    invoice_number: str = typer.Option(..., "--invoice", "-i", help="Invoice number."),
    amount: str = typer.Option(..., "--amount", "-a", help="Delivery value, greater than zero."),
    user_id: str = USER_ID_OPTION,
    email: Optional[str] = EMAIL_OPTION,
) -> None:
    """
    Register a delivery for the acting user.
    """
    settings, user, service = _context(user_id, email)
    try:
        record = service.register(
            user,
            {"service_date": service_date, "invoice_number": invoice_number, "amount": amount},
        )
    except DeliveryError as exc:
        _fail(exc)
    typer.echo(
        f"Registered {record.id}: {record.service_date} {record.invoice_number} "
        f"{format_currency(record.amount, settings.currency_code)}"
    )


@app.command("list")
def list_deliveries(
    start_date: Optional[str] = typer.Option(None, "--from", help="Inclusive start date."),
    end_date: Optional[str] = typer.Option(None, "--to", help="Inclusive end date."),
    user_id: str = USER_ID_OPTION,
    email: Optional[str] = EMAIL_OPTION,
) -> None:
    """
    List the acting user's deliveries, newest first, with their total.
    """
    settings, user, service = _context(user_id, email)
    try:
        report = service.list_mine(user, start_date, end_date)
    except DeliveryError as exc:
        _fail(exc)
    render_personal_report(report, currency=settings.currency_code)


@app.command()
def update(
    delivery_id: str = typer.Argument(..., help="Id of the delivery to update."),
    service_date: str = typer.Option(..., "--date", "-d", help="Service date, YYYY-MM-DD."),
    invoice_number: str = typer.Option(..., "--invoice", "-i", help="Invoice number."),
    amount: str = typer.Option(..., "--amount", "-a", help="Delivery value, greater than zero."),
    user_id: str = USER_ID_OPTION,
    email: Optional[str] = EMAIL_OPTION,
) -> None:
    """
    Update one of the acting user's deliveries.
    """
    _, user, service = _context(user_id, email)
    try:
        record = service.update(
            user,
            delivery_id,
            {"service_date": service_date, "invoice_number": invoice_number, "amount": amount},
        )
    except DeliveryError as exc:
        _fail(exc)
    typer.echo(f"Updated {record.id}.")


@app.command()
def delete(
    delivery_id: str = typer.Argument(..., help="Id of the delivery to delete."),
    user_id: str = USER_ID_OPTION,
    email: Optional[str] = EMAIL_OPTION,
) -> None:
    """
    Permanently delete one of the acting user's deliveries.
    """
    _, user, service = _context(user_id, email)
    try:
        service.delete(user, delivery_id)
    except DeliveryError as exc:
        _fail(exc)
    typer.echo(f"Deleted {delivery_id}.")


@app.command()
def report(
    start_date: str = typer.Option(..., "--from", help="Inclusive start date."),
    end_date: str = typer.Option(..., "--to", help="Inclusive end date."),
    user_id: str = USER_ID_OPTION,
    email: Optional[str] = EMAIL_OPTION,
    labels: Optional[List[str]] = typer.Option(
        None,
        "--label",
        "-l",
        help="Display email for an owner, as OWNER_ID=EMAIL. Repeatable.",
    ),
    csv_path: Optional[Path] = typer.Option(
        None,
        "--csv",
        help="Also export the deliveries as CSV (file or directory).",
    ),
) -> None:
    """
    Admin report: deliveries of every user in a date range, with totals.
    """
    settings, user, service = _context(user_id, email, labels)
    try:
        range_report = service.admin_report(user, start_date, end_date)
    except DeliveryError as exc:
        _fail(exc)
    render_range_report(range_report, currency=settings.currency_code)
    if csv_path is not None:
        written = write_csv(range_report, csv_path)
        typer.echo(f"CSV written to {written}")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
