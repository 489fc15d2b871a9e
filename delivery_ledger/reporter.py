from __future__ import annotations

import csv
import io
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Dict, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from delivery_ledger.dates import format_service_date
from delivery_ledger.domain.models import PersonalReport, RangeReport

CSV_HEADERS = ["Usuario", "Fecha Domicilio", "Número Factura", "Valor"]

_CURRENCY_SYMBOLS = {"COP": "$", "USD": "US$", "EUR": "€"}


def format_currency(amount: Decimal, currency: str = "COP") -> str:
    """
    Format an amount the way the es-CO locale shows pesos: no decimals,
    `.` as thousands separator, half-up rounding (`48900.5` -> `$ 48.901`).
    """
    whole = Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    grouped = f"{abs(int(whole)):,}".replace(",", ".")
    sign = "-" if whole < 0 else ""
    symbol = _CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())
    return f"{sign}{symbol} {grouped}"


def format_amount(amount: Decimal) -> str:
    """Plain two-decimal rendering for exports (`0.6` -> `0.60`)."""
    return f"{Decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):f}"


def _labels(report: RangeReport) -> Dict[str, str]:
    return {t.owner_id: t.owner_label or t.owner_id for t in report.owner_totals}


def render_range_report(
    report: RangeReport,
    console: Optional[Console] = None,
    currency: str = "COP",
) -> None:
    """
    Render the admin report as rich tables: totals per owner, then the
    individual deliveries.
    """
    console = console or Console()

    title = (
        f"Entregas del {format_service_date(report.start_date)} "
        f"al {format_service_date(report.end_date)}"
    )
    if not report.records:
        console.print(f"[yellow]{title}: no hay entregas en este rango.[/yellow]")
        return

    totals = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"Total general: {format_currency(report.grand_total, currency)}",
    )
    totals.add_column("Usuario", style="cyan", no_wrap=True)
    totals.add_column("Total", justify="right", style="bold green")
    for item in report.owner_totals:
        totals.add_row(item.owner_label or item.owner_id, format_currency(item.total, currency))
    console.print(totals)

    labels = _labels(report)
    detail = Table(box=box.ROUNDED, caption="Ordenado por fecha (descendente)")
    detail.add_column("Usuario", style="cyan", no_wrap=True)
    detail.add_column("Fecha", style="magenta")
    detail.add_column("Factura", style="blue")
    detail.add_column("Valor", justify="right", style="green")
    for record in report.records:
        detail.add_row(
            labels.get(record.owner_id, record.owner_id),
            format_service_date(record.service_date),
            record.invoice_number,
            format_currency(record.amount, currency),
        )
    console.print(detail)


def render_personal_report(
    report: PersonalReport,
    console: Optional[Console] = None,
    currency: str = "COP",
) -> None:
    console = console or Console()

    if not report.records:
        console.print("[yellow]No tienes entregas registradas en este rango.[/yellow]")
        return

    table = Table(
        title="Mis entregas",
        box=box.ROUNDED,
        caption=f"Total: {format_currency(report.total, currency)}",
    )
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Fecha", style="magenta")
    table.add_column("Factura", style="blue")
    table.add_column("Valor", justify="right", style="green")
    for record in report.records:
        table.add_row(
            record.id,
            format_service_date(record.service_date, short=True),
            record.invoice_number,
            format_currency(record.amount, currency),
        )
    console.print(table)


def range_report_csv(report: RangeReport) -> str:
    """Serialize the report's deliveries as CSV text (header + one row per delivery)."""
    labels = _labels(report)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in report.records:
        writer.writerow(
            [
                labels.get(record.owner_id, record.owner_id),
                record.service_date,
                record.invoice_number,
                format_amount(record.amount),
            ]
        )
    return buffer.getvalue()


def default_csv_name(report: RangeReport) -> str:
    return f"entregas_{report.start_date}_{report.end_date}.csv"


def write_csv(report: RangeReport, path: Path | str | None = None) -> Path:
    """
    Write the report CSV. A directory (or None, meaning the current directory)
    gets the default `entregas_<start>_<end>.csv` name.
    """
    target = Path(path) if path is not None else Path(".")
    if target.is_dir():
        target = target / default_csv_name(report)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", newline="", encoding="utf-8") as f:
        f.write(range_report_csv(report))
    return target


__all__ = [
    "CSV_HEADERS",
    "format_currency",
    "format_amount",
    "render_range_report",
    "render_personal_report",
    "range_report_csv",
    "default_csv_name",
    "write_csv",
]
