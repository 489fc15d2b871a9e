"""
Data generation and loading script for the delivery ledger.

Implements deterministic pseudo-random delivery generation, CSV emission, and
Postgres COPY loading into `public.deliveries`. Useful for trying the admin
report against a realistic volume of rows.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
import uuid
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import psycopg
import typer

from delivery_ledger.infrastructure.db_factory import build_dsn

app = typer.Typer(help="Generate synthetic deliveries and load into Postgres (CSV + COPY).")

CSV_COLUMNS = ["id", "owner_id", "service_date", "invoice_number", "amount", "created_at"]
_COLUMN_LIST = ", ".join(CSV_COLUMNS)


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_rows_csv(
    csv_path: Path,
    rows: int,
    batch_size: int,
    seed: int,
    owners: int = 5,
    start: date = date(2024, 1, 1),
    days: int = 365,
) -> None:
    rng = random.Random(seed)
    owner_ids = [str(uuid.UUID(int=rng.getrandbits(128), version=4)) for _ in range(owners)]
    now = datetime.now(timezone.utc).isoformat()

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)

        buffer: list[list[str]] = []
        for i in range(rows):
            # date arithmetic on `date` only; no timestamps involved
            service_date = (start + timedelta(days=rng.randrange(days))).isoformat()
            amount = rng.randrange(5_000, 500_000, 100)
            buffer.append(
                [
                    uuid.UUID(int=rng.getrandbits(128), version=4).hex,
                    rng.choice(owner_ids),
                    service_date,
                    f"F-{i + 1:06d}",
                    f"{amount}.00",
                    now,
                ]
            )
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _copy_into_db(dsn: str, csv_path: Path) -> int:
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(
                f"""
                COPY public.deliveries ({_COLUMN_LIST})
                FROM STDIN WITH (FORMAT csv, HEADER TRUE)
                """
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()
    return 0


@app.command()
def main(
    rows: int = typer.Option(
        1_000,
        "--rows",
        "-r",
        help="Number of deliveries to generate.",
    ),
    owners: int = typer.Option(
        5,
        "--owners",
        help="Number of distinct owners to spread deliveries across.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic deliveries and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="deliveries_csv_"))
        csv_path = tmpdir / "deliveries.csv"

    typer.echo(f"Generating {rows:,} deliveries for {owners} owners -> {csv_path} (seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed, owners=owners)
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), csv_path)
    typer.echo(f"Load completed in {time.perf_counter() - load_start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
