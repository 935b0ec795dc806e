"""CLI for the ``swedbank_ynab`` package.

Two commands share one normalization pipeline and differ only in the sink:

- ``convert STATEMENT [--out out.csv]``: write a YNAB-importable CSV file.
- ``upload STATEMENT``: upload to a YNAB account through the API. The token,
  budget id and account id come from ``--token/--budget-id/--account-id`` or
  the ``YNAB_TOKEN``/``YNAB_BUDGET_ID``/``YNAB_ACCOUNT_ID`` environment
  variables (a local ``.env`` is loaded first, without overriding the
  environment).

Errors are written to stderr and the process exits with status 1. A balance
mismatch after upload is reported but does not change the exit status.
"""

from __future__ import annotations

import csv
import sys
from decimal import Decimal
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .api import ImportReport
from .logging_setup import configure_logging
from .sinks import DEFAULT_BATCH_SIZE

DEFAULT_CURRENCY = "EUR"
DEFAULT_OUT = Path("out.csv")


def _fmt_milliunits(value: int) -> str:
    return f"{Decimal(value) / 1000:.2f}"


def _print_reconciliation(report: ImportReport) -> None:
    if report.closing_balance is None:
        print("No closing balance found in the statement; skipping balance check.")
        return
    if report.remote_balance is None:
        return
    if report.reconciled:
        print(f"Balance OK: {_fmt_milliunits(report.remote_balance)}")
        return
    diff = report.balance_difference
    print(
        "Balance mismatch: statement "
        f"{_fmt_milliunits(report.closing_balance)}, YNAB "
        f"{_fmt_milliunits(report.remote_balance)}, difference "
        f"{'+' if diff > 0 else ''}{_fmt_milliunits(diff)}"
    )


def cmd_convert(
    statement: str,
    *,
    out: str = str(DEFAULT_OUT),
    currency: str | None = DEFAULT_CURRENCY,
    encoding: str = "utf-8-sig",
) -> int:
    """Convert a statement into a local CSV file. Returns the exit status."""

    from .api import import_statement
    from .ingest import read_statement_path
    from .sinks import CsvFileSink
    from .vendors import build_rules, load_vendor_config

    rules = build_rules(load_vendor_config())
    try:
        report = import_statement(
            read_statement_path(statement, encoding=encoding),
            sink=CsvFileSink(out),
            currency=currency,
            rules=rules,
        )
    except FileNotFoundError:
        print(f"Error: File not found: {statement}", file=sys.stderr)
        return 1
    except PermissionError as e:
        print(f"Error: Permission denied: {e.filename or statement}", file=sys.stderr)
        return 1
    except (csv.Error, UnicodeDecodeError) as e:
        print(f"Error: Failed to parse statement: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {len(report.result.imported)} transactions to {out}")
    return 0


def cmd_upload(
    statement: str,
    *,
    token: str,
    budget_id: str,
    account_id: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    encoding: str = "utf-8-sig",
) -> int:
    """Upload a statement to YNAB. Returns the exit status."""

    from .api import import_statement
    from .ingest import read_statement_path
    from .sinks import YnabSink
    from .vendors import build_rules, load_vendor_config
    from .ynab_client import YnabApiError, YnabClient

    rules = build_rules(load_vendor_config())
    try:
        client = YnabClient(token=token, budget_id=budget_id, account_id=account_id)
        sink = YnabSink(client, batch_size=batch_size)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        currency = client.get_currency()
        report = import_statement(
            read_statement_path(statement, encoding=encoding),
            sink=sink,
            currency=currency,
            balance_oracle=client.get_account_balance,
            rules=rules,
        )
    except FileNotFoundError:
        print(f"Error: File not found: {statement}", file=sys.stderr)
        return 1
    except PermissionError as e:
        print(f"Error: Permission denied: {e.filename or statement}", file=sys.stderr)
        return 1
    except (csv.Error, UnicodeDecodeError) as e:
        print(f"Error: Failed to parse statement: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except YnabApiError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(
        f"Imported {len(report.result.imported)} transactions "
        f"({len(report.result.duplicate_import_ids)} duplicates skipped)"
    )
    _print_reconciliation(report)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Convert Swedbank statement exports for YNAB (CSV file or API upload).",
)

StatementArg = Annotated[
    Path,
    typer.Argument(help="Path to the Swedbank statement CSV (semicolon-delimited)."),
]
EncodingOption = Annotated[
    str, typer.Option(help="Text encoding of the statement file.")
]


@app.command("convert")
def convert_cmd(
    statement: StatementArg,
    out: Annotated[Path, typer.Option(help="Output CSV path.")] = DEFAULT_OUT,
    currency: Annotated[
        str, typer.Option(help="Only keep rows in this currency.")
    ] = DEFAULT_CURRENCY,
    encoding: EncodingOption = "utf-8-sig",
) -> None:
    """Write a YNAB-importable CSV file."""

    raise typer.Exit(
        cmd_convert(str(statement), out=str(out), currency=currency, encoding=encoding)
    )


@app.command("upload")
def upload_cmd(
    statement: StatementArg,
    token: Annotated[
        str, typer.Option(envvar="YNAB_TOKEN", help="YNAB personal access token.")
    ],
    budget_id: Annotated[str, typer.Option(envvar="YNAB_BUDGET_ID", help="YNAB budget id.")],
    account_id: Annotated[
        str, typer.Option(envvar="YNAB_ACCOUNT_ID", help="YNAB account id.")
    ],
    batch_size: Annotated[
        int, typer.Option(min=1, max=DEFAULT_BATCH_SIZE, help="Transactions per request.")
    ] = DEFAULT_BATCH_SIZE,
    encoding: EncodingOption = "utf-8-sig",
) -> None:
    """Upload transactions to a YNAB account and check the balance."""

    raise typer.Exit(
        cmd_upload(
            str(statement),
            token=token,
            budget_id=budget_id,
            account_id=account_id,
            batch_size=batch_size,
            encoding=encoding,
        )
    )


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option(help="Log level (falls back to SWEDBANK_YNAB_LOG_LEVEL, then INFO)."),
    ] = None,
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # Load before Typer resolves envvar-backed options of the subcommand.
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
