"""Public interface for the ``swedbank_ynab`` package.

Re-exports the pipeline entry points, the data models and the normalization
helpers. There is no runtime logic here.
"""

from .api import ImportReport, import_statement, prepare_transactions
from .ingest import read_statement, read_statement_path
from .models import (
    EntryType,
    ImportResult,
    NormalizedTransaction,
    ParsedPayeeMemo,
    RawRecord,
    RecordType,
    TransformResult,
)
from .rollup import merge_rollups
from .sinks import CsvFileSink, TransactionSink, YnabSink
from .transform import import_id, needs_rollup, parse_amount, transform_records
from .vendors import VendorConfig, build_rules, fmt_memo, fmt_payee, parse_payee_memo
from .ynab_client import YnabApiError, YnabClient

__all__ = [
    # API
    "import_statement",
    "prepare_transactions",
    "ImportReport",
    # Ingest / sinks
    "read_statement",
    "read_statement_path",
    "CsvFileSink",
    "TransactionSink",
    "YnabSink",
    "YnabClient",
    "YnabApiError",
    # Normalization
    "build_rules",
    "fmt_memo",
    "fmt_payee",
    "import_id",
    "merge_rollups",
    "needs_rollup",
    "parse_amount",
    "parse_payee_memo",
    "transform_records",
    "VendorConfig",
    # Models
    "EntryType",
    "ImportResult",
    "NormalizedTransaction",
    "ParsedPayeeMemo",
    "RawRecord",
    "RecordType",
    "TransformResult",
]
