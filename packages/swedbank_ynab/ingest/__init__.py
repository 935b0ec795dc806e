"""Statement readers."""

from .statement_csv import read_statement, read_statement_path

__all__ = ["read_statement", "read_statement_path"]
