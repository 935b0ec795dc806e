"""Thin client for the YNAB REST API.

Three calls are needed by the importer:

- ``GET /budgets/{budget_id}``: budget currency (``currency_format.iso_code``)
- ``GET /budgets/{budget_id}/accounts/{account_id}``: account balance in
  milliunits
- ``POST /budgets/{budget_id}/transactions``: bulk transaction import

Authentication uses a personal access token as a bearer token. There are no
retries; any HTTP, network or decoding failure raises :class:`YnabApiError`.
"""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from collections.abc import Mapping, Sequence
from typing import Any

from .logging_setup import get_logger
from .models import ImportResult, NormalizedTransaction

logger = get_logger("swedbank_ynab.ynab_client")

YNAB_API_URL = "https://api.ynab.com/v1"
API_URL_ENV = "YNAB_API_URL"
TIMEOUT_SECONDS = 30


class YnabApiError(RuntimeError):
    """A YNAB request failed (HTTP status, network, or malformed response)."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class YnabClient:
    """Budget/account scoped YNAB client."""

    def __init__(
        self,
        *,
        token: str,
        budget_id: str,
        account_id: str,
        base_url: str | None = None,
    ) -> None:
        if not token:
            raise ValueError("YNAB token is required")
        if not budget_id or not account_id:
            raise ValueError("budget_id and account_id are required")
        self.token = token
        self.budget_id = budget_id
        self.account_id = account_id
        self.base_url = (base_url or os.getenv(API_URL_ENV) or YNAB_API_URL).rstrip("/")

    # ---- URIs -----------------------------------------------------------------

    def budget_uri(self) -> str:
        return f"{self.base_url}/budgets/{self.budget_id}"

    def account_uri(self) -> str:
        return f"{self.budget_uri()}/accounts/{self.account_id}"

    def transactions_uri(self) -> str:
        return f"{self.budget_uri()}/transactions"

    # ---- Transport ------------------------------------------------------------

    def _request(self, method: str, uri: str, body: Mapping[str, Any] | None = None) -> Any:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(uri, data=data, method=method)
        req.add_header("Authorization", f"Bearer {self.token}")
        req.add_header("Accept", "application/json")
        if data is not None:
            req.add_header("Content-Type", "application/json")

        logger.debug("%s %s", method, uri)
        try:
            with urllib.request.urlopen(req, timeout=TIMEOUT_SECONDS) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            try:
                err_body = e.read().decode("utf-8", errors="replace")
            except Exception:  # noqa: BLE001 - error body is best-effort
                err_body = ""
            raise YnabApiError(
                f"YNAB API error: {e.code} {e.reason}: {err_body}", status=e.code
            ) from e
        except urllib.error.URLError as e:
            raise YnabApiError(f"YNAB API unreachable: {e.reason}") from e

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise YnabApiError("Failed to parse JSON from YNAB API") from e
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            raise YnabApiError("YNAB API response is missing 'data'")
        return payload["data"]

    # ---- Endpoints ------------------------------------------------------------

    def get_currency(self) -> str:
        """Return the budget's ISO currency code (e.g. ``"EUR"``)."""

        data = self._request("GET", self.budget_uri())
        try:
            return str(data["budget"]["currency_format"]["iso_code"])
        except (KeyError, TypeError) as e:
            raise YnabApiError("YNAB budget response has no currency_format.iso_code") from e

    def get_account_balance(self) -> int:
        """Return the account's current balance in milliunits."""

        data = self._request("GET", self.account_uri())
        try:
            return int(data["account"]["balance"])
        except (KeyError, TypeError, ValueError) as e:
            raise YnabApiError("YNAB account response has no balance") from e

    def post_transactions(self, transactions: Sequence[NormalizedTransaction]) -> ImportResult:
        """Create ``transactions`` in the configured account."""

        body = {"transactions": [tx.to_ynab(self.account_id) for tx in transactions]}
        data = self._request("POST", self.transactions_uri(), body)
        created = data.get("transactions") or []
        return ImportResult(
            imported=tuple(str(t.get("import_id") or t.get("id") or "") for t in created),
            duplicate_import_ids=tuple(str(i) for i in data.get("duplicate_import_ids") or []),
        )


__all__ = ["YNAB_API_URL", "YnabApiError", "YnabClient"]
