"""
Balance Fetcher Module
Calls provider balance APIs over HTTP and extracts balances from JSON responses
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import RequestConfig, ServiceConfig
from .errors import FetchError


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30

_MISSING = object()


@dataclass
class BalanceEntry:
    """A single balance and optional currency decoded from an API response"""

    amount: float
    currency: str = ""


class BalanceClient:
    """HTTP client for provider balance endpoints"""

    def __init__(self, session: Optional[requests.Session] = None, retries: int = 2):
        """
        Initialize balance client

        Args:
            session: Preconfigured session (tests inject a dummy here)
            retries: Transport retries for connection errors and 5xx responses
        """
        if session is None:
            session = requests.Session()
            retry = Retry(
                total=retries,
                backoff_factor=2,
                status_forcelist=(500, 502, 503, 504),
                allowed_methods=None,
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def fetch_balance(self, service: ServiceConfig) -> List[BalanceEntry]:
        """
        Request balances for a service

        Args:
            service: Service configuration with request, auth and response settings

        Returns:
            One BalanceEntry per balance found in the response

        Raises:
            FetchError: Request failed or the response lacks the configured fields
        """
        headers = {}
        if service.auth is not None:
            token = self._fetch_token(service)
            headers[service.auth.header] = os.path.expandvars(service.auth.prefix) + token

        payload = self._execute(service.request, f"request {service.name}", headers)

        balance_value = extract_path(payload, service.response.balance_path)
        if balance_value is _MISSING:
            raise FetchError(
                f"request {service.name}: balance path {service.response.balance_path!r} not found"
            )

        scale = service.response.balance_scale or 1.0

        if service.response.multiple:
            if not isinstance(balance_value, list):
                raise FetchError(
                    f"request {service.name}: balance path {service.response.balance_path!r} is not an array"
                )
            entries = [BalanceEntry(amount=_to_float(item) * scale) for item in balance_value]
        else:
            entries = [BalanceEntry(amount=_to_float(balance_value) * scale)]

        if not entries:
            raise FetchError(f"request {service.name}: no balances found")

        if service.response.currency_field:
            self._apply_currency(entries, payload, service)

        logger.info(f"Fetched {len(entries)} balance(s) for {service.name}")
        return entries

    def _fetch_token(self, service: ServiceConfig) -> str:
        auth = service.auth
        payload = self._execute(auth.request, f"auth {service.name}")

        token_value = extract_path(payload, auth.token_path)
        if token_value is _MISSING:
            raise FetchError(f"auth {service.name}: token path {auth.token_path!r} not found")

        token = "" if token_value is None else str(token_value).strip()
        if not token:
            raise FetchError(f"auth {service.name}: token is empty")
        return token

    def _execute(self, request: RequestConfig, what: str,
                 extra_headers: Optional[Dict[str, str]] = None) -> Any:
        headers = {key: os.path.expandvars(value) for key, value in request.headers.items()}
        if extra_headers:
            headers.update(extra_headers)

        params = {key: os.path.expandvars(value) for key, value in request.query.items()}
        body = expand_placeholders(request.body) if request.body is not None else None
        timeout = request.timeout_seconds if request.timeout_seconds > 0 else DEFAULT_TIMEOUT_SECONDS

        try:
            response = self.session.request(
                request.method or "GET",
                os.path.expandvars(request.url),
                headers=headers,
                params=params,
                json=body,
                timeout=timeout,
            )
        except requests.RequestException as e:
            raise FetchError(f"{what}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise FetchError(f"{what}: unexpected status {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"{what}: invalid JSON response: {e}") from e

    def _apply_currency(self, entries: List[BalanceEntry], payload: Any, service: ServiceConfig):
        currency_value = extract_path(payload, service.response.currency_field)
        if currency_value is _MISSING:
            return

        if service.response.multiple and isinstance(currency_value, list):
            for entry, currency in zip(entries, currency_value):
                entry.currency = _to_text(currency)
        else:
            currency = _to_text(currency_value)
            for entry in entries:
                entry.currency = currency


def extract_path(payload: Any, path: str) -> Any:
    """
    Resolve a dotted path inside decoded JSON

    Segments are object keys or list indices. A '#' segment maps the rest of
    the path over every list item, e.g. 'accounts.#.balance'.

    Returns:
        The value found, or a sentinel when the path does not exist
    """
    segments = [segment for segment in path.split(".") if segment]
    return _walk(payload, segments)


def _walk(value: Any, segments: List[str]) -> Any:
    if not segments:
        return value

    head, rest = segments[0], segments[1:]

    if head == "#":
        if not isinstance(value, list):
            return _MISSING
        collected = []
        for item in value:
            found = _walk(item, rest)
            if found is not _MISSING:
                collected.append(found)
        return collected

    if isinstance(value, dict):
        if head not in value:
            return _MISSING
        return _walk(value[head], rest)

    if isinstance(value, list) and head.isdigit():
        index = int(head)
        if index >= len(value):
            return _MISSING
        return _walk(value[index], rest)

    return _MISSING


def expand_placeholders(value: Any) -> Any:
    """Expand $VAR references in every string of a nested body"""
    if isinstance(value, dict):
        return {key: expand_placeholders(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_placeholders(item) for item in value]
    if isinstance(value, str):
        return os.path.expandvars(value)
    return value


def _to_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
