"""
Configuration Module
Loads the YAML configuration file, applies defaults and validates it
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .calculator import PREPAID, POSTPAID
from .errors import ConfigError


DEFAULT_DAYS_FOR_AVG = 7
DEFAULT_HISTORY_DIR = "data"
BILLING_MODES = (PREPAID, POSTPAID)


@dataclass(frozen=True)
class ScheduleConfig:
    """Daily trigger time and timezone"""

    time: str = ""
    timezone: str = ""

    def trigger_time(self):
        try:
            return datetime.strptime(self.time.strip(), "%H:%M").time()
        except ValueError as e:
            raise ConfigError(f"parse schedule time {self.time!r}: {e}") from e

    def location(self) -> tzinfo:
        """Configured timezone, or the local one when none is set"""
        if not self.timezone:
            return datetime.now().astimezone().tzinfo
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"load timezone {self.timezone!r}: {e}") from e


@dataclass(frozen=True)
class TelegramConfig:
    token: str = ""
    chat_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class RequestConfig:
    """HTTP request parameters"""

    url: str = ""
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None
    timeout_seconds: int = 0


@dataclass(frozen=True)
class AuthConfig:
    """Optional token exchange performed before the balance request"""

    request: RequestConfig
    token_path: str
    header: str
    prefix: str = ""


@dataclass(frozen=True)
class ResponseConfig:
    """Where to find balances in the provider response"""

    balance_path: str
    balance_scale: float = 1.0
    currency_field: str = ""
    multiple: bool = False


@dataclass(frozen=True)
class ServiceConfig:
    """A provider whose balance is polled over HTTP"""

    name: str
    history_file: str
    request: RequestConfig
    response: ResponseConfig
    currency_symbol: str = ""
    billing_mode: str = PREPAID
    auth: Optional[AuthConfig] = None


@dataclass(frozen=True)
class StaticServiceConfig:
    """A fixed monthly payment that only needs reminders"""

    name: str
    amount: float
    billing_day: int
    currency_symbol: str = ""
    notify_before_days: int = 0
    url_pay: str = ""
    card_pay: str = ""


@dataclass(frozen=True)
class Config:
    schedule: ScheduleConfig
    telegram: TelegramConfig
    days_for_avg: int = DEFAULT_DAYS_FOR_AVG
    minimum_days_left: float = 0.0
    history_dir: str = DEFAULT_HISTORY_DIR
    services: Tuple[ServiceConfig, ...] = ()
    static_services: Tuple[StaticServiceConfig, ...] = ()


def load(path: str) -> Config:
    """
    Read and validate a configuration file

    Args:
        path: Path to the YAML configuration

    Returns:
        Validated Config

    Raises:
        ConfigError: File cannot be read or fails validation
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"read config: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"parse config: {e}") from e

    return parse(raw or {})


def parse(raw: Dict[str, Any]) -> Config:
    """Build a Config from already decoded YAML data"""
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    days_for_avg = _as_int(raw.get("days_for_avg"), "days_for_avg", DEFAULT_DAYS_FOR_AVG)
    if days_for_avg <= 0:
        days_for_avg = DEFAULT_DAYS_FOR_AVG

    history_dir = str(raw.get("history_dir") or DEFAULT_HISTORY_DIR)

    schedule_raw = _mapping(raw.get("schedule"), "schedule")
    schedule = ScheduleConfig(
        time=str(schedule_raw.get("time") or ""),
        timezone=str(schedule_raw.get("timezone") or ""),
    )
    _validate_schedule(schedule)

    telegram = _parse_telegram(_mapping(raw.get("telegram"), "telegram"))

    services_raw = raw.get("services") or []
    static_raw = raw.get("static_services") or []
    if not services_raw and not static_raw:
        raise ConfigError("services list cannot be empty")

    services = tuple(_parse_service(_mapping(item, "service"), history_dir) for item in services_raw)
    static_services = tuple(_parse_static_service(_mapping(item, "static service")) for item in static_raw)

    return Config(
        schedule=schedule,
        telegram=telegram,
        days_for_avg=days_for_avg,
        minimum_days_left=_as_float(raw.get("minimum_days_left"), "minimum_days_left", 0.0),
        history_dir=history_dir,
        services=services,
        static_services=static_services,
    )


def sanitize_identifier(value: str) -> str:
    """Lowercase ASCII letters and digits, everything else becomes '_'"""
    chars = []
    for ch in value.strip():
        if ("a" <= ch <= "z") or ("0" <= ch <= "9"):
            chars.append(ch)
        elif "A" <= ch <= "Z":
            chars.append(ch.lower())
        else:
            chars.append("_")
    return "".join(chars).strip("_")


def _validate_schedule(schedule: ScheduleConfig):
    if not schedule.time.strip():
        raise ConfigError("schedule time is required (HH:MM)")
    schedule.trigger_time()
    if schedule.timezone:
        schedule.location()


def _parse_telegram(raw: Dict[str, Any]) -> TelegramConfig:
    token = os.path.expandvars(str(raw.get("token") or "")).strip()
    if not token or token.startswith("$"):
        raise ConfigError("telegram token is required")

    chat_ids = raw.get("chat_ids") or []
    if not isinstance(chat_ids, list) or not chat_ids:
        raise ConfigError("at least one telegram chat id is required")

    try:
        ids = tuple(int(chat_id) for chat_id in chat_ids)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"telegram chat ids must be integers: {e}") from e

    return TelegramConfig(token=token, chat_ids=ids)


def _parse_request(raw: Dict[str, Any], where: str, default_method: str) -> RequestConfig:
    body = raw.get("body")
    if body is not None and not isinstance(body, dict):
        raise ConfigError(f"{where}: body must be a mapping")

    return RequestConfig(
        url=str(raw.get("url") or "").strip(),
        method=str(raw.get("method") or default_method).strip().upper(),
        headers={str(k): str(v) for k, v in _mapping(raw.get("headers"), f"{where} headers").items()},
        query={str(k): str(v) for k, v in _mapping(raw.get("query"), f"{where} query").items()},
        body=body,
        timeout_seconds=_as_int(raw.get("timeout_seconds"), f"{where} timeout_seconds", 0),
    )


def _parse_auth(raw: Dict[str, Any], service_name: str) -> AuthConfig:
    where = f"service {service_name!r}"
    auth = AuthConfig(
        request=_parse_request(_mapping(raw.get("request"), f"{where} auth.request"), f"{where} auth", "POST"),
        token_path=str(raw.get("token_path") or "").strip(),
        header=str(raw.get("header") or "").strip(),
        prefix=str(raw.get("prefix") or ""),
    )
    if not auth.token_path:
        raise ConfigError(f"{where}: auth.token_path is required")
    if not auth.header:
        raise ConfigError(f"{where}: auth.header is required")
    if not auth.request.url:
        raise ConfigError(f"{where}: auth.request.url is required")
    return auth


def _parse_service(raw: Dict[str, Any], history_dir: str) -> ServiceConfig:
    name = str(raw.get("name") or "").strip()
    if not name:
        raise ConfigError("service name is required")
    where = f"service {name!r}"

    billing_mode = str(raw.get("billing_mode") or PREPAID).strip().lower()
    if billing_mode not in BILLING_MODES:
        raise ConfigError(f"{where}: billing_mode must be prepaid or postpaid")

    auth = None
    if raw.get("auth") is not None:
        auth = _parse_auth(_mapping(raw.get("auth"), f"{where} auth"), name)

    request = _parse_request(_mapping(raw.get("request"), f"{where} request"), where, "GET")
    if not request.url:
        raise ConfigError(f"{where}: request url is required")

    response_raw = _mapping(raw.get("response"), f"{where} response")
    balance_path = str(response_raw.get("balance_path") or "").strip()
    if not balance_path:
        raise ConfigError(f"{where}: response.balance_path is required")

    scale = _as_float(response_raw.get("balance_scale"), f"{where} balance_scale", 1.0)
    response = ResponseConfig(
        balance_path=balance_path,
        balance_scale=scale or 1.0,
        currency_field=str(response_raw.get("currency_field") or "").strip(),
        multiple=bool(response_raw.get("multiple", False)),
    )

    history_file = str(raw.get("history_file") or "")
    if not history_file:
        history_file = sanitize_identifier(name) + ".json"

    return ServiceConfig(
        name=name,
        history_file=_resolve_history_file(history_dir, history_file, where),
        request=request,
        response=response,
        currency_symbol=str(raw.get("currency_symbol") or "").strip(),
        billing_mode=billing_mode,
        auth=auth,
    )


def _resolve_history_file(history_dir: str, history_file: str, where: str) -> str:
    base = os.path.normpath(history_dir)
    full_path = os.path.normpath(os.path.join(base, history_file))
    rel = os.path.relpath(full_path, base)
    if rel == ".." or rel.startswith(".." + os.sep):
        raise ConfigError(f"{where}: history file must be inside history_dir")
    return full_path


def _parse_static_service(raw: Dict[str, Any]) -> StaticServiceConfig:
    name = str(raw.get("name") or "").strip()
    if not name:
        raise ConfigError("static service name is required")
    where = f"static service {name!r}"

    service = StaticServiceConfig(
        name=name,
        amount=_as_float(raw.get("amount"), f"{where} amount", 0.0),
        billing_day=_as_int(raw.get("billing_day"), f"{where} billing_day", 0),
        currency_symbol=str(raw.get("currency_symbol") or "").strip(),
        notify_before_days=_as_int(raw.get("notify_before_days"), f"{where} notify_before_days", 0),
        url_pay=str(raw.get("url_pay") or ""),
        card_pay=str(raw.get("card_pay") or ""),
    )

    if service.amount <= 0:
        raise ConfigError(f"{where}: amount must be positive")
    if not 1 <= service.billing_day <= 31:
        raise ConfigError(f"{where}: billing_day must be between 1 and 31")
    if service.notify_before_days < 0:
        raise ConfigError(f"{where}: notify_before_days must be >= 0")
    return service


def _mapping(value: Any, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{where} must be a mapping")
    return value


def _as_int(value: Any, where: str, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{where} must be an integer") from e


def _as_float(value: Any, where: str, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{where} must be a number") from e
