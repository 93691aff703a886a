"""
Spend History Module
Persists per-service balance history and calculates trailing daily averages
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List

from .errors import CorruptRecordError, HistoryIOError


logger = logging.getLogger(__name__)


@dataclass
class DailySpend:
    """Spend recorded for a single calendar day"""

    date: str
    amount: float


@dataclass
class HistoryRecord:
    """Contents of one history file"""

    last_balance: float = 0.0
    last_updated: str = ""
    daily_spends: List[DailySpend] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Any) -> "HistoryRecord":
        if not isinstance(payload, dict):
            raise ValueError("history record must be a JSON object")

        spends = payload.get("daily_spends") or []
        if not isinstance(spends, list):
            raise ValueError("daily_spends must be a list")

        return cls(
            last_balance=float(payload.get("last_balance") or 0),
            last_updated=str(payload.get("last_updated") or ""),
            daily_spends=[
                DailySpend(date=str(item["date"]), amount=float(item["amount"]))
                for item in spends
            ],
        )


@dataclass
class HistoryResult:
    """Fresh spend and trailing average produced by an update"""

    spend: float
    average: float


class HistoryStore:
    """Keeps a rolling window of daily spend per history file"""

    def __init__(self, days: int = 7):
        """
        Initialize history store

        Args:
            days: Number of daily points kept for the trailing average
        """
        self.days = max(1, days)

    def update(self, path: str, balance: float, now: datetime) -> HistoryResult:
        """
        Consume a fresh balance, refresh the history file and return spend stats

        Args:
            path: History file for this balance
            balance: Balance just reported by the provider
            now: Check time, already in the configured timezone

        Returns:
            HistoryResult with today's spend and the trailing average
        """
        record = self.load(path)

        spend = compute_spend(record.last_balance, balance)
        day_key = now.date().isoformat()

        if record.daily_spends and record.daily_spends[-1].date == day_key:
            record.daily_spends[-1].amount = spend
        else:
            record.daily_spends.append(DailySpend(date=day_key, amount=spend))

        if len(record.daily_spends) > self.days:
            record.daily_spends = record.daily_spends[-self.days:]

        record.last_balance = balance
        record.last_updated = now.isoformat(timespec="seconds")

        self.save(path, record)

        return HistoryResult(spend=spend, average=average(record.daily_spends))

    def load(self, path: str) -> HistoryRecord:
        """Read a history file; a missing file is a fresh zero record"""
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except FileNotFoundError:
            logger.info(f"No history at {path}, starting fresh")
            return HistoryRecord()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptRecordError(f"decode history {path!r}: {e}") from e
        except OSError as e:
            raise HistoryIOError(f"open history {path!r}: {e}") from e

        try:
            return HistoryRecord.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptRecordError(f"decode history {path!r}: {e}") from e

    def save(self, path: str, record: HistoryRecord):
        """Write the record to a temp file next to the target, then swap it in"""
        directory = os.path.dirname(path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise HistoryIOError(f"create history dir {directory!r}: {e}") from e

        tmp = path + ".tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2, ensure_ascii=False)
                f.write("\n")
        except OSError as e:
            _discard(tmp)
            raise HistoryIOError(f"write history tmp {tmp!r}: {e}") from e

        try:
            os.replace(tmp, path)
        except OSError as e:
            _discard(tmp)
            raise HistoryIOError(f"replace history {path!r}: {e}") from e


def _discard(tmp: str):
    try:
        os.remove(tmp)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove leftover {tmp}: {e}")


def compute_spend(previous: float, current: float) -> float:
    """Positive spend when the balance went down, zero on a top-up"""
    diff = previous - current
    if diff < 0:
        return 0.0
    return diff


def average(items: List[DailySpend]) -> float:
    if not items:
        return 0.0
    return sum(item.amount for item in items) / len(items)
