"""
Payment Reminder Module
Decides when fixed monthly payments need a reminder
"""

from datetime import date
from enum import Enum
from typing import Optional


class NoticeKind(Enum):
    DUE_TODAY = "due_today"
    ADVANCE = "advance"


# Month length assumed when the reminder day falls into the previous month
WRAP_DAYS = 30


def notice_kind(service, today: date) -> Optional[NoticeKind]:
    """
    Work out which reminder, if any, a static service needs today

    Args:
        service: StaticServiceConfig with billing_day and notify_before_days
        today: Current date in the configured timezone

    Returns:
        NoticeKind to send, or None when nothing is due
    """
    if today.day == service.billing_day:
        return NoticeKind.DUE_TODAY

    if service.notify_before_days <= 0:
        return None

    # Approximation: wraps every month as 30 days long, so the reminder can
    # land on a day that a shorter month does not have.
    notify_day = service.billing_day - service.notify_before_days
    if notify_day < 0:
        notify_day += WRAP_DAYS

    if notify_day > 0 and today.day == notify_day:
        return NoticeKind.ADVANCE

    return None


def headline(kind: NoticeKind, notify_before_days: int = 0) -> str:
    if kind is NoticeKind.DUE_TODAY:
        return "🔥 Payment due today 🔥"
    return f"⏰ Payment reminder (📌{notify_before_days} days left)"
