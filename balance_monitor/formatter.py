"""
Message Formatter Module
Renders balance reports and payment reminders as chat messages
"""

import math
from typing import List

from .calculator import BalanceReport, POSTPAID


PREFIX_SYMBOLS = ("$", "€", "£", "¥")
WARNING_MARKER = " !!!"


def format_amount(value: float, currency: str = "") -> str:
    """
    Format a money amount with its currency

    Known symbols are prefixed ($12.34), any other label is suffixed
    (12.34 USD) and an empty label gives the bare number.
    """
    if currency:
        if currency in PREFIX_SYMBOLS:
            return f"{currency}{value:.2f}"
        return f"{value:.2f} {currency}"
    return f"{value:.2f}"


def format_days(days: float) -> str:
    if math.isinf(days):
        return "n/a"
    return f"{days:.1f} days"


def compose_message(service_name: str, billing_mode: str, reports: List[BalanceReport]) -> str:
    """
    Build the notification for one service

    Args:
        service_name: Service name shown in the header
        billing_mode: prepaid or postpaid
        reports: One report per balance returned by the service

    Returns:
        Message text with one block per report
    """
    postpaid = billing_mode == POSTPAID
    label = "Debt" if postpaid else "Balance"

    # One warning reading marks every header of the service
    suffix = WARNING_MARKER if any(report.warn for report in reports) else ""

    blocks = []
    for report in reports:
        balance = -report.balance if postpaid else report.balance

        lines = [
            f"Service: {service_name}{suffix}",
            "",
            f"{label}: {format_amount(balance, report.currency)}",
            f"📉 Avg daily: {report.average:f}",
        ]
        if not postpaid:
            lines.append(f"📆 Enough for: {format_days(report.days_left)}")

        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def compose_failure_message(service_name: str, error: Exception) -> str:
    return f"Service: {service_name}\nError: {error}"


def compose_static_message(service, headline: str) -> str:
    """
    Build a payment reminder for a static service

    Args:
        service: StaticServiceConfig being reminded about
        headline: First line describing the kind of notice

    Returns:
        Reminder text; pay URL and card lines appear only when set
    """
    lines = [
        headline,
        f"Service: {service.name}",
        f"Amount: {format_amount(service.amount, service.currency_symbol)}",
        f"Billing day: {service.billing_day}",
    ]
    if service.url_pay.strip():
        lines.append(f"🔗Pay URL: {service.url_pay}")
    if service.card_pay.strip():
        lines.append(f"💳Card: {service.card_pay}")

    return "\n".join(lines).strip()
