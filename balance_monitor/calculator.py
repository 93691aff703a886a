"""
Runway Calculator Module
Projects how many days a prepaid balance lasts at the current spend rate
"""

import math
from dataclasses import dataclass


PREPAID = "prepaid"
POSTPAID = "postpaid"


@dataclass
class BalanceReport:
    """One balance reading together with its derived statistics"""

    currency: str
    balance: float
    average: float
    days_left: float = math.inf
    warn: bool = False


class RunwayCalculator:
    """Derives days-left and warning state for a balance"""

    def __init__(self, minimum_days_left: float = 0.0):
        """
        Initialize calculator

        Args:
            minimum_days_left: Runway below this many days raises a warning
        """
        self.minimum_days_left = minimum_days_left

    def days_left(self, balance: float, average: float) -> float:
        """
        Project remaining runway

        Args:
            balance: Current balance
            average: Trailing average daily spend

        Returns:
            Days until the balance runs out, or infinity when nothing is spent
        """
        if average > 0:
            return balance / average
        return math.inf

    def should_warn(self, days_left: float) -> bool:
        if math.isinf(days_left):
            return False
        return days_left < self.minimum_days_left

    def build_report(self, currency: str, balance: float, average: float,
                     billing_mode: str = PREPAID) -> BalanceReport:
        """
        Combine a reading and its average into a report

        Postpaid services accrue debt, so days-left is not meaningful for them
        and they never warn.
        """
        report = BalanceReport(currency=currency, balance=balance, average=average)

        if billing_mode != POSTPAID:
            report.days_left = self.days_left(balance, average)
            report.warn = self.should_warn(report.days_left)

        return report
