"""
Balance Monitor - Core Modules
"""

from .calculator import BalanceReport, RunwayCalculator
from .checker import BalanceChecker
from .fetcher import BalanceClient, BalanceEntry
from .history import HistoryStore
from .notifier import TelegramNotifier
from .scheduler import DailyCheckScheduler

__all__ = [
    'BalanceReport',
    'RunwayCalculator',
    'BalanceChecker',
    'BalanceClient',
    'BalanceEntry',
    'HistoryStore',
    'TelegramNotifier',
    'DailyCheckScheduler',
]

__version__ = '0.1.0'
