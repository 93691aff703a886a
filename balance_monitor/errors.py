"""
Exception taxonomy for the balance monitor
"""


class BalanceMonitorError(Exception):
    """Base class for every error raised by the balance monitor"""


class ConfigError(BalanceMonitorError):
    """Configuration file is missing, unreadable or invalid"""


class FetchError(BalanceMonitorError):
    """Balance could not be retrieved from a provider API"""


class HistoryIOError(BalanceMonitorError):
    """History file could not be read or written"""


class CorruptRecordError(BalanceMonitorError):
    """History file exists but does not hold a valid record"""


class DeliveryError(BalanceMonitorError):
    """Notification could not be delivered"""
