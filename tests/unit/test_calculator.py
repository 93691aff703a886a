"""
Test Suite: Runway projection and warning state
"""

import math

import pytest

from balance_monitor.calculator import POSTPAID, PREPAID, RunwayCalculator


class TestRunwayCalculator:

    @pytest.fixture
    def calculator(self):
        return RunwayCalculator(minimum_days_left=5)

    def test_days_left_from_average(self, calculator):
        assert calculator.days_left(90.0, 5.0) == 18.0

    def test_zero_average_means_infinite_runway(self, calculator):
        assert math.isinf(calculator.days_left(90.0, 0.0))

    def test_infinite_runway_never_warns(self, calculator):
        assert calculator.should_warn(math.inf) is False

    def test_warns_below_threshold(self, calculator):
        assert calculator.should_warn(4.9) is True
        assert calculator.should_warn(5.0) is False

    def test_prepaid_report(self, calculator):
        report = calculator.build_report("$", 20.0, 5.0, PREPAID)
        assert report.days_left == 4.0
        assert report.warn is True

    def test_prepaid_without_spend(self, calculator):
        report = calculator.build_report("$", 100.0, 0.0, PREPAID)
        assert math.isinf(report.days_left)
        assert report.warn is False

    def test_postpaid_never_warns(self, calculator):
        report = calculator.build_report("USD", 1.0, 50.0, POSTPAID)
        assert math.isinf(report.days_left)
        assert report.warn is False
        assert report.balance == 1.0
