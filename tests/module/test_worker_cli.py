from __future__ import annotations

import textwrap

import pytest

from balance_monitor import worker
from balance_monitor.errors import FetchError


CONFIG = textwrap.dedent("""
    schedule:
      time: "09:00"
      timezone: UTC
    telegram:
      token: "1:a"
      chat_ids: [1]
    static_services:
      - name: Hosting
        amount: 10
        billing_day: 15
""")


class StubChecker:

    def __init__(self, result=None):
        self.result = result
        self.calls = 0

    def run_once(self, now=None):
        self.calls += 1
        return self.result


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    return str(path)


def test_run_once_success(monkeypatch, config_path):
    stub = StubChecker()
    monkeypatch.setattr(worker, "build_checker", lambda config: stub)

    assert worker.main(["--config", config_path, "--run-once"]) == 0
    assert stub.calls == 1


def test_run_once_reports_failure(monkeypatch, config_path):
    monkeypatch.setattr(worker, "build_checker", lambda config: StubChecker(FetchError("down")))
    assert worker.main(["--config", config_path, "--run-once"]) == 1


def test_bad_config_exits_with_error(tmp_path):
    assert worker.main(["--config", str(tmp_path / "missing.yaml"), "--run-once"]) == 1


def test_build_checker_wires_collaborators(config_path):
    from balance_monitor.config import load

    checker = worker.build_checker(load(config_path))
    assert checker.history.days == 7
    assert checker.notifier.token == "1:a"
