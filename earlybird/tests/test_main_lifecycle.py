from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

import main
from earlybird.domain import CalendarDate, Decision, NavigationError
from earlybird.worker import AttemptResult


def _args(once: bool):
    return type("Args", (), {"once": once})()


def test_missing_config_logs_once_and_never_starts_a_browser(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    for name in ("EMAIL", "PASSWORD", "REGISTERED_DATE", "LOGIN_URL"):
        monkeypatch.delenv(name, raising=False)
    caplog.set_level(logging.INFO)

    with (
        patch("main.SessionRunner") as runner_cls,
        patch("main.argparse.ArgumentParser.parse_args", return_value=_args(False)),
    ):
        assert main.main() == 1

    runner_cls.assert_not_called()
    assert len(caplog.records) == 1
    assert caplog.records[0].levelno == logging.ERROR
    message = caplog.records[0].getMessage()
    assert "EMAIL" in message
    assert not message.startswith("ERROR")


def test_once_mode_with_later_date_exits_without_alarm() -> None:
    runner = MagicMock()
    runner.run_attempt.return_value = AttemptResult(found=CalendarDate(2025, 9, 1), decision=Decision.RESCHEDULE)

    with (
        patch("main.load_settings"),
        patch("main.SessionRunner", return_value=runner),
        patch("main.argparse.ArgumentParser.parse_args", return_value=_args(True)),
    ):
        assert main.main() == 0

    runner.run_attempt.assert_called_once()
    runner.run_forever.assert_not_called()
    runner.alarm.wait.assert_not_called()


def test_once_mode_failure_exits_with_error() -> None:
    runner = MagicMock()
    runner.run_attempt.side_effect = NavigationError("timed out")

    with (
        patch("main.load_settings"),
        patch("main.SessionRunner", return_value=runner),
        patch("main.argparse.ArgumentParser.parse_args", return_value=_args(True)),
    ):
        assert main.main() == 1


def test_forever_mode_holds_the_alarm_after_success() -> None:
    runner = MagicMock()
    runner.run_forever.return_value = AttemptResult(found=CalendarDate(2025, 5, 2), decision=Decision.ALERT)

    with (
        patch("main.load_settings"),
        patch("main.SessionRunner", return_value=runner),
        patch("main.argparse.ArgumentParser.parse_args", return_value=_args(False)),
    ):
        assert main.main() == 0

    runner.run_forever.assert_called_once()
    runner.alarm.wait.assert_called_once()


def test_ctrl_c_while_alarm_plays_stops_it() -> None:
    runner = MagicMock()
    runner.alarm.wait.side_effect = KeyboardInterrupt

    with (
        patch("main.load_settings"),
        patch("main.SessionRunner", return_value=runner),
        patch("main.argparse.ArgumentParser.parse_args", return_value=_args(False)),
    ):
        assert main.main() == 0

    runner.alarm.stop.assert_called_once()
