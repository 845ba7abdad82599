from __future__ import annotations

import enum
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable

from selenium.webdriver.remote.webdriver import WebDriver
from tenacity import RetryCallState, Retrying, retry_if_exception_type, retry_if_result, stop_never

from earlybird.alarm import Alarm
from earlybird.config import Settings
from earlybird.domain import CalendarDate, Decision, decide
from earlybird.scheduling import wait_jittered_interval
from earlybird.selenium_provider import (
    browser_session,
    confirm_applicants,
    continue_application,
    find_earliest_date,
    go_to_reschedule_screen,
    log_in,
    open_date_picker,
    start_driver,
)
from earlybird.telegram_notifier import notify_better_date

logger = logging.getLogger(__name__)


class RunnerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED_ALERTING = "succeeded-alerting"
    FAILED_WAITING = "failed-waiting"


@dataclass(frozen=True)
class AttemptResult:
    found: CalendarDate
    decision: Decision


def _not_better(result: AttemptResult) -> bool:
    return result.decision is Decision.RESCHEDULE


def _short_exc(exc: BaseException) -> str:
    msg = str(exc).strip()
    return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__


def _log_before_sleep(retry_state: RetryCallState) -> None:
    sleep_seconds = getattr(retry_state.next_action, "sleep", None)
    if sleep_seconds is None:
        logger.info("Retrying after a pause")
        return
    logger.info("Next attempt in %.1f minutes", sleep_seconds / 60)


class SessionRunner:
    """Runs attempts until an earlier date turns up, then starts the alarm.

    One attempt is: fresh browser -> log in -> reschedule screen -> date
    picker -> earliest date -> compare with the registered date. Every
    attempt owns its browser and quits it before the decision is acted upon.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        driver_factory: Callable[..., WebDriver] = start_driver,
        alarm: Alarm | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.alarm = alarm if alarm is not None else Alarm(settings.alarm_file)
        self.state = RunnerState.IDLE
        self.attempts = 0
        self._driver_factory = driver_factory
        self._sleep = sleep
        self._rng = rng

    def _find_candidate(self, driver: WebDriver) -> CalendarDate:
        settings = self.settings

        logger.info("Logging in: %s", settings.login_url)
        log_in(driver, login_url=settings.login_url, email=settings.email, password=settings.password)

        logger.info("Continuing the application")
        continue_application(driver)

        logger.info("Opening reschedule screen (language=%s)", settings.language)
        go_to_reschedule_screen(driver, language=settings.language)

        if settings.has_multiple_applicants:
            logger.info("Confirming applicants")
            confirm_applicants(driver)

        logger.info("Opening date picker")
        open_date_picker(driver)

        return find_earliest_date(driver, max_pages=settings.max_calendar_pages)

    def run_attempt(self) -> AttemptResult:
        self.attempts += 1
        self.state = RunnerState.RUNNING
        logger.info("Starting a fresh session (attempt %d)", self.attempts)

        try:
            with browser_session(self._driver_factory, headless=self.settings.run_in_background) as driver:
                found = self._find_candidate(driver)
            decision = decide(found, self.settings.registered_date)
        except Exception as e:
            self.state = RunnerState.FAILED_WAITING
            kind = getattr(e, "kind", "unexpected")
            logger.error("Attempt %d failed [%s] (%s)", self.attempts, kind, _short_exc(e))
            raise

        result = AttemptResult(found=found, decision=decision)
        if decision is Decision.ALERT:
            self._alert(found)
        else:
            self.state = RunnerState.FAILED_WAITING
            logger.info(
                "The next available date %s is not earlier than the current %s",
                found,
                self.settings.registered_date,
            )
        return result

    def _alert(self, found: CalendarDate) -> None:
        self.state = RunnerState.SUCCEEDED_ALERTING
        logger.warning("!!!FOUND A BETTER DATE!!! %s HURRY UP!!!!", found)
        delivered = notify_better_date(self.settings, found)
        if delivered:
            logger.info("Telegram notification sent to %d chat(s)", delivered)
        self.alarm.start()

    def run_forever(self) -> AttemptResult:
        """Retry attempts until one finds an earlier date; returns that attempt."""
        logger.info(
            "Watching for dates earlier than %s, retry interval ~%s min",
            self.settings.registered_date,
            self.settings.retry_interval_minutes,
        )
        retrying = Retrying(
            stop=stop_never,
            wait=wait_jittered_interval(self.settings.retry_interval_minutes, self._rng),
            retry=retry_if_exception_type(Exception) | retry_if_result(_not_better),
            before_sleep=_log_before_sleep,
            sleep=self._sleep,
            reraise=True,
        )
        return retrying(self.run_attempt)
