from __future__ import annotations

import contextlib
import logging
import time
from typing import Callable, Iterator

from selenium import webdriver
from selenium.common.exceptions import (
    ElementClickInterceptedException,
    ElementNotInteractableException,
    NoSuchElementException,
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from earlybird.domain import (
    CalendarDate,
    CalendarExhaustedError,
    DecisionError,
    ElementLookupError,
    NavigationError,
)

logger = logging.getLogger(__name__)

Locator = tuple[str, str]

EMAIL_INPUT: Locator = (By.CSS_SELECTOR, "#user_email")
PASSWORD_INPUT: Locator = (By.CSS_SELECTOR, "#user_password")
POLICY_CHECKBOX: Locator = (By.CSS_SELECTOR, "#policy_confirmed")
SUBMIT_BUTTON: Locator = (By.CSS_SELECTOR, 'input[type="submit"]')
CONTINUE_LINK: Locator = (By.CSS_SELECTOR, "ul.actions > li > a")
RESCHEDULE_BUTTON: Locator = (By.CSS_SELECTOR, ".fa-calendar-minus")
DATE_INPUT: Locator = (By.CSS_SELECTOR, "#appointments_consulate_appointment_date")
SELECTABLE_DAY: Locator = (By.CSS_SELECTOR, "a.ui-state-default")
NEXT_MONTH: Locator = (By.CSS_SELECTOR, "a.ui-datepicker-next")

DEFAULT_LANGUAGE = "en"

# Text of the link on the reschedule accordion, per site locale.
RESCHEDULE_LINK_TEXT = {
    "en": "Reschedule Appointment",
    "es": "Reprogramar cita",
}

KEY_DELAY_SECONDS = 0.1
WAIT_SECONDS = 30


def reschedule_link_text(language: str | None) -> str:
    code = (language or "").strip().lower()
    if code in RESCHEDULE_LINK_TEXT:
        return RESCHEDULE_LINK_TEXT[code]
    # "es-MX" -> "es"
    primary = code.split("-", 1)[0].split("_", 1)[0]
    return RESCHEDULE_LINK_TEXT.get(primary, RESCHEDULE_LINK_TEXT[DEFAULT_LANGUAGE])


def start_driver(*, headless: bool) -> webdriver.Chrome:
    options = Options()
    if headless:
        options.add_argument("--headless=new")
    options.add_argument("--disable-gpu")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--window-size=1366,768")

    service = Service(ChromeDriverManager().install())
    return webdriver.Chrome(service=service, options=options)


@contextlib.contextmanager
def browser_session(
    driver_factory: Callable[..., WebDriver] = start_driver,
    *,
    headless: bool,
) -> Iterator[WebDriver]:
    """Own one browser for the duration of one attempt.

    The driver is quit on every exit path, so a new session is never opened
    while an old one is still alive.
    """
    logger.info("Starting browser (headless=%s)", headless)
    try:
        driver = driver_factory(headless=headless)
    except WebDriverException as e:
        raise NavigationError(f"Could not start browser: {e.msg or e}") from e

    try:
        yield driver
    finally:
        try:
            driver.quit()
        except Exception:
            logger.warning("Failed to quit driver cleanly", exc_info=True)
        logger.info("Browser closed")


def _wait_for(driver: WebDriver, locator: Locator, *, step: str, wait_seconds: float = WAIT_SECONDS) -> WebElement:
    try:
        return WebDriverWait(driver, wait_seconds).until(EC.presence_of_element_located(locator))
    except TimeoutException as e:
        raise NavigationError(f"{step}: timed out after {wait_seconds}s waiting for {locator[1]!r}") from e
    except WebDriverException as e:
        raise NavigationError(f"{step}: browser error while waiting for {locator[1]!r}: {e.msg or e}") from e


def _click(element: WebElement, *, step: str) -> None:
    try:
        element.click()
    except (
        ElementClickInterceptedException,
        ElementNotInteractableException,
        StaleElementReferenceException,
    ) as e:
        raise ElementLookupError(f"{step}: element is not clickable ({type(e).__name__})") from e
    except WebDriverException as e:
        raise NavigationError(f"{step}: browser error while clicking: {e.msg or e}") from e


def _type_slowly(element: WebElement, text: str, *, step: str) -> None:
    # One key at a time, like a person would; the form rejects pasted input at times.
    try:
        for char in text:
            element.send_keys(char)
            time.sleep(KEY_DELAY_SECONDS)
    except (ElementNotInteractableException, StaleElementReferenceException) as e:
        raise ElementLookupError(f"{step}: cannot type into field ({type(e).__name__})") from e
    except WebDriverException as e:
        raise NavigationError(f"{step}: browser error while typing: {e.msg or e}") from e


def log_in(driver: WebDriver, *, login_url: str, email: str, password: str) -> None:
    try:
        driver.get(login_url)
    except WebDriverException as e:
        raise NavigationError(f"login: could not open {login_url}: {e.msg or e}") from e

    email_box = _wait_for(driver, EMAIL_INPUT, step="login")
    _click(email_box, step="login")
    _type_slowly(email_box, email, step="login")

    password_box = _wait_for(driver, PASSWORD_INPUT, step="login")
    _click(password_box, step="login")
    _type_slowly(password_box, password, step="login")

    _click(_wait_for(driver, POLICY_CHECKBOX, step="login"), step="login")
    time.sleep(1)
    _click(_wait_for(driver, SUBMIT_BUTTON, step="login"), step="login")


def continue_application(driver: WebDriver) -> None:
    link = _wait_for(driver, CONTINUE_LINK, step="continue")
    time.sleep(2)
    _click(link, step="continue")


def go_to_reschedule_screen(driver: WebDriver, *, language: str) -> None:
    button = _wait_for(driver, RESCHEDULE_BUTTON, step="reschedule")
    time.sleep(1)
    _click(button, step="reschedule")
    time.sleep(1)

    text = reschedule_link_text(language)
    try:
        links = driver.find_elements(By.XPATH, f"//a[contains(text(), '{text}')]")
    except WebDriverException as e:
        raise NavigationError(f"reschedule: browser error while looking for {text!r}: {e.msg or e}") from e
    if not links:
        raise ElementLookupError(f"reschedule: no link with text {text!r} (LANGUAGE={language!r})")
    _click(links[0], step="reschedule")


def confirm_applicants(driver: WebDriver) -> None:
    # Accounts with several applicants get a checkbox list first; all are preselected.
    button = _wait_for(driver, SUBMIT_BUTTON, step="applicants")
    time.sleep(1)
    _click(button, step="applicants")


def open_date_picker(driver: WebDriver) -> None:
    time.sleep(2)
    date_input = _wait_for(driver, DATE_INPUT, step="date picker")
    _click(date_input, step="date picker")


def _read_selected_day(driver: WebDriver) -> CalendarDate:
    try:
        link = driver.find_element(*SELECTABLE_DAY)
        cell = link.find_element(By.XPATH, "..")
        year_raw = cell.get_attribute("data-year")
        month_raw = cell.get_attribute("data-month")
        day_raw = link.text
    except (NoSuchElementException, StaleElementReferenceException) as e:
        raise ElementLookupError(f"calendar: selectable day disappeared ({type(e).__name__})") from e
    except WebDriverException as e:
        raise NavigationError(f"calendar: browser error while reading the selectable day: {e.msg or e}") from e

    try:
        # data-month is zero-based (jQuery UI datepicker)
        return CalendarDate(year=int(year_raw), month=int(month_raw) + 1, day=int(day_raw.strip())).validated()
    except (TypeError, ValueError) as e:
        raise DecisionError(
            f"calendar: cannot read date from cell (data-year={year_raw!r}, data-month={month_raw!r}, text={day_raw!r})"
        ) from e


def find_earliest_date(
    driver: WebDriver,
    *,
    max_pages: int,
    day_wait_seconds: float = 1.0,
    poll_seconds: float = 0.2,
) -> CalendarDate:
    """Page forward through the open date picker until a selectable day shows up.

    The first selectable day on a page is the earliest on it, and pages only
    move forward, so the first hit is the earliest available date overall.
    Raises CalendarExhaustedError after `max_pages` clicks on "next".
    """
    pages_forward = 0
    while True:
        try:
            WebDriverWait(driver, day_wait_seconds, poll_frequency=poll_seconds).until(
                EC.presence_of_element_located(SELECTABLE_DAY)
            )
        except TimeoutException:
            if pages_forward >= max_pages:
                raise CalendarExhaustedError(f"calendar: no selectable day within {max_pages} months")
            _click(_wait_for(driver, NEXT_MONTH, step="calendar"), step="calendar")
            pages_forward += 1
            continue
        except WebDriverException as e:
            raise NavigationError(f"calendar: browser error while looking for a selectable day: {e.msg or e}") from e

        found = _read_selected_day(driver)
        logger.info("Earliest selectable day %s (paged forward %d times)", found, pages_forward)
        return found
