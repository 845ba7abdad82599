import argparse
import logging
import sys

from earlybird.alarm import Alarm
from earlybird.config import load_settings
from earlybird.domain import ConfigError, Decision
from earlybird.worker import SessionRunner


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        stream=sys.stdout,
    )
    for noisy in ("selenium", "urllib3", "httpx", "WDM"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _hold_alarm(alarm: Alarm) -> None:
    # The alarm repeats until the process is interrupted.
    try:
        alarm.wait()
    except KeyboardInterrupt:
        alarm.stop()


def main() -> int:
    parser = argparse.ArgumentParser(description="earlybird: watch for an earlier visa appointment date")
    parser.add_argument("--once", action="store_true", help="Run a single attempt and exit")
    args = parser.parse_args()

    _setup_logging()
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    runner = SessionRunner(settings)

    try:
        if args.once:
            try:
                result = runner.run_attempt()
            except Exception:
                return 1
            if result.decision is Decision.RESCHEDULE:
                return 0
        else:
            runner.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 0

    _hold_alarm(runner.alarm)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
