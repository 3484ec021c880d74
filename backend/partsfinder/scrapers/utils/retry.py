"""Retry policies for browser launch and page navigation."""

import logging

import structlog
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)
from playwright.async_api import Error as PlaywrightError

from partsfinder.config import settings


# before_sleep_log calls logger.log() with a numeric level, which the
# structlog filtering bound logger accepts
logger = structlog.get_logger(__name__)


# Navigation only. Element waits are never retried: a missing search
# box is reported as-is, and the results wait already absorbs timeouts.
# PlaywrightError is the base of Playwright's TimeoutError as well.
navigation_retry = retry(
    stop=stop_after_attempt(max(1, settings.NAVIGATION_RETRIES)),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(PlaywrightError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


# Launching Chromium can fail transiently on cold containers
launch_retry = retry(
    stop=stop_after_attempt(max(1, settings.LAUNCH_RETRIES)),
    wait=wait_exponential(multiplier=2, min=2, max=20),
    retry=retry_if_exception_type(PlaywrightError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
