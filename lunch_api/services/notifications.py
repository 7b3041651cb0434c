"""Delivery of password reset links. Mail transport is out of scope; the default notifier logs."""

import logging
from typing import Protocol
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


class ResetNotifier(Protocol):
    def send_password_reset(self, email: str, name: str, token: str) -> None: ...


def build_reset_link(base_url: str, token: str) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token})}"


class LoggingResetNotifier:
    """Writes the reset event to the log. The link itself is only logged at DEBUG."""

    def __init__(self, reset_url: str) -> None:
        self.reset_url = reset_url

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        logger.info("Password reset link issued", extra={"recipient": email})
        logger.debug("Password reset link for %s: %s", name, build_reset_link(self.reset_url, token))
