"""Collects the device signals sent when claiming a deferred link by signals."""

import locale
import logging
import os
from datetime import datetime

from linkpulse.domain.models.referrals import DeviceSignals

logger = logging.getLogger(__name__)


def _timezone_name() -> str:
    # An explicit TZ (e.g. 'Europe/Berlin') is more useful than the abbreviation
    tz_env = os.environ.get("TZ")
    if tz_env:
        return tz_env
    tzinfo = datetime.now().astimezone().tzinfo
    return str(tzinfo) if tzinfo is not None else "UTC"


def _language_code() -> str:
    lang, _ = locale.getlocale()
    if not lang:
        lang = os.environ.get("LANG", "")
    code = lang.split(".")[0].split("_")[0]
    return code or "en"


def collect_device_signals(screen_width: int = 0, screen_height: int = 0) -> DeviceSignals:
    """Builds DeviceSignals from the local environment.

    Screen dimensions come from the host; there is no portable way to read
    them from a Python process.
    """
    signals = DeviceSignals(
        timezone=_timezone_name(),
        language=_language_code(),
        screen_width=screen_width,
        screen_height=screen_height,
    )
    logger.debug(f"Collected device signals: {signals}")
    return signals
