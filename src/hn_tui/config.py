from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Dict, Optional

from .datamodels import Category

# --- Configuration ---
API_BASE_URL = "https://hacker-news.firebaseio.com/v0"
HTTP_TIMEOUT = 15.0
PAGE_SIZE = 30
MAX_WORKERS = 16
RETRY_ATTEMPTS = 4
INITIAL_RETRY_DELAY = 0.5
MAX_RETRY_DELAY = 8.0
POLL_INTERVAL = 0.1

CONFIG_PATH = os.path.expanduser("~/.config/hn/config.json")

REQUEST_HEADERS = {
    "User-Agent": "hn-tui (+https://github.com/HackerNews/API)",
    "Accept": "application/json",
}

# --- Logging ---
logger = logging.getLogger("hn")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging."""
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = f"/tmp/hn_debug_{ts}_{pid}.log"

    # The terminal belongs to the UI, so debug output goes to a file
    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(threadName)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


def load_config(path: str = CONFIG_PATH) -> Dict[str, Any]:
    """Load the configuration file, or an empty config if there is none."""
    if not os.path.exists(path):
        logger.info("No config file at %s, using defaults.", path)
        return {}
    try:
        with open(path, "r") as f:
            config = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        return {}
    if not isinstance(config, dict):
        logger.error("Ignoring config at %s: expected a JSON object", path)
        return {}
    logger.info("Loaded config from %s", path)
    return config


@dataclass(frozen=True)
class Settings:
    """Everything the feed and the card renderer need to know."""

    category: Category = Category.TOP
    page_size: int = PAGE_SIZE
    max_workers: int = MAX_WORKERS
    retry_attempts: int = RETRY_ATTEMPTS
    initial_retry_delay: float = INITIAL_RETRY_DELAY
    max_retry_delay: float = MAX_RETRY_DELAY
    poll_interval: float = POLL_INTERVAL
    http_timeout: float = HTTP_TIMEOUT
    api_base_url: str = API_BASE_URL
    dark: bool = True

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> Settings:
        settings = cls()
        for f in fields(cls):
            if f.name not in config:
                continue
            try:
                value = _coerce(f.name, config[f.name], getattr(settings, f.name))
            except (TypeError, ValueError) as e:
                logger.warning("Ignoring invalid config value for '%s': %s", f.name, e)
                continue
            settings = replace(settings, **{f.name: value})
        return settings

    def retry_delay(self, failures: int) -> float:
        """Delay before the retry that follows the given number of failures."""
        if failures < 1:
            return 0.0
        return min(self.initial_retry_delay * 2 ** (failures - 1), self.max_retry_delay)


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, Category):
        return Category.parse(str(value))
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise TypeError(f"expected true/false, got {value!r}")
        return value
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected an integer, got {value!r}")
        if value < (0 if name == "retry_attempts" else 1):
            raise ValueError(f"{value} is out of range")
        return value
    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected a number, got {value!r}")
        if value < 0 or (value == 0 and not name.endswith("_delay")):
            raise ValueError(f"{value} is out of range")
        return float(value)
    if not isinstance(value, str) or not value:
        raise TypeError(f"expected a non-empty string, got {value!r}")
    return value.rstrip("/")
