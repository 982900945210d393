"""Configuration management for the webview console.

Supports multiple configuration sources with precedence:
CLI flags > Environment variables > Config file > Defaults

Usage:
    >>> config = Configuration()
    >>> config.load_from_file("~/.webviewconsolerc")
    >>> config.load_from_env()
    >>> config.merge(auto_detect_webviews=False)  # CLI overrides
    >>> print(config.auto_detect_webviews)
    False
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

logger = logging.getLogger(__name__)

ENV_PREFIX = "WEBVIEW_CONSOLE_"


def parse_bool(value: str) -> bool:
    """Convert an environment string to bool.

    Raises:
        ValueError: If the string is not a recognised boolean spelling
    """
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


class Configuration:
    """Configuration manager with layered precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (via merge method)
    2. Environment variables (WEBVIEW_CONSOLE_* prefix)
    3. Config file (~/.webviewconsolerc JSON)
    4. Default values

    Attributes:
        chrome_host: Host of the browser's remote debugging endpoint
        chrome_port: Remote debugging port (default: 9222)
        timeout: CDP command timeout in seconds (default: 30.0)
        max_size: Maximum WebSocket message size in bytes (default: 2MB)
        log_level: Logging level (default: "INFO")
        log_format: Log output format "text" or "json" (default: "text")
        auto_detect_webviews: Scan the view hierarchy every time the console is shown
        clear_webviews_on_hide: Forget tracked webviews when the console is hidden
        suggest_commands_while_editing: Cosmetic flag read by suggestion UIs
        auto_scroll_on_new_log: Ask the view to scroll to the newest entry
        preserve_tracked_on_scan: Keep manually tracked, still-live webviews across scans
        max_log_entries: Per-webview log buffer bound
        screenshot_cache_size: Number of cached webview screenshots
    """

    DEFAULTS: Dict[str, Any] = {
        "chrome_host": "localhost",
        "chrome_port": 9222,
        "timeout": 30.0,
        "max_size": 2_097_152,  # 2MB
        "log_level": "INFO",
        "log_format": "text",
        "auto_detect_webviews": True,
        "clear_webviews_on_hide": False,
        "suggest_commands_while_editing": True,
        "auto_scroll_on_new_log": True,
        "preserve_tracked_on_scan": True,
        "max_log_entries": 1000,
        "screenshot_cache_size": 32,
    }

    # attribute -> converter for environment values
    CONVERTERS: Dict[str, Callable[[str], Any]] = {
        "chrome_host": str,
        "chrome_port": int,
        "timeout": float,
        "max_size": int,
        "log_level": str,
        "log_format": str,
        "auto_detect_webviews": parse_bool,
        "clear_webviews_on_hide": parse_bool,
        "suggest_commands_while_editing": parse_bool,
        "auto_scroll_on_new_log": parse_bool,
        "preserve_tracked_on_scan": parse_bool,
        "max_log_entries": int,
        "screenshot_cache_size": int,
    }

    def __init__(self):
        """Initialize configuration with default values."""
        self.chrome_host: str = self.DEFAULTS["chrome_host"]
        self.chrome_port: int = self.DEFAULTS["chrome_port"]
        self.timeout: float = self.DEFAULTS["timeout"]
        self.max_size: int = self.DEFAULTS["max_size"]
        self.log_level: str = self.DEFAULTS["log_level"]
        self.log_format: str = self.DEFAULTS["log_format"]
        self.auto_detect_webviews: bool = self.DEFAULTS["auto_detect_webviews"]
        self.clear_webviews_on_hide: bool = self.DEFAULTS["clear_webviews_on_hide"]
        self.suggest_commands_while_editing: bool = self.DEFAULTS[
            "suggest_commands_while_editing"
        ]
        self.auto_scroll_on_new_log: bool = self.DEFAULTS["auto_scroll_on_new_log"]
        self.preserve_tracked_on_scan: bool = self.DEFAULTS["preserve_tracked_on_scan"]
        self.max_log_entries: int = self.DEFAULTS["max_log_entries"]
        self.screenshot_cache_size: int = self.DEFAULTS["screenshot_cache_size"]

    def load_from_file(self, file_path: str) -> None:
        """Load configuration from JSON file.

        Args:
            file_path: Path to config file (typically ~/.webviewconsolerc)

        Note:
            Invalid JSON or missing file is ignored with a log message.
            Partial configs are merged with existing values.
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            logger.debug(f"Config file not found: {path}")
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config file {path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error reading config file {path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Config file {path} must contain a JSON object")
            return

        self._merge_dict(data)
        logger.info(f"Loaded configuration from {path}")

    def env_mappings(self) -> Dict[str, Tuple[str, Callable[[str], Any]]]:
        """Return WEBVIEW_CONSOLE_* variable -> (attribute, converter)."""
        return {
            f"{ENV_PREFIX}{name.upper()}": (name, converter)
            for name, converter in self.CONVERTERS.items()
        }

    def load_from_env(self) -> None:
        """Load configuration from environment variables.

        Every attribute has a WEBVIEW_CONSOLE_<NAME> variable, e.g.
        WEBVIEW_CONSOLE_CHROME_PORT or WEBVIEW_CONSOLE_AUTO_DETECT_WEBVIEWS.
        Invalid values are ignored with a warning log.
        """
        for env_var, (attr_name, type_converter) in self.env_mappings().items():
            value = os.getenv(env_var)
            if value is None:
                continue
            try:
                converted_value = type_converter(value)
            except (ValueError, TypeError) as e:
                logger.warning(f"Invalid value for {env_var}: {value} ({e})")
                continue
            setattr(self, attr_name, converted_value)
            logger.debug(f"Loaded {attr_name}={converted_value} from {env_var}")

    def merge(self, **kwargs) -> None:
        """Merge CLI arguments into configuration (highest precedence).

        Example:
            >>> config.merge(chrome_port=9333, timeout=15.0)
        """
        self._merge_dict(kwargs)

    def _merge_dict(self, data: dict) -> None:
        for key, value in data.items():
            if key in self.DEFAULTS and value is not None:
                setattr(self, key, value)
                logger.debug(f"Set {key}={value}")

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {key: getattr(self, key) for key in self.DEFAULTS}

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()})"
