"""
Configuration for the URL to PDF converter.

Values are resolved from the CLI dictionary first, then from ``URL2PDF_*``
environment variables, then from built-in defaults.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULTS: Dict[str, Any] = {
    "concurrency": 4,
    "timeout": 120.0,
    "error_log": "error.txt",
    "output_dir": "",
    "page_format": "A4",
    "margins": "10mm",
    "wait_until": "networkidle",
    "headless": True,
    "scroll_step": 100,
    "scroll_interval": 0.1,
    "max_scroll_steps": None,
}

ENV_VARS = {
    "concurrency": "URL2PDF_CONCURRENCY",
    "timeout": "URL2PDF_TIMEOUT",
    "error_log": "URL2PDF_ERROR_LOG",
    "output_dir": "URL2PDF_OUTPUT_DIR",
    "page_format": "URL2PDF_PAGE_FORMAT",
    "margins": "URL2PDF_MARGINS",
    "wait_until": "URL2PDF_WAIT_UNTIL",
    "headless": "URL2PDF_HEADLESS",
}

WAIT_UNTIL_CHOICES = ("load", "domcontentloaded", "networkidle", "commit")

_MARGIN_RE = re.compile(r'^(-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)\s*(cm|in|mm|pt|px)?$')
_INCHES_PER_UNIT = {"in": 1.0, "cm": 1 / 2.54, "mm": 1 / 25.4, "pt": 1 / 72, "px": 1 / 96}


def validate_margin(margin_str: str) -> str:
    """Normalize one margin value; bare numbers are inches, allowed range 0-3in."""
    match = _MARGIN_RE.match(margin_str.strip())
    if not match:
        raise ValueError(f"Invalid margin format: '{margin_str}'. Use format like '1in', '2.5cm', '10mm', etc.")

    value = float(match.group(1))
    unit = match.group(2) or 'in'
    inches = value * _INCHES_PER_UNIT[unit]
    if inches < 0:
        raise ValueError(f"Margin cannot be negative: '{margin_str}'. Minimum value is 0.")
    if inches > 3:
        raise ValueError(f"Margin too large: '{margin_str}'. Maximum value is 3 inches (7.62cm).")
    return f"{value:g}{unit}"


# CSS shorthand order for 1, 2 and 4 values: top, right, bottom, left
_SHORTHAND_INDEXES = {1: (0, 0, 0, 0), 2: (0, 1, 0, 1), 4: (0, 1, 2, 3)}


def parse_margins(margins: str) -> Dict[str, str]:
    """Expand a CSS-style margin shorthand into top/right/bottom/left values."""
    values = [validate_margin(part) for part in margins.split()]
    indexes = _SHORTHAND_INDEXES.get(len(values))
    if indexes is None:
        raise ValueError(f"Invalid margin format: '{margins}'. Use 1, 2, or 4 values.")
    return dict(zip(('top', 'right', 'bottom', 'left'), (values[i] for i in indexes)))


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean value: '{value}'")


@dataclass(frozen=True)
class RenderSettings:
    """Everything the rendering engine needs besides the task itself."""

    page_format: str = "A4"
    margins: str = "10mm"
    wait_until: str = "networkidle"
    headless: bool = True
    scroll_step: int = 100
    scroll_interval: float = 0.1
    max_scroll_steps: Optional[int] = None

    def margin_dict(self) -> Dict[str, str]:
        return parse_margins(self.margins)


class Config:
    """Layered configuration: CLI values, then environment, then defaults."""

    def __init__(self, cli_config: Optional[Dict[str, Any]] = None, environ: Optional[Dict[str, str]] = None):
        self.cli_config = {k: v for k, v in (cli_config or {}).items() if v is not None}
        self.environ = os.environ if environ is None else environ

    def get(self, key: str) -> Any:
        if key in self.cli_config:
            return self.cli_config[key]
        env_name = ENV_VARS.get(key)
        if env_name and self.environ.get(env_name):
            return self.environ[env_name]
        return DEFAULTS[key]

    def get_concurrency(self) -> int:
        try:
            value = int(self.get("concurrency"))
        except (TypeError, ValueError):
            raise ValueError(f"Concurrency must be an integer, got '{self.get('concurrency')}'")
        if value < 1:
            raise ValueError(f"Concurrency must be at least 1, got {value}")
        return value

    def get_timeout(self) -> float:
        """Per-step timeout in seconds."""
        try:
            value = float(self.get("timeout"))
        except (TypeError, ValueError):
            raise ValueError(f"Timeout must be a number of seconds, got '{self.get('timeout')}'")
        if value <= 0:
            raise ValueError(f"Timeout must be positive, got {value}")
        return value

    def get_error_log(self) -> str:
        return str(self.get("error_log"))

    def get_output_dir(self) -> str:
        return str(self.get("output_dir"))

    def get_render_settings(self) -> RenderSettings:
        wait_until = str(self.get("wait_until"))
        if wait_until not in WAIT_UNTIL_CHOICES:
            raise ValueError(f"Invalid wait condition '{wait_until}'. Available: {', '.join(WAIT_UNTIL_CHOICES)}")

        scroll_step = int(self.get("scroll_step"))
        if scroll_step < 1:
            raise ValueError(f"Scroll step must be at least 1, got {scroll_step}")
        scroll_interval = float(self.get("scroll_interval"))
        if scroll_interval < 0:
            raise ValueError(f"Scroll interval cannot be negative, got {scroll_interval}")
        max_scroll_steps = self.get("max_scroll_steps")
        if max_scroll_steps is not None:
            max_scroll_steps = int(max_scroll_steps)
            if max_scroll_steps < 1:
                raise ValueError(f"Max scroll steps must be at least 1, got {max_scroll_steps}")

        settings = RenderSettings(
            page_format=str(self.get("page_format")),
            margins=str(self.get("margins")),
            wait_until=wait_until,
            headless=_parse_bool(self.get("headless")),
            scroll_step=scroll_step,
            scroll_interval=scroll_interval,
            max_scroll_steps=max_scroll_steps,
        )
        # Fail early on bad margins rather than on the first task
        settings.margin_dict()
        return settings
