"""
Runtime dependency checks and browser installation.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import subprocess
import sys
from pathlib import Path
from typing import Optional

from .console import Console

INSTALL_HINT = f"{sys.executable} -m playwright install chromium"


def chromium_executable() -> Optional[Path]:
    """Path of the Chromium build Playwright would launch, or None if unknown."""
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        executable = p.chromium.executable_path
    return Path(executable) if executable else None


def check_dependencies(console: Optional[Console] = None) -> bool:
    """Check that Playwright and its Chromium browser are installed.

    Must be called outside of a running event loop.
    """
    console = console or Console()
    try:
        import playwright  # noqa: F401
    except ImportError:
        console.error("playwright is required but not found. Please install playwright.")
        console.info(f"Run: pip install playwright && {INSTALL_HINT}")
        return False
    console.debug("Playwright is available")

    try:
        executable = chromium_executable()
    except Exception as e:
        console.error(f"Could not query the Playwright Chromium installation: {e}")
        return False

    if executable is None or not executable.exists():
        console.error("Chromium for Playwright is not installed.")
        console.info(f"Run: {INSTALL_HINT}  (or use --install-browser)")
        return False

    console.debug(f"Chromium is available at {executable}")
    return True


def install_browser(console: Optional[Console] = None) -> bool:
    """Install Chromium through Playwright. Returns True on success."""
    console = console or Console()
    console.info("Installing Playwright Chromium...")
    try:
        subprocess.run(
            [sys.executable, "-m", "playwright", "install", "chromium"],
            check=True, capture_output=True, text=True,
        )
    except subprocess.CalledProcessError as e:
        console.error(f"Failed to install Playwright Chromium: {e.stderr}")
        return False
    except FileNotFoundError as e:
        console.error(f"Failed to install Playwright Chromium: {e}")
        return False
    console.success("Playwright Chromium installed successfully")
    return True
