"""
Colored console output shared by the converter, the worker pool and the renderer.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import threading

from colorama import init, Fore, Style
from tqdm import tqdm

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class Console:
    """Thread-safe colored logger that plays nicely with tqdm progress bars."""

    def __init__(self, debug: bool = False):
        self.debug_enabled = debug
        self._lock = threading.Lock()

    def _emit(self, tag: str, message: str) -> None:
        with self._lock:
            tqdm.write(f"{tag}{Style.RESET_ALL} {message}")

    def debug(self, message: str) -> None:
        """Log debug message with color (only if debug mode is enabled)."""
        if self.debug_enabled:
            self._emit(f"{Fore.CYAN}[DEBUG]", message)

    def info(self, message: str) -> None:
        """Log info message with color."""
        self._emit(f"{Fore.GREEN}[INFO]", message)

    def warning(self, message: str) -> None:
        """Log warning message with color."""
        self._emit(f"{Fore.YELLOW}[WARNING]", message)

    def error(self, message: str) -> None:
        """Log error message with color."""
        self._emit(f"{Fore.RED}[ERROR]", message)

    def success(self, message: str) -> None:
        """Log success message with color."""
        self._emit(f"{Fore.GREEN}[OK]", message)
