#!/usr/bin/env python3
"""
Web page to PDF converter using Playwright (Puppeteer approach).

Converts a single URL (direct mode) or a nested JSON tree of named URLs
(file mode) into PDF files, rendering several pages concurrently in one
headless Chromium instance. Failed pages are listed in an error log.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import argparse
import asyncio
import os
import sys
from typing import Callable, List, Optional, Sequence

from .config import Config
from .console import Console
from .dependencies import check_dependencies, install_browser
from .renderer import PlaywrightSession
from .reporter import write_error_report
from .scheduler import WorkerPool
from .tasks import InputError, RenderTask, TaskFailure, build_direct_tasks, build_file_tasks

MODE_FILE = "f"
MODE_DIRECT = "d"

USAGE_EPILOG = """\
JSON File Format:
{
  "config": {},
  "Category1": {
    "Subcategory": {
      "File Name": "https://example.com/page"
    }
  },
  "Single File": "https://example.com/another-page"
}

Each string value becomes "<name>.pdf" inside the folders named by its parent
keys. Existing PDFs are skipped, so a run can be repeated to retry failures.
Failed pages are written to error.txt. A run without failures leaves an
existing error.txt untouched and warns that it is left over.
The top-level "config" object is reserved and ignored.

Examples:
  1. Process JSON file:
     url-to-pdf --mode f courses.json

  2. Convert single URL:
     url-to-pdf --mode d "https://example.com" "output.pdf"
"""


class DependencyError(RuntimeError):
    """The browser needed for rendering is not available."""


class UrlToPdfConverter:
    """Builds the task list, runs the worker pool and writes the error log."""

    def __init__(self, config: Optional[Config] = None, console: Optional[Console] = None,
                 session_factory: Optional[Callable] = None, show_progress: bool = True):
        self.config = config or Config()
        self.console = console or Console()
        self.show_progress = show_progress
        self.concurrency = self.config.get_concurrency()
        self.timeout = self.config.get_timeout()
        self.render_settings = self.config.get_render_settings()
        # Real sessions need a browser on disk; injected ones are trusted
        self.check_browser = session_factory is None
        self.session_factory = session_factory or self._playwright_session

    def _playwright_session(self) -> PlaywrightSession:
        return PlaywrightSession(self.render_settings, self.console)

    def prepare_tasks(self, mode: str, inputs: Sequence[str]) -> List[RenderTask]:
        """Build the task list for the given mode and positional arguments."""
        if mode == MODE_FILE:
            return build_file_tasks(inputs[0], self.config.get_output_dir(), self.console)
        if mode == MODE_DIRECT:
            return build_direct_tasks(inputs[0], inputs[1], self.console)
        raise InputError(f"Unknown mode '{mode}'")

    async def convert(self, tasks: Sequence[RenderTask]) -> List[TaskFailure]:
        """Render all tasks with the worker pool and return the failures."""
        pool = WorkerPool(
            self.session_factory,
            concurrency=self.concurrency,
            timeout=self.timeout,
            console=self.console,
            show_progress=self.show_progress,
        )
        failures = await pool.run(tasks)
        self.console.success(
            f"Conversion complete: {pool.succeeded} pages converted, "
            f"{len(failures)} pages failed ({pool.succeeded + len(failures)}/{len(tasks)} total)"
        )
        return failures

    def run(self, mode: str, inputs: Sequence[str]) -> List[TaskFailure]:
        """Full run: prepare, convert, report. Returns the failures."""
        tasks = self.prepare_tasks(mode, inputs)

        if not tasks:
            self.console.info("No files to process")
            return []

        if self.check_browser and not check_dependencies(self.console):
            raise DependencyError("Chromium for Playwright is not installed")

        self.console.info(f"Starting conversion of {len(tasks)} pages with {self.concurrency} workers")
        failures = asyncio.run(self.convert(tasks))

        report = write_error_report(failures, self.config.get_error_log())
        if report is not None:
            self.console.warning(f"Error log saved to {report}")
        elif os.path.exists(self.config.get_error_log()):
            self.console.warning(
                f"{self.config.get_error_log()} is left over from an earlier run; "
                "every page in this run succeeded"
            )
        self.console.success("Conversion process completed")
        return failures


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        Console().error(f"{message}. Use --help for usage information.")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="url-to-pdf",
        description="Universal PDF Converter: render web pages to PDF with headless Chromium",
        usage="%(prog)s --mode f input.json | --mode d url output.pdf [options]",
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-m", "--mode", default=None, help="Operation mode (f for file, d for direct)")
    parser.add_argument("inputs", nargs="*", help="input.json in file mode; url and output.pdf in direct mode")
    parser.add_argument("--concurrency", type=int, default=None, help="Number of pages rendered in parallel (default: 4)")
    parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds for navigation, scrolling and PDF generation (default: 120)")
    parser.add_argument("--error-log", default=None, help="Where failed pages are listed (default: error.txt)")
    parser.add_argument("--output-dir", default=None, help="Root folder for file mode output (default: current directory)")
    parser.add_argument("--format", dest="page_format", default=None, help="Paper format, e.g. A4, Letter (default: A4)")
    parser.add_argument("--margins", default=None, help="Page margins in CSS format (default: '10mm'). Range: 0-3 inches. Use 1, 2, or 4 values. Units: in, cm, mm, pt, px")
    parser.add_argument("--wait-until", default=None, help="Navigation wait condition: load, domcontentloaded, networkidle, commit (default: networkidle)")
    parser.add_argument("--scroll-step", type=int, default=None, help="Pixels scrolled per step while loading lazy content (default: 100)")
    parser.add_argument("--scroll-interval", type=float, default=None, help="Seconds between scroll steps (default: 0.1)")
    parser.add_argument("--max-scroll-steps", type=int, default=None, help="Stop scrolling after this many steps (default: no limit)")
    parser.add_argument("--headed", action="store_true", help="Show the browser window instead of running headless")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging for detailed output")
    parser.add_argument("--install-browser", action="store_true", help="Install Chromium for Playwright and exit")
    return parser


def main(argv: Optional[Sequence[str]] = None, session_factory: Optional[Callable] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    console = Console(debug=args.debug)

    if args.install_browser:
        sys.exit(0 if install_browser(console) else 1)

    expected_inputs = {MODE_FILE: 1, MODE_DIRECT: 2}
    if args.mode not in expected_inputs or len(args.inputs) != expected_inputs[args.mode]:
        console.error("Invalid arguments. Use --help for usage information.")
        sys.exit(1)

    cli_config = {
        "concurrency": args.concurrency,
        "timeout": args.timeout,
        "error_log": args.error_log,
        "output_dir": args.output_dir,
        "page_format": args.page_format,
        "margins": args.margins,
        "wait_until": args.wait_until,
        "scroll_step": args.scroll_step,
        "scroll_interval": args.scroll_interval,
        "max_scroll_steps": args.max_scroll_steps,
    }
    if args.headed:
        cli_config["headless"] = False

    try:
        converter = UrlToPdfConverter(
            Config(cli_config),
            console=console,
            session_factory=session_factory,
            show_progress=not args.no_progress,
        )
    except ValueError as e:
        console.error(str(e))
        sys.exit(1)

    try:
        converter.run(args.mode, args.inputs)
    except InputError as e:
        console.error(str(e))
        sys.exit(1)
    except Exception as e:
        console.error(f"Critical error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
