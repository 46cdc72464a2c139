"""Shared fakes for the URL to PDF tests.

Provides:
- FakeSession / FakeContext: stand-ins for the Playwright session used by the worker pool
- FakePage: stand-in for a Playwright page used by the renderer tests
- session_factory: fixture building a counting factory around a FakeSession
"""

import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


# ---------------------------------------------------------------------------
# Worker pool fakes
# ---------------------------------------------------------------------------

class FakeContext:
    def __init__(self, session):
        self.session = session
        self.closed = False

    async def render(self, url, destination, timeout):
        session = self.session
        session.rendered.append(url)
        session.active += 1
        session.max_active = max(session.max_active, session.active)
        try:
            # Yield so that sibling workers interleave
            await asyncio.sleep(session.delay)
            outcome = session.outcomes.get(url)
            if isinstance(outcome, BaseException):
                raise outcome
            if session.write_files:
                Path(destination).write_bytes(b"%PDF-1.4 fake")
        finally:
            session.active -= 1

    async def close(self):
        self.closed = True
        if self.session.context_close_error is not None:
            raise self.session.context_close_error


class FakeSession:
    def __init__(self, outcomes=None, start_error=None, open_errors=None, delay=0.001,
                 write_files=True, context_close_error=None, close_error=None):
        self.outcomes = outcomes or {}
        self.start_error = start_error
        self.open_errors = list(open_errors or [])
        self.delay = delay
        self.write_files = write_files
        self.context_close_error = context_close_error
        self.close_error = close_error
        self.rendered = []
        self.contexts = []
        self.active = 0
        self.max_active = 0
        self.entered = 0
        self.close_calls = 0

    async def __aenter__(self):
        if self.start_error is not None:
            raise self.start_error
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error

    async def open_context(self):
        if self.open_errors:
            raise self.open_errors.pop(0)
        context = FakeContext(self)
        self.contexts.append(context)
        return context


class CountingFactory:
    def __init__(self, session):
        self.session = session
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.session


@pytest.fixture
def session_factory():
    def _make(**kwargs):
        return CountingFactory(FakeSession(**kwargs))
    return _make


# ---------------------------------------------------------------------------
# Renderer fakes
# ---------------------------------------------------------------------------

class FakePage:
    def __init__(self, heights=(0,), pdf_delay=0.0, goto_error=None):
        self.heights = list(heights)
        self.pdf_delay = pdf_delay
        self.goto_error = goto_error
        self.scrolls = []
        self.goto_calls = []
        self.pdf_calls = []

    async def evaluate(self, script, arg=None):
        if "scrollHeight" in script:
            if len(self.heights) > 1:
                return self.heights.pop(0)
            return self.heights[0]
        self.scrolls.append(arg)
        return None

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_error is not None:
            raise self.goto_error

    async def pdf(self, **kwargs):
        await asyncio.sleep(self.pdf_delay)
        self.pdf_calls.append(kwargs)


class FakeBrowserContext:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True
