"""Render web pages to PDF with headless Chromium."""

from .converter import UrlToPdfConverter, main
from .scheduler import TaskQueue, WorkerPool
from .tasks import RenderTask, TaskFailure

__all__ = ["UrlToPdfConverter", "main", "TaskQueue", "WorkerPool", "RenderTask", "TaskFailure"]
__version__ = "1.0.0"
