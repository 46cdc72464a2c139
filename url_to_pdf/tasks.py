"""
Render task model and task list building.

A task list is built either from a nested JSON structure (file mode) or from a
single URL and destination (direct mode). Destinations that already exist are
skipped, so re-running a bulk conversion only renders what is missing.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .console import Console

# Top-level key reserved for run settings in input files
RESERVED_CONFIG_KEY = "config"


@dataclass(frozen=True)
class RenderTask:
    """One URL to render into one PDF destination."""

    title: str
    url: str
    file_path: str
    dir: str


@dataclass(frozen=True)
class TaskFailure:
    """A task whose render attempt failed, with a readable reason."""

    title: str
    url: str
    file_path: str
    dir: str
    error: str

    @classmethod
    def from_task(cls, task: RenderTask, error: str) -> "TaskFailure":
        return cls(error=error, **asdict(task))


class InputError(ValueError):
    """Raised when an input file cannot be turned into a task list."""


class TaskListBuilder:
    """Collects render tasks in input order, skipping existing destinations."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.tasks: List[RenderTask] = []
        self.skipped: List[str] = []

    def _add(self, task: RenderTask) -> None:
        if os.path.exists(task.file_path):
            self.console.info(f"Skipping existing file: {task.file_path}")
            self.skipped.append(task.file_path)
            return
        self.tasks.append(task)

    def add_structure(self, structure: Mapping[str, Any], base_path: str = "") -> None:
        """Walk a name -> URL / name -> mapping structure depth-first."""
        for key, value in structure.items():
            if isinstance(value, str):
                if not value.strip():
                    self.console.warning(f"Skipping '{key}': empty URL")
                    continue
                self._add(RenderTask(
                    title=key,
                    url=value,
                    file_path=os.path.join(base_path, f"{key}.pdf"),
                    dir=base_path,
                ))
            elif isinstance(value, Mapping):
                if not base_path and key == RESERVED_CONFIG_KEY:
                    self.console.debug(f"Ignoring reserved '{RESERVED_CONFIG_KEY}' section")
                    continue
                current_path = os.path.join(base_path, key)
                os.makedirs(current_path, exist_ok=True)
                self.add_structure(value, current_path)
            else:
                self.console.warning(
                    f"Skipping '{os.path.join(base_path, key)}': expected a URL or a mapping, "
                    f"got {type(value).__name__}"
                )

    def add_direct(self, url: str, output: str) -> None:
        """Add a single task writing ``url`` to ``output``."""
        if not url or not url.strip():
            raise InputError("URL must not be empty")
        output_path = Path(output).resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        title = output_path.name[:-4] if output_path.name.endswith(".pdf") else output_path.name
        self._add(RenderTask(
            title=title,
            url=url,
            file_path=str(output_path),
            dir=str(output_path.parent),
        ))


def load_structure(input_file: str) -> Dict[str, Any]:
    """Read a JSON input file; the root must be an object."""
    try:
        with open(input_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise InputError(f"Cannot read input file '{input_file}': {e}") from e
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON in '{input_file}': {e}") from e

    if not isinstance(data, dict):
        raise InputError(f"Input file '{input_file}' must contain a JSON object at the top level")
    return data


def build_file_tasks(input_file: str, output_dir: str = "", console: Optional[Console] = None) -> List[RenderTask]:
    """Build the task list for file mode."""
    structure = load_structure(input_file)
    builder = TaskListBuilder(console)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    builder.add_structure(structure, output_dir)
    return builder.tasks


def build_direct_tasks(url: str, output: str, console: Optional[Console] = None) -> List[RenderTask]:
    """Build the task list for direct mode (zero or one task)."""
    builder = TaskListBuilder(console)
    builder.add_direct(url, output)
    return builder.tasks
