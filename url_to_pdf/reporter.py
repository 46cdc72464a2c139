"""
Error report written at the end of a run with failed tasks.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .tasks import TaskFailure


def failure_records(failures: Sequence[TaskFailure]) -> List[Dict[str, Dict[str, str]]]:
    """One ``{dir: {title: url}}`` record per failure, in failure order."""
    return [{failure.dir: {failure.title: failure.url}} for failure in failures]


def write_error_report(failures: Sequence[TaskFailure], path: Union[str, Path] = "error.txt") -> Optional[Path]:
    """Overwrite ``path`` with the failure records; does nothing when there are none.

    Returns the written path, or None when no report was needed.
    """
    if not failures:
        return None

    report_path = Path(path)
    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(failure_records(failures), f, indent=2, ensure_ascii=False)
    return report_path
