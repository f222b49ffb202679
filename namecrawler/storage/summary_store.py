"""
File storage for run summaries and probe reports.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union


class StorageError(Exception):
    """Raised when an output document cannot be written or read."""
    pass


class SummaryStore:
    """
    Writes JSON output documents.

    Each document is written once at the end of a run. A failed write is
    fatal: there is no partial-write or checkpoint recovery.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent
        self.logger = logging.getLogger(__name__)

    def save(self, path: Union[str, Path], document: Any) -> Path:
        """Serialize an object with ``to_dict`` (or a plain mapping) to ``path``."""
        data = document.to_dict() if hasattr(document, 'to_dict') else document
        file_path = Path(path)

        try:
            if file_path.parent != Path('.'):
                file_path.parent.mkdir(parents=True, exist_ok=True)

            with open(file_path, 'w', encoding='utf-8', errors='backslashreplace') as f:
                json.dump(data, f, ensure_ascii=False, indent=self.indent)
                f.write('\n')

        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {file_path}: {e}") from e

        self.logger.info(f"Results saved to {file_path}")
        return file_path

    def load(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Read a previously written JSON document."""
        file_path = Path(path)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"{file_path} does not contain a JSON object")
        return data
