import json
import os
import tempfile
from typing import Any, Callable, Dict, TextIO


def _ensure_parent_dir(file_path: str) -> str:
    parent = os.path.dirname(file_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return parent


def _write_atomically(file_path: str, write: Callable[[TextIO], None]) -> None:
    """
    Write through a temporary file in the target directory, then move it into place.

    The target is either left untouched or fully replaced; a failed write
    never leaves a truncated file behind.
    """
    parent = _ensure_parent_dir(file_path)
    temp_f = None
    try:
        with tempfile.NamedTemporaryFile('w', delete=False, dir=parent or None,
                                         suffix='.tmp', encoding='utf-8') as temp_f:
            write(temp_f)
        os.replace(temp_f.name, file_path)
    finally:
        if temp_f is not None and os.path.exists(temp_f.name):
            os.unlink(temp_f.name)


def read_json(file_path: str) -> Any:
    """
    Read a JSON file.

    Key order of JSON objects is preserved, which the catalog splice relies on.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not UTF-8.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(file_path: str, data: Dict[str, Any]) -> None:
    """Write ``data`` as indented UTF-8 JSON, creating the parent directory if needed."""
    def _dump(f: TextIO) -> None:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.write('\n')

    _write_atomically(file_path, _dump)


def read_text(file_path: str) -> str:
    with open(file_path, 'r', encoding='utf-8') as f:
        return f.read()


def write_text(file_path: str, text: str) -> None:
    """Write ``text`` verbatim, creating the parent directory if needed."""
    _write_atomically(file_path, lambda f: f.write(text))
