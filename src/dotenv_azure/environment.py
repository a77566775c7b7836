"""Local .env files and the process environment.

Parsing is delegated to python-dotenv; this module only adapts its output
(dropping keys declared without a value) and writes to ``os.environ``.
"""

import io
import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from dotenv import dotenv_values, load_dotenv

from dotenv_azure.models import VariablesObject

logger = logging.getLogger(__name__)


def parse_env_text(src: str | bytes, encoding: str = "utf-8") -> VariablesObject:
    """Parse .env formatted text without touching the environment."""
    if isinstance(src, bytes):
        src = src.decode(encoding)
    return _drop_unset(dotenv_values(stream=io.StringIO(src)))


def read_env_file(path: Path, encoding: str = "utf-8") -> VariablesObject:
    """Parse a .env file. Raises FileNotFoundError if it does not exist."""
    if not path.is_file():
        raise FileNotFoundError(f"No such .env file: {path}")
    return _drop_unset(dotenv_values(path, encoding=encoding))


def load_env_file(
    path: Path, encoding: str = "utf-8", override: bool = False
) -> tuple[VariablesObject, Exception | None]:
    """Parse a .env file and apply it to ``os.environ``.

    Returns the parsed values and the error that prevented reading the file,
    if any (a missing file is not fatal here; safe mode reports it later).
    """
    try:
        values = read_env_file(path, encoding)
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping local file %s: %s", path, exc)
        return {}, exc
    load_dotenv(path, encoding=encoding, override=override)
    return values, None


def populate_environ(
    values: Mapping[str, str],
    override: bool = False,
    exclude: Iterable[str] = (),
) -> list[str]:
    """Write ``values`` to ``os.environ`` and return the keys written.

    Existing variables are kept unless ``override`` is set; keys in
    ``exclude`` are never written.
    """
    skip = set(exclude)
    written: list[str] = []
    for key, value in values.items():
        if key in skip:
            continue
        if not override and key in os.environ:
            continue
        os.environ[key] = value
        written.append(key)
    return written


def compact(values: Mapping[str, str | None]) -> VariablesObject:
    """Return only the entries with a non-empty value."""
    return {k: v for k, v in values.items() if v}


def missing_keys(required: Iterable[str], present: Iterable[str]) -> list[str]:
    """Return the keys of ``required`` absent from ``present``, in order."""
    available = set(present)
    return [key for key in required if key not in available]


def _drop_unset(values: Mapping[str, str | None]) -> VariablesObject:
    # python-dotenv maps a bare "KEY" line to None.
    return {k: v for k, v in values.items() if v is not None}
