"""Text rules of FIEBDC-3: delimiter escaping, single-byte encoding, file names."""

from __future__ import annotations

import re
from typing import Any

from bimbudget.config import BC3_MAX_FILENAME_STEM
from bimbudget.extraction.properties import fold_diacritics

# Field, record and sub-field delimiters plus line breaks
_DELIMITER_RE = re.compile(r"[|~\\\r\n]")
_FILENAME_RE = re.compile(r"[^a-zA-Z0-9]+")

BC3_ENCODING = "latin-1"
DEFAULT_FILENAME_STEM = "Budget"


def bc3_escape(value: Any) -> str:
    """Replace ``| ~ \\`` and line breaks with spaces, then trim."""
    if value is None:
        return ""
    return _DELIMITER_RE.sub(" ", str(value)).strip()


def encode_bc3(text: str) -> bytes:
    """Encode as single-byte ISO-8859-1; characters above U+00FF become ``?``."""
    return text.encode(BC3_ENCODING, errors="replace")


def bc3_filename(name: str | None) -> str:
    """Sanitized ``.bc3`` file name: ASCII letters, digits and ``_`` only."""
    stem = _FILENAME_RE.sub("_", fold_diacritics(name or "")).strip("_")
    stem = stem[:BC3_MAX_FILENAME_STEM].rstrip("_")
    return f"{stem or DEFAULT_FILENAME_STEM}.bc3"
