"""Code minting for BC3 concepts.

Chapters are ``C01#``; each lower level appends a zero-padded index to its
parent's stem (``C0102#``, ``C010203#``); items append three digits and drop
the ``#`` that marks a non-leaf concept (``C010203004``).
"""

from __future__ import annotations

from bimbudget.config import (
    BC3_MAX_CODE_LENGTH,
    CHAPTER_CODE_WIDTH,
    ITEM_CODE_WIDTH,
    SUBCHAPTER_CODE_WIDTH,
    SUBSUBCHAPTER_CODE_WIDTH,
)

CHAPTER_PREFIX = "C"
PLACEHOLDER_SUFFIX = "#"


class Bc3StructureError(Exception):
    """Raised when the budget tree cannot be coded within FIEBDC-3 limits."""


def _index(index: int, width: int) -> str:
    if index < 1 or index >= 10 ** width:
        raise Bc3StructureError(f"Index {index} does not fit in {width} digits")
    return f"{index:0{width}d}"


def _stem(parent_code: str) -> str:
    return parent_code.rstrip(PLACEHOLDER_SUFFIX)


def chapter_code(index: int) -> str:
    return f"{CHAPTER_PREFIX}{_index(index, CHAPTER_CODE_WIDTH)}{PLACEHOLDER_SUFFIX}"


def subchapter_code(chapter: str, index: int) -> str:
    return f"{_stem(chapter)}{_index(index, SUBCHAPTER_CODE_WIDTH)}{PLACEHOLDER_SUFFIX}"


def subsubchapter_code(subchapter: str, index: int) -> str:
    return f"{_stem(subchapter)}{_index(index, SUBSUBCHAPTER_CODE_WIDTH)}{PLACEHOLDER_SUFFIX}"


def item_code(subsubchapter: str, index: int) -> str:
    return f"{_stem(subsubchapter)}{_index(index, ITEM_CODE_WIDTH)}"


class CodeRegistry:
    """Tracks minted codes; rejects duplicates and over-long codes."""

    def __init__(self) -> None:
        self._codes: set[str] = set()

    def register(self, code: str) -> str:
        if len(code) > BC3_MAX_CODE_LENGTH:
            raise Bc3StructureError(f"Code '{code}' exceeds {BC3_MAX_CODE_LENGTH} characters")
        if code in self._codes:
            raise Bc3StructureError(f"Duplicate code '{code}'")
        self._codes.add(code)
        return code

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    def __len__(self) -> int:
        return len(self._codes)
