# src/taskly/tasks/categories.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from ..config import DEFAULT_CATEGORIES
from ..core.errors import InvalidCategoryError

logger = logging.getLogger(__name__)

CATEGORY_COUNT = 4

# Long enough for ZWJ emoji sequences with skin tones.
MAX_SYMBOL_LENGTH = 16


def validate_symbol(raw: str) -> str:
    """
    Return the stripped symbol or raise InvalidCategoryError.

    Whether it is a single emoji is the caller's call; here it must be
    non-empty, short and free of whitespace.
    """
    symbol = (raw or "").strip()
    if not symbol:
        raise InvalidCategoryError("Category symbol is empty.")
    if any(ch.isspace() for ch in symbol):
        raise InvalidCategoryError(f"Category symbol must be a single symbol: {raw!r}")
    if len(symbol) > MAX_SYMBOL_LENGTH:
        raise InvalidCategoryError(f"Category symbol is too long: {raw!r}")
    return symbol


@dataclass(slots=True, frozen=True)
class CategorySet:
    """Ordered, fixed-size set of category symbols."""

    symbols: tuple[str, ...] = DEFAULT_CATEGORIES

    def __post_init__(self) -> None:
        if len(self.symbols) != CATEGORY_COUNT:
            raise InvalidCategoryError(
                f"Expected {CATEGORY_COUNT} categories, got {len(self.symbols)}."
            )

    def __iter__(self) -> Iterator[str]:
        return iter(self.symbols)

    def __len__(self) -> int:
        return len(self.symbols)

    def __getitem__(self, index: int) -> str:
        return self.symbols[index]

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.symbols

    def replace(self, index: int, symbol: str) -> CategorySet:
        if not 0 <= index < CATEGORY_COUNT:
            raise InvalidCategoryError(f"Category slot out of range: {index}")
        clean = validate_symbol(symbol)
        items = list(self.symbols)
        items[index] = clean
        return CategorySet(tuple(items))

    @classmethod
    def from_list(cls, raw: Sequence[object] | None) -> CategorySet:
        """Stored list if it holds exactly four valid symbols, otherwise the defaults."""
        if not isinstance(raw, list) or len(raw) != CATEGORY_COUNT:
            return cls()
        try:
            return cls(tuple(validate_symbol(str(s)) for s in raw))
        except InvalidCategoryError:
            return cls()


class CategoryStore:
    """
    JSON-file persistence for the user's category set.

    Lives next to the task database but is independent of the task store.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._current = self._load()

    @property
    def current(self) -> CategorySet:
        return self._current

    def _load(self) -> CategorySet:
        if not self._path.exists():
            return CategorySet()
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.exception("Failed to read categories from %s; using defaults.", self._path)
            return CategorySet()
        items = data.get("categories") if isinstance(data, dict) else data
        categories = CategorySet.from_list(items)
        logger.info("Loaded categories from %s: %s", self._path, " ".join(categories))
        return categories

    def save(self, categories: CategorySet) -> None:
        self._current = categories
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            payload = {"categories": list(categories.symbols)}
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
            with contextlib.suppress(OSError):
                os.chmod(self._path, 0o600)
        except OSError:
            # The in-memory set stays updated; only persistence is lost.
            logger.exception("Failed to save categories to %s", self._path)

    def replace(self, index: int, symbol: str) -> CategorySet:
        updated = self._current.replace(index, symbol)
        self.save(updated)
        return updated
