"""
Character-cell tokenizer.

Splits raw field values into the single-character cells of the printed
form. One code point occupies one cell; anything that does not fit is
dropped without an ellipsis.
"""

import re
from typing import List, Optional

from form_config import LayoutError

_NON_MONEY = re.compile(r"[^0-9.]")


def tokenize_row(value: Optional[object], cell_count: int) -> List[str]:
    """Return exactly ``cell_count`` cells; missing characters are ``""``."""
    if cell_count <= 0:
        raise LayoutError(f"cell_count must be positive, got {cell_count}")
    text = "" if value is None else str(value)
    chars = list(text[:cell_count])
    return chars + [""] * (cell_count - len(chars))


def tokenize_multi_row(value: Optional[object], cells_per_row: int, row_count: int) -> List[List[str]]:
    """
    Chunk ``value`` into rows of ``cells_per_row`` characters.

    Missing rows are all-empty; chunks beyond ``row_count`` are dropped.
    """
    if cells_per_row <= 0:
        raise LayoutError(f"cells_per_row must be positive, got {cells_per_row}")
    if row_count <= 0:
        raise LayoutError(f"row_count must be positive, got {row_count}")

    text = "" if value is None else str(value)
    chunks = [text[i:i + cells_per_row] for i in range(0, len(text), cells_per_row)]
    chunks = chunks[:row_count]
    chunks += [""] * (row_count - len(chunks))
    return [tokenize_row(chunk, cells_per_row) for chunk in chunks]


def normalize_money(value: Optional[object]) -> str:
    """Strip currency symbols and thousands separators: ``"₹12,34,567"`` -> ``"1234567"``."""
    if value is None:
        return ""
    return _NON_MONEY.sub("", str(value))
