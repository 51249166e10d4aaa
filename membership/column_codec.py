from __future__ import annotations

import string

# Column A holds the fixed name/placeholder/email block, so the codec starts at B
_LETTERS = string.ascii_uppercase[1:]
MAX_COLUMN_INDEX = len(_LETTERS) - 1


class CodecRangeError(ValueError):
    def __init__(self, index: object) -> None:
        self.index = index
        super().__init__(f"Column index {index!r} is outside 0..{MAX_COLUMN_INDEX} (columns B-Z)")


def column_letter(index: int) -> str:
    """Map a zero-based column index to a sheet letter: 0 -> "B", 24 -> "Z"."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise CodecRangeError(index)
    if index < 0 or index > MAX_COLUMN_INDEX:
        raise CodecRangeError(index)
    return _LETTERS[index]


def cell_address(row_index: int, column_position: int) -> str:
    """A1 address for 0-based table coordinates, e.g. (1, 3) -> "D2".

    Column position 0 (column A) is not addressable through the codec.
    """
    return f"{column_letter(column_position - 1)}{row_index + 1}"
