"""
Правки исходного текста по диапазонам символов.

Текст вне диапазонов правок не меняется ни на байт.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass
class TextRange:
    """Диапазон текста в символьных позициях."""
    start_char: int
    end_char: int

    def __post_init__(self):
        if self.start_char > self.end_char:
            raise ValueError(f"Invalid range: start_char ({self.start_char}) > end_char ({self.end_char})")

    @property
    def length(self) -> int:
        return self.end_char - self.start_char

    def overlaps(self, other: TextRange) -> bool:
        return not (self.end_char <= other.start_char or other.end_char <= self.start_char)


@dataclass
class Edit:
    """Замена диапазона текстом."""
    range: TextRange
    replacement: str


class RangeEditor:
    """
    Накопитель замен для одного текста.

    При пересечении диапазонов побеждает более широкий,
    при равной ширине - добавленный первым.
    """

    def __init__(self, original_text: str):
        self.original_text = original_text
        self.edits: List[Edit] = []

    def add_replacement(self, start_char: int, end_char: int, replacement: str) -> None:
        char_range = TextRange(start_char, end_char)
        if char_range.end_char > len(self.original_text):
            raise ValueError(
                f"end_char ({char_range.end_char}) exceeds text length ({len(self.original_text)})"
            )

        absorbed = []
        for i, existing in enumerate(self.edits):
            if not char_range.overlaps(existing.range):
                continue
            if char_range.length > existing.range.length:
                absorbed.append(i)
            else:
                return

        for i in reversed(absorbed):
            del self.edits[i]
        self.edits.append(Edit(char_range, replacement))

    def apply_edits(self) -> str:
        """Применяет правки с конца текста, чтобы позиции не сдвигались."""
        result = self.original_text
        for edit in sorted(self.edits, key=lambda e: e.range.start_char, reverse=True):
            result = result[:edit.range.start_char] + edit.replacement + result[edit.range.end_char:]
        return result


__all__ = ["TextRange", "Edit", "RangeEditor"]
