"""Split command-line style flag values that may hold quoted fields."""

from __future__ import annotations

from dataclasses import dataclass, field

_SPACE = " \t\n\r"


def split_quoted_fields(s: str) -> list[str]:
    """Split ``s`` on whitespace, allowing fields wrapped in '' or "".

    Quotes inside a field do not count and nothing is unescaped.
    Raises :class:`ValueError` for an unterminated quote.
    """
    fields: list[str] = []
    rest = s
    while True:
        rest = rest.lstrip(_SPACE)
        if not rest:
            return fields
        quote = rest[0]
        if quote in "\"'":
            end = rest.find(quote, 1)
            if end < 0:
                raise ValueError(f"unterminated {quote} string")
            fields.append(rest[1:end])
            rest = rest[end + 1 :]
            continue
        end = next((i for i, ch in enumerate(rest) if ch in _SPACE), len(rest))
        fields.append(rest[:end])
        rest = rest[end:]


@dataclass
class StringsFlag:
    """A flag value holding a list of strings parsed from one argument."""

    values: list[str] = field(default_factory=list)

    def set(self, value: str) -> None:
        """Replace the values with the fields parsed from ``value``."""
        self.values = []
        self.values = split_quoted_fields(value)

    def __iter__(self):
        return iter(self.values)

    def __str__(self) -> str:
        return "<stringsFlag>"