"""Line grammars for eligibility text.

A ``Grammar`` wraps one compiled regex. Its capture-group count fixes the
shape of every match it produces:

* 2 groups: ``SERVICE:$AMOUNT``                       -> :class:`SimpleLine`
* 3 groups: ``SERVICE[DETAIL]:$AMOUNT``               -> :class:`BracketedLine`
* 4 groups: ``SERVICE[DETAIL (CODE)]:$AMOUNT``        -> :class:`CodedLine`

Downstream code only reads ``service``, ``details`` and ``amount_text``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Pattern, Union

# Decimal with optional thousands separators, cents and a coinsurance marker.
AMOUNT = r"\$?([\d,]+(?:\.\d{2})?%?)"

SIMPLE_PATTERN = r"([^:]+):" + AMOUNT
BRACKETED_PATTERN = r"([^\[\]]+)\[([^\]]+)\]:" + AMOUNT


class LineShape(str, Enum):
    SIMPLE = "simple"
    BRACKETED = "bracketed"
    CODED = "coded"


_SHAPE_BY_GROUPS = {
    2: LineShape.SIMPLE,
    3: LineShape.BRACKETED,
    4: LineShape.CODED,
}


@dataclass(frozen=True)
class SimpleLine:
    service: str
    amount_text: str

    @property
    def details(self) -> str:
        return ""


@dataclass(frozen=True)
class BracketedLine:
    service: str
    detail: str
    amount_text: str

    @property
    def details(self) -> str:
        return self.detail


@dataclass(frozen=True)
class CodedLine:
    service: str
    detail: str
    code: str
    amount_text: str

    @property
    def details(self) -> str:
        return f"{self.detail} ({self.code})"


ParsedLine = Union[SimpleLine, BracketedLine, CodedLine]


@dataclass(frozen=True)
class Grammar:
    """A compiled line pattern and the shape of the lines it yields.

    Args:
        pattern: Regex source or compiled pattern with 2, 3 or 4 groups.
        detail_must_contain: Optional uppercase token. When set, bracketed
            and coded matches whose detail lacks it are skipped.
    """

    pattern: Pattern[str]
    detail_must_contain: str = ""
    shape: LineShape = field(init=False)

    def __post_init__(self) -> None:
        compiled = re.compile(self.pattern) if isinstance(self.pattern, str) else self.pattern
        shape = _SHAPE_BY_GROUPS.get(compiled.groups)
        if shape is None:
            raise ValueError(
                f"Grammar {compiled.pattern!r} has {compiled.groups} groups; expected 2, 3 or 4"
            )
        if self.detail_must_contain and shape == LineShape.SIMPLE:
            raise ValueError("detail_must_contain needs a bracketed or coded grammar")
        object.__setattr__(self, "pattern", compiled)
        object.__setattr__(self, "detail_must_contain", self.detail_must_contain.upper())
        object.__setattr__(self, "shape", shape)

    def scan(self, text: str) -> Iterator[ParsedLine]:
        """Yield a parsed line for every match in *text*, in order."""
        for match in self.pattern.finditer(text):
            line = self._to_line(match)
            if self.detail_must_contain and self.detail_must_contain not in line.details.upper():
                continue
            yield line

    def _to_line(self, match: re.Match[str]) -> ParsedLine:
        groups = [g.strip() for g in match.groups()]
        if self.shape == LineShape.SIMPLE:
            return SimpleLine(service=groups[0], amount_text=groups[1])
        if self.shape == LineShape.BRACKETED:
            return BracketedLine(service=groups[0], detail=groups[1], amount_text=groups[2])
        return CodedLine(
            service=groups[0], detail=groups[1], code=groups[2], amount_text=groups[3]
        )


def simple() -> Grammar:
    return Grammar(SIMPLE_PATTERN)


def bracketed(detail_must_contain: str = "") -> Grammar:
    return Grammar(BRACKETED_PATTERN, detail_must_contain=detail_must_contain)
