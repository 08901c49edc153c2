"""
RU: Текстовая графика: ASCII ("##" / "  ") и плотные полублоки Unicode (1x2).
EN: Plain text renderers. Both are monochrome; colors are rejected earlier by
request validation.
"""

from __future__ import annotations

from typing import Final, Iterator, List, Tuple

from qrtool.model.request import RenderRequest
from qrtool.model.symbol import ModuleRow, Symbol

__all__ = ["scaled_rows", "render_ascii", "render_unicode"]

ASCII_DARK: Final[str] = "##"
ASCII_LIGHT: Final[str] = "  "

# Индекс: (верхний << 1) | нижний, где 1 = "чернила"
UNICODE_CODEPAGE: Final[Tuple[str, str, str, str]] = (" ", "▄", "▀", "█")


def scaled_rows(symbol: Symbol, margin: int, module_size: int) -> Iterator[ModuleRow]:
    """Rows with quiet zone, each module repeated ``module_size`` times both ways."""
    for row in symbol.padded_rows(margin):
        scaled = tuple(cell for cell in row for _ in range(module_size))
        for _ in range(module_size):
            yield scaled


def render_ascii(symbol: Symbol, request: RenderRequest) -> str:
    dark, light = ASCII_DARK, ASCII_LIGHT
    if request.invert:
        dark, light = light, dark
    lines = [
        "".join(dark if cell else light for cell in row)
        for row in scaled_rows(symbol, request.margin, request.module_size)
    ]
    return "\n".join(lines) + "\n"


def render_unicode(symbol: Symbol, request: RenderRequest) -> str:
    """
    Pack two module rows into one text line with half-block glyphs.

    The plain ``unicode`` format draws the *light* modules with ink, which looks
    right on a dark terminal background; ``unicode-invert`` draws the dark
    modules. An odd final row is completed with a light module row.
    """
    # Светлые модули как "чернила" в обычном режиме: наблюдаемое поведение
    ink_is_dark = request.invert
    rows: List[ModuleRow] = list(scaled_rows(symbol, request.margin, request.module_size))
    if len(rows) % 2:
        rows.append((False,) * len(rows[0]))

    lines = []
    for top, bottom in zip(rows[0::2], rows[1::2]):
        chars = []
        for upper, lower in zip(top, bottom):
            index = (int(upper == ink_is_dark) << 1) | int(lower == ink_is_dark)
            chars.append(UNICODE_CODEPAGE[index])
        lines.append("".join(chars))
    return "\n".join(lines) + "\n"
