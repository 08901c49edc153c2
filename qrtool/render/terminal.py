"""
RU: Вывод в терминал с ANSI-последовательностями фона (16, 256 и 24-битные цвета).
EN: Terminal renderers. Every module is a two-space cell preceded by exactly one
SGR background escape; every row ends with a reset and a newline.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Final

from qrtool.color.color import Color
from qrtool.model.enums import OutputFormat
from qrtool.model.request import RenderRequest
from qrtool.model.symbol import Symbol

from . import palette
from .text import scaled_rows

logger = logging.getLogger(__name__)

__all__ = ["render_terminal"]

CELL: Final[str] = "  "
RESET: Final[str] = "\x1b[0m"

_ESCAPES: Final[Dict[OutputFormat, Callable[[Color], str]]] = {
    OutputFormat.ANSI: palette.ansi16_background,
    OutputFormat.ANSI256: palette.xterm256_background,
    OutputFormat.ANSI_TRUE_COLOR: palette.truecolor_background,
}


def render_terminal(symbol: Symbol, request: RenderRequest) -> str:
    escape = _ESCAPES[request.output_format]
    dark_cell = escape(request.foreground) + CELL
    light_cell = escape(request.background) + CELL
    logger.debug(
        "Terminal cells: dark=%r light=%r", dark_cell, light_cell
    )

    lines = []
    for row in scaled_rows(symbol, request.margin, request.module_size):
        cells = "".join(dark_cell if cell else light_cell for cell in row)
        lines.append(cells + RESET + "\n")
    return "".join(lines)
