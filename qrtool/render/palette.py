"""
RU: Понижение цвета для терминалов: 16 базовых цветов и палитра xterm-256.
EN: Terminal color down-sampling: nearest basic/bright ANSI color and nearest
xterm-256 palette entry, both by Euclidean distance in RGB space.

Only concrete palette indices are ever selected; the terminal's "default"
color and truecolor pseudo-entries are not candidates. Alpha is ignored.
"""

from __future__ import annotations

from typing import Final, List, Tuple

from qrtool.color.color import Color

__all__ = [
    "ANSI16_PALETTE",
    "XTERM256_PALETTE",
    "nearest_ansi16",
    "nearest_xterm256",
    "ansi16_background",
    "xterm256_background",
    "truecolor_background",
]

RGB = Tuple[int, int, int]

# Классическая VGA-палитра: 0-7 базовые, 8-15 яркие
ANSI16_PALETTE: Final[Tuple[RGB, ...]] = (
    (0, 0, 0),
    (170, 0, 0),
    (0, 170, 0),
    (170, 85, 0),
    (0, 0, 170),
    (170, 0, 170),
    (0, 170, 170),
    (170, 170, 170),
    (85, 85, 85),
    (255, 85, 85),
    (85, 255, 85),
    (255, 255, 85),
    (85, 85, 255),
    (255, 85, 255),
    (85, 255, 255),
    (255, 255, 255),
)

_CUBE_LEVELS: Final[Tuple[int, ...]] = (0, 95, 135, 175, 215, 255)


def _build_xterm256() -> Tuple[RGB, ...]:
    palette: List[RGB] = list(ANSI16_PALETTE)
    for r in _CUBE_LEVELS:
        for g in _CUBE_LEVELS:
            for b in _CUBE_LEVELS:
                palette.append((r, g, b))
    for i in range(24):
        level = 8 + 10 * i
        palette.append((level, level, level))
    return tuple(palette)


XTERM256_PALETTE: Final[Tuple[RGB, ...]] = _build_xterm256()

# 0-15 переопределяются темой терминала, поэтому ищем только среди 16-255
_XTERM256_SEARCH_START: Final[int] = 16


def _distance(a: RGB, b: RGB) -> int:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2


def _nearest(color: Color, palette: Tuple[RGB, ...], start: int = 0) -> int:
    rgb = color.rgb
    # min() keeps the first (lowest) index on ties
    return min(range(start, len(palette)), key=lambda i: _distance(rgb, palette[i]))


def nearest_ansi16(color: Color) -> int:
    """Index 0..15 of the closest basic/bright ANSI color."""
    return _nearest(color, ANSI16_PALETTE)


def nearest_xterm256(color: Color) -> int:
    """Index 16..255 of the closest xterm-256 cube or grayscale entry."""
    return _nearest(color, XTERM256_PALETTE, _XTERM256_SEARCH_START)


def ansi16_background(color: Color) -> str:
    index = nearest_ansi16(color)
    code = 40 + index if index < 8 else 100 + index - 8
    return f"\x1b[{code}m"


def xterm256_background(color: Color) -> str:
    return f"\x1b[48;5;{nearest_xterm256(color)}m"


def truecolor_background(color: Color) -> str:
    return f"\x1b[48;2;{color.red};{color.green};{color.blue}m"
