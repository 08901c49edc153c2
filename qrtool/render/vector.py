"""
RU: Векторные форматы: SVG и groff PIC.
EN: Vector markup renderers: one background rectangle covering the canvas plus
one rectangle per dark module. PIC output is monochrome.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple

from qrtool.model.request import RenderRequest
from qrtool.model.symbol import Symbol

__all__ = ["render_svg", "render_pic"]


def _dark_modules(symbol: Symbol, request: RenderRequest) -> Iterator[Tuple[int, int]]:
    """Canvas coordinates of the top-left corner of every dark module."""
    size = request.module_size
    for y, row in enumerate(symbol.modules):
        for x, dark in enumerate(row):
            if dark:
                yield (x + request.margin) * size, (y + request.margin) * size


def _canvas(symbol: Symbol, request: RenderRequest) -> Tuple[int, int]:
    width = (symbol.width + 2 * request.margin) * request.module_size
    height = (symbol.height + 2 * request.margin) * request.module_size
    return width, height


def render_svg(symbol: Symbol, request: RenderRequest) -> str:
    """
    Render SVG markup.

    Example output (abridged)::

        <?xml version="1.0" encoding="UTF-8"?>
        <svg xmlns="http://www.w3.org/2000/svg" version="1.1" width="232" height="232" ...>
        <rect x="0" y="0" width="232" height="232" fill="#ffffff"/>
        <rect x="32" y="32" width="8" height="8" fill="#000000"/>
        ...
        </svg>
    """
    width, height = _canvas(symbol, request)
    size = request.module_size
    foreground = request.foreground.to_hex()
    lines: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" version="1.1" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" shape-rendering="crispEdges">',
        f'<rect x="0" y="0" width="{width}" height="{height}" fill="{request.background.to_hex()}"/>',
    ]
    lines.extend(
        f'<rect x="{x}" y="{y}" width="{size}" height="{size}" fill="{foreground}"/>'
        for x, y in _dark_modules(symbol, request)
    )
    lines.append("</svg>")
    return "\n".join(lines) + "\n"


def render_pic(symbol: Symbol, request: RenderRequest) -> str:
    """Render groff PIC markup; ``p(x,y,w,h)`` draws one filled module."""
    width, height = _canvas(symbol, request)
    size = request.module_size
    lines: List[str] = [
        f"maxpswid={width};maxpsht={height};movewid=0;moveht=1;boxwid=1;boxht=1",
        "define p { box wid $3 ht $4 fill 1 thickness 0.1 with .nw at $1,-$2 }",
        f"box wid {width} ht {height} fill 0 thickness 0.1 with .nw at 0,0",
    ]
    lines.extend(f"p({x},{y},{size},{size})" for x, y in _dark_modules(symbol, request))
    return "\n".join(lines) + "\n"
