"""
render

Рендеринг символа: PNG (Pillow + oxipng), SVG, PIC, ANSI (16/256/24 бит),
ASCII и Unicode.

Public API:
    - render(symbol, request) -> bytes | str
    - optimize_png(data, optimization) -> bytes
"""

from qrtool.render.engine import Output, render
from qrtool.render.raster import optimize_png

__all__ = ["Output", "render", "optimize_png"]
