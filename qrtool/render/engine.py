"""
RU: Диспетчер рендеринга: один обработчик на каждый формат вывода.
EN: Render dispatch over the closed set of output formats.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Final, Union

from qrtool.model.enums import OutputFormat
from qrtool.model.request import RenderRequest
from qrtool.model.symbol import Symbol

from .raster import render_png
from .terminal import render_terminal
from .text import render_ascii, render_unicode
from .vector import render_pic, render_svg

logger = logging.getLogger(__name__)

__all__ = ["Output", "render"]

Output = Union[bytes, str]

_HANDLERS: Final[Dict[OutputFormat, Callable[[Symbol, RenderRequest], Output]]] = {
    OutputFormat.PNG: render_png,
    OutputFormat.SVG: render_svg,
    OutputFormat.PIC: render_pic,
    OutputFormat.ANSI: render_terminal,
    OutputFormat.ANSI256: render_terminal,
    OutputFormat.ANSI_TRUE_COLOR: render_terminal,
    OutputFormat.ASCII: render_ascii,
    OutputFormat.ASCII_INVERT: render_ascii,
    OutputFormat.UNICODE: render_unicode,
    OutputFormat.UNICODE_INVERT: render_unicode,
}


def render(symbol: Symbol, request: RenderRequest) -> Output:
    """
    Render ``symbol`` as described by ``request``.

    Returns:
        ``bytes`` for PNG, ``str`` for every other format.

    Example:
        >>> request = RenderOptions(output_format=OutputFormat.ASCII).resolve(symbol)
        >>> print(render(symbol, request))
    """
    logger.debug(
        "Rendering %dx%d symbol as %s", symbol.width, symbol.height, request.output_format.value
    )
    return _HANDLERS[request.output_format](symbol, request)
