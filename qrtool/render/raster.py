"""
RU: Растровый вывод PNG через Pillow и необязательная оптимизация через oxipng.
EN: PNG rendering with Pillow and optional lossless recompression with oxipng.

Channel layout collapses to the smallest mode that represents the colors:
``L`` for the default black-on-white pair, ``RGB`` for any other opaque pair,
``RGBA`` when either color is translucent.

Requirements: Pillow, pyoxipng
"""

from __future__ import annotations

import io
import logging
from typing import Final, List, Tuple, Union

import oxipng
from PIL import Image

from qrtool.errors import ImageEncodeError
from qrtool.model.request import PngOptimization, RenderRequest
from qrtool.model.symbol import Symbol

logger = logging.getLogger(__name__)

__all__ = ["render_image", "render_png", "optimize_png", "image_mode"]

Pixel = Union[int, Tuple[int, ...]]

MAX_CANVAS_SIDE: Final[int] = 65535


def image_mode(request: RenderRequest) -> str:
    if request.is_monochrome:
        return "L"
    if request.foreground.is_opaque and request.background.is_opaque:
        return "RGB"
    return "RGBA"


def _pixel(request: RenderRequest, mode: str, dark: bool) -> Pixel:
    color = request.foreground if dark else request.background
    if mode == "L":
        return 0 if dark else 255
    if mode == "RGB":
        return color.rgb
    return color.rgba


def render_image(symbol: Symbol, request: RenderRequest) -> Image.Image:
    """
    Paint the symbol with quiet zone at ``module_size`` pixels per module.

    Raises:
        ImageEncodeError: The canvas exceeds PNG dimension limits.
    """
    mode = image_mode(request)
    columns = symbol.width + 2 * request.margin
    rows = symbol.height + 2 * request.margin
    width, height = columns * request.module_size, rows * request.module_size
    if width > MAX_CANVAS_SIDE or height > MAX_CANVAS_SIDE:
        raise ImageEncodeError(
            f"image of {width}x{height} pixels is too large", context={"limit": MAX_CANVAS_SIDE}
        )

    dark = _pixel(request, mode, True)
    light = _pixel(request, mode, False)
    pixels: List[Pixel] = [
        dark if cell else light for row in symbol.padded_rows(request.margin) for cell in row
    ]
    # 1 пиксель на модуль, затем масштабирование без сглаживания
    image = Image.new(mode, (columns, rows))
    image.putdata(pixels)
    if request.module_size != 1:
        image = image.resize((width, height), Image.Resampling.NEAREST)
    return image


def render_png(symbol: Symbol, request: RenderRequest) -> bytes:
    image = render_image(symbol, request)
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise ImageEncodeError(f"could not encode the PNG image: {e}") from e
    data = buffer.getvalue()
    logger.debug("PNG %dx%d %s: %d bytes", image.width, image.height, image.mode, len(data))

    if request.optimization is not None:
        data = optimize_png(data, request.optimization)
    return data


def optimize_png(data: bytes, optimization: PngOptimization) -> bytes:
    """
    Losslessly recompress a PNG stream.

    Level ``n`` tries the oxipng presets ``0..n`` and keeps the smallest stream,
    so a higher level never produces a larger file. Ties keep the earlier
    candidate; the unoptimized input is the first candidate.

    Raises:
        ImageEncodeError: oxipng rejected the stream.
    """
    kwargs = {}
    if optimization.zopfli_iterations is not None:
        kwargs["deflate"] = oxipng.Deflaters.zopfli(optimization.zopfli_iterations)

    best = data
    for preset in range(optimization.level + 1):
        try:
            candidate = oxipng.optimize_from_memory(data, level=preset, **kwargs)
        except oxipng.PngError as e:
            raise ImageEncodeError(f"could not optimize the PNG image: {e}") from e
        logger.debug("oxipng preset %d: %d bytes", preset, len(candidate))
        if len(candidate) < len(best):
            best = candidate
    logger.info(
        "Optimized PNG from %d to %d bytes (level %d)", len(data), len(best), optimization.level
    )
    return best
