"""
RU: Растеризация SVG (в т.ч. сжатого gzip) через cairosvg перед поиском символов.
EN: Rasterizes SVG documents at their intrinsic size with cairosvg; the result
goes through the same grid-detection path as native raster input.

Requirements: cairosvg (with the system cairo library), Pillow
"""

from __future__ import annotations

import gzip
import io
import logging
import zlib
from typing import Final

from PIL import Image

from qrtool.errors import VectorParseError

logger = logging.getLogger(__name__)

__all__ = ["GZIP_MAGIC", "decompress_svg", "rasterize_svg"]

GZIP_MAGIC: Final[bytes] = b"\x1f\x8b"


def decompress_svg(data: bytes, source: str) -> bytes:
    """Return the plain document, inflating ``.svgz`` content."""
    if not data.startswith(GZIP_MAGIC):
        return data
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise VectorParseError(source, f"corrupt gzip stream: {e}") from e


def rasterize_svg(data: bytes, source: str) -> Image.Image:
    """
    Paint an SVG document onto an off-screen canvas.

    Args:
        data: SVG or gzip-compressed SVG bytes.
        source: Input name for error messages.

    Raises:
        VectorParseError: Empty, malformed or zero-size document.
    """
    import cairosvg

    document = decompress_svg(data, source)
    if not document.strip():
        raise VectorParseError(source, "the document is empty")

    try:
        png = cairosvg.svg2png(bytestring=document)
    except (SyntaxError, ValueError, ZeroDivisionError) as e:
        # xml.etree.ElementTree.ParseError наследуется от SyntaxError
        raise VectorParseError(source, str(e) or type(e).__name__) from e
    if not png:
        raise VectorParseError(source, "the document has no drawable size")

    image = Image.open(io.BytesIO(png))
    image.load()
    if image.width == 0 or image.height == 0:
        raise VectorParseError(source, "the document has zero size")
    logger.debug("Rasterized SVG %s to %dx%d", source, image.width, image.height)
    return image
