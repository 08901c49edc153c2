"""
RU: Определение формата входного изображения и его декодирование в 8-битный luma.
EN: Input format negotiation for the decode side.

Resolution order, first match wins:

1. explicit ``--type`` flag, used verbatim;
2. the file extension of a named file (``.svgz`` selects SVG);
3. content sniffing of the buffered bytes (magic numbers for raster formats,
   XML/gzip sniffing for SVG);
4. otherwise ``FormatUndeterminedError``.

Raster formats are decoded by Pillow restricted to the negotiated plugin; SVG
is rasterized by cairosvg. Either way the result is an 8-bit luma image for
grid detection.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Final, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from qrtool.app_context import Capabilities, get_app_context
from qrtool.errors import (
    ExplicitFormatMismatchError,
    FormatUndeterminedError,
    ImageDecodeError,
    ImageLimitsError,
    ImageUnsupportedError,
    QrToolError,
)
from qrtool.model.enums import InputFormat

from .input_source import InputDescriptor, SourceKind
from .svg import GZIP_MAGIC, decompress_svg, rasterize_svg

logger = logging.getLogger(__name__)

__all__ = ["sniff", "negotiate", "decode_image", "resolve"]

# Сигнатуры растровых форматов: (смещение, байты)
_MAGIC: Final[Tuple[Tuple[int, bytes, InputFormat], ...]] = (
    (0, b"\x89PNG\r\n\x1a\n", InputFormat.PNG),
    (0, b"\xff\xd8\xff", InputFormat.JPEG),
    (0, b"GIF87a", InputFormat.GIF),
    (0, b"GIF89a", InputFormat.GIF),
    (0, b"BM", InputFormat.BMP),
    (0, b"\x00\x00\x01\x00", InputFormat.ICO),
    (0, b"II*\x00", InputFormat.TIFF),
    (0, b"MM\x00*", InputFormat.TIFF),
    (8, b"WEBP", InputFormat.WEBP),
    (0, b"DDS ", InputFormat.DDS),
    (0, b"qoif", InputFormat.QOI),
    (0, b"#define", InputFormat.XBM),
)

_SVG_SNIFF_WINDOW: Final[int] = 4096


def _looks_like_svg(data: bytes) -> bool:
    head = data[:_SVG_SNIFF_WINDOW].lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    if head.startswith(b"<svg"):
        return True
    if head.startswith(b"<?xml") or head.startswith(b"<!doctype") or head.startswith(b"<!--"):
        return b"<svg" in head
    return False


def sniff(data: bytes) -> Optional[InputFormat]:
    """
    Guess the format from content alone.

    Examples:
        >>> sniff(b"\\x89PNG\\r\\n\\x1a\\n...")
        <InputFormat.PNG: 'png'>
        >>> sniff(b"plain text") is None
        True
    """
    for offset, magic, fmt in _MAGIC:
        if data[offset : offset + len(magic)] == magic:
            if fmt is InputFormat.WEBP and not data.startswith(b"RIFF"):
                continue
            return fmt
    if len(data) >= 3 and data[:1] == b"P" and data[1:2] in b"123456" and data[2:3].isspace():
        return InputFormat.PNM
    if data.startswith(GZIP_MAGIC):
        try:
            inflated = decompress_svg(data, "<sniff>")
        except QrToolError:
            return None
        return InputFormat.SVG if _looks_like_svg(inflated) else None
    if _looks_like_svg(data):
        return InputFormat.SVG
    return None


def negotiate(
    descriptor: InputDescriptor, data: bytes, explicit: Optional[InputFormat] = None
) -> InputFormat:
    """
    Pick the input format: flag, then extension, then content.

    Raises:
        FormatUndeterminedError: None of the three identified a format.
    """
    if explicit is not None:
        logger.debug("Input format %s from --type", explicit.value)
        return explicit
    if descriptor.kind is SourceKind.FILE and descriptor.path is not None:
        fmt = InputFormat.from_path(descriptor.path)
        if fmt is not None:
            logger.debug("Input format %s from extension of %s", fmt.value, descriptor.name)
            return fmt
    fmt = sniff(data)
    if fmt is None:
        raise FormatUndeterminedError(descriptor.name)
    logger.debug("Input format %s sniffed from content of %s", fmt.value, descriptor.name)
    return fmt


def _to_luma(image: Image.Image) -> Image.Image:
    """Flatten transparency onto white and convert to 8-bit grayscale."""
    if image.mode in ("RGBA", "LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        canvas = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        canvas.alpha_composite(rgba)
        image = canvas
    return image.convert("L")


def decode_image(
    data: bytes, fmt: InputFormat, source: str, explicit: bool = False
) -> Image.Image:
    """
    Decode raster bytes with the Pillow plugin for ``fmt`` only.

    Raises:
        ExplicitFormatMismatchError: ``fmt`` came from ``--type`` and the content
            is not readable in that format.
        ImageLimitsError: Pillow's decompression-bomb limit was exceeded.
        ImageUnsupportedError: The format variant is not implemented by Pillow.
        ImageDecodeError: Corrupt or truncated stream.
    """
    plugin = fmt.pillow_format
    try:
        image = Image.open(io.BytesIO(data), formats=[plugin])
        image.load()
    except Image.DecompressionBombError as e:
        raise ImageLimitsError(str(e), context={"input": source}) from e
    except NotImplementedError as e:
        if explicit:
            raise ExplicitFormatMismatchError(fmt.value, source, str(e) or "unsupported variant") from e
        raise ImageUnsupportedError(
            f"unsupported {fmt.value} variant: {e}", context={"input": source}
        ) from e
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        if explicit:
            raise ExplicitFormatMismatchError(fmt.value, source, str(e)) from e
        raise ImageDecodeError(
            f"could not decode the {fmt.value} image: {e}", context={"input": source}
        ) from e
    logger.debug("Decoded %s image %dx%d (%s)", fmt.value, image.width, image.height, image.mode)
    return image


def resolve(
    descriptor: InputDescriptor,
    explicit_format: Optional[InputFormat] = None,
    *,
    capabilities: Optional[Capabilities] = None,
    stdin: Optional[BinaryIO] = None,
) -> Image.Image:
    """
    Read, identify and decode an input into an 8-bit luma raster.

    Args:
        descriptor: File, stdin or literal source.
        explicit_format: Format from ``--type``; wins over everything else.
        capabilities: Capability set; defaults to the application context.
        stdin: Replacement for ``sys.stdin.buffer``.

    Raises:
        IoError: Reading the source failed.
        FormatNegotiationError: No format, or an unavailable one.
        VectorParseError, ImageError: The content could not be decoded.
    """
    data = descriptor.read_all(stdin)
    fmt = negotiate(descriptor, data, explicit_format)
    caps = capabilities or get_app_context().capabilities
    caps.require(fmt)
    descriptor = descriptor.with_format(fmt)

    if fmt.is_vector:
        image = rasterize_svg(data, descriptor.name)
    else:
        image = decode_image(data, fmt, descriptor.name, explicit=explicit_format is not None)
    return _to_luma(image)
