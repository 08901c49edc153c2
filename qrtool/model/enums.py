"""
model/enums.py

(Краткое RU: Перечисления доменной модели: уровни коррекции, варианты и режимы
символа, форматы вывода и ввода.)

EN: Closed enumerations shared by the adapter, renderer and input negotiator.
Each output format carries the properties the renderer dispatches on, so adding
a format means adding a member here and a handler in ``qrtool.render.engine``.
NO rendering or I/O logic here!
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import PurePath
from typing import Final, Mapping, Optional

_logger: Final[logging.Logger] = logging.getLogger(__name__)


class EccLevel(str, Enum):
    """Error-correction strength tier (L ~7%, M ~15%, Q ~25%, H ~30%)."""

    L = "l"
    M = "m"
    Q = "q"
    H = "h"

    @property
    def letter(self) -> str:
        return self.name

    @classmethod
    def from_letter(cls, letter: str) -> "EccLevel":
        """Parse ``"M"``/``"m"``; raises ValueError for anything else."""
        return cls(letter.strip().lower())


class Variant(str, Enum):
    NORMAL = "normal"
    MICRO = "micro"


class Mode(str, Enum):
    NUMERIC = "numeric"
    ALPHANUMERIC = "alphanumeric"
    BYTE = "byte"
    KANJI = "kanji"


class VersionKind(str, Enum):
    NORMAL = "normal"
    MICRO = "micro"
    RECT_MICRO = "rect_micro"


class OutputFormat(str, Enum):
    PNG = "png"
    SVG = "svg"
    PIC = "pic"
    ANSI = "ansi"
    ANSI256 = "ansi256"
    ANSI_TRUE_COLOR = "ansi-true-color"
    ASCII = "ascii"
    ASCII_INVERT = "ascii-invert"
    UNICODE = "unicode"
    UNICODE_INVERT = "unicode-invert"

    @property
    def is_raster(self) -> bool:
        return self is OutputFormat.PNG

    @property
    def is_binary(self) -> bool:
        """True when the rendered output is bytes rather than text."""
        return self.is_raster

    @property
    def is_terminal(self) -> bool:
        return self in {OutputFormat.ANSI, OutputFormat.ANSI256, OutputFormat.ANSI_TRUE_COLOR}

    @property
    def is_text_art(self) -> bool:
        return self in {
            OutputFormat.ASCII,
            OutputFormat.ASCII_INVERT,
            OutputFormat.UNICODE,
            OutputFormat.UNICODE_INVERT,
        }

    @property
    def is_colorless(self) -> bool:
        """Formats that cannot carry --foreground/--background."""
        return self is OutputFormat.PIC or self.is_text_art

    @property
    def is_inverted(self) -> bool:
        return self in {OutputFormat.ASCII_INVERT, OutputFormat.UNICODE_INVERT}

    @property
    def default_module_size(self) -> int:
        """8 pixels/units for image formats, 1 character cell for text output."""
        return 1 if (self.is_text_art or self.is_terminal) else 8


class InputFormat(str, Enum):
    BMP = "bmp"
    DDS = "dds"
    GIF = "gif"
    ICO = "ico"
    JPEG = "jpeg"
    PNG = "png"
    PNM = "pnm"
    QOI = "qoi"
    SVG = "svg"
    TGA = "tga"
    TIFF = "tiff"
    WEBP = "webp"
    XBM = "xbm"

    @property
    def is_vector(self) -> bool:
        return self is InputFormat.SVG

    @property
    def pillow_format(self) -> Optional[str]:
        """Pillow plugin identifier, ``None`` for vector input."""
        return _PILLOW_FORMATS.get(self)

    @classmethod
    def from_path(cls, path: PurePath) -> Optional["InputFormat"]:
        """Select a format from the file extension, case-insensitively."""
        fmt = _EXTENSIONS.get(path.suffix.lower())
        if fmt is None:
            _logger.debug("Unrecognized extension %r for %s", path.suffix, path)
        return fmt


_PILLOW_FORMATS: Final[Mapping[InputFormat, str]] = {
    InputFormat.BMP: "BMP",
    InputFormat.DDS: "DDS",
    InputFormat.GIF: "GIF",
    InputFormat.ICO: "ICO",
    InputFormat.JPEG: "JPEG",
    InputFormat.PNG: "PNG",
    InputFormat.PNM: "PPM",
    InputFormat.QOI: "QOI",
    InputFormat.TGA: "TGA",
    InputFormat.TIFF: "TIFF",
    InputFormat.WEBP: "WEBP",
    InputFormat.XBM: "XBM",
}

_EXTENSIONS: Final[Mapping[str, InputFormat]] = {
    ".bmp": InputFormat.BMP,
    ".dds": InputFormat.DDS,
    ".gif": InputFormat.GIF,
    ".ico": InputFormat.ICO,
    ".jpg": InputFormat.JPEG,
    ".jpeg": InputFormat.JPEG,
    ".png": InputFormat.PNG,
    ".pbm": InputFormat.PNM,
    ".pgm": InputFormat.PNM,
    ".ppm": InputFormat.PNM,
    ".pnm": InputFormat.PNM,
    ".qoi": InputFormat.QOI,
    ".svg": InputFormat.SVG,
    ".svgz": InputFormat.SVG,
    ".tga": InputFormat.TGA,
    ".tif": InputFormat.TIFF,
    ".tiff": InputFormat.TIFF,
    ".webp": InputFormat.WEBP,
    ".xbm": InputFormat.XBM,
}
