"""
RU: Двухфазное построение запроса рендеринга: сырые опции CLI -> итоговый запрос.
EN: Two-phase render request: raw options are collected first, then resolved
against the encoded symbol into an immutable :class:`RenderRequest`.

Default resolution depends on values produced earlier in the pipeline (the
symbol variant decides the quiet zone, the output format decides the module
size), so it happens in one place, :meth:`RenderOptions.resolve`, after the
symbol exists and before any renderer runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Optional, Union

from qrtool.color.color import BLACK, WHITE, Color
from qrtool.errors import (
    ColorsNotSupportedError,
    OptimizationNotSupportedError,
    RenderValidationError,
)

from .enums import OutputFormat
from .symbol import Symbol

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_MARGIN",
    "MICRO_MARGIN",
    "MAX_OPTIMIZATION_LEVEL",
    "DEFAULT_ZOPFLI_ITERATIONS",
    "ZOPFLI_IMPLIED_LEVEL",
    "PngOptimization",
    "RenderOptions",
    "RenderRequest",
    "parse_optimization_level",
]

DEFAULT_MARGIN: Final[int] = 4
MICRO_MARGIN: Final[int] = 2

MAX_OPTIMIZATION_LEVEL: Final[int] = 6
DEFAULT_ZOPFLI_ITERATIONS: Final[int] = 15
# Zopfli без явного уровня означает уровень 2
ZOPFLI_IMPLIED_LEVEL: Final[int] = 2


def parse_optimization_level(value: Union[str, int]) -> int:
    """
    Parse an optimization level: ``0``..``6`` or ``"max"``.

    Raises:
        ValueError: For anything else (argparse turns it into a usage error).
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "max":
            return MAX_OPTIMIZATION_LEVEL
        value = int(text)
    if not 0 <= value <= MAX_OPTIMIZATION_LEVEL:
        raise ValueError(f"optimization level must be 0..{MAX_OPTIMIZATION_LEVEL} or 'max'")
    return value


@dataclass(frozen=True)
class PngOptimization:
    """Lossless PNG recompression settings."""

    level: int
    zopfli_iterations: Optional[int] = None


@dataclass(frozen=True)
class RenderRequest:
    """
    Fully resolved render request; consumed once by the render engine.

    Attributes:
        output_format: Selected output encoding.
        margin: Quiet zone width in modules.
        module_size: Pixels (or character cells) per module.
        foreground: Color of dark modules.
        background: Color of light modules and the quiet zone.
        invert: Swap the dark/light glyph mapping (``*-invert`` formats).
        optimization: PNG recompression settings, ``None`` to skip.
    """

    output_format: OutputFormat
    margin: int
    module_size: int
    foreground: Color = BLACK
    background: Color = WHITE
    invert: bool = False
    optimization: Optional[PngOptimization] = None

    @property
    def is_monochrome(self) -> bool:
        return self.foreground == BLACK and self.background == WHITE


@dataclass(frozen=True)
class RenderOptions:
    """
    Raw render options as collected from the command line; ``None`` means unset.

    Example:
        >>> options = RenderOptions(output_format=OutputFormat.ASCII)
        >>> request = options.resolve(symbol)
        >>> request.module_size, request.margin
        (1, 4)
    """

    output_format: OutputFormat = OutputFormat.PNG
    margin: Optional[int] = None
    module_size: Optional[int] = None
    foreground: Optional[Color] = None
    background: Optional[Color] = None
    optimize_level: Optional[int] = None
    zopfli_iterations: Optional[int] = None

    def validate(self) -> None:
        """
        Reject contradictory options before any rendering happens.

        Raises:
            ColorsNotSupportedError: Colors given for a colorless format.
            OptimizationNotSupportedError: PNG optimization for a non-PNG format.
            RenderValidationError: Negative margin or non-positive module size.
        """
        fmt = self.output_format
        if fmt.is_colorless:
            custom_fg = self.foreground is not None and self.foreground != BLACK
            custom_bg = self.background is not None and self.background != WHITE
            if custom_fg or custom_bg:
                raise ColorsNotSupportedError(fmt.value)
        wants_optimization = self.optimize_level is not None or self.zopfli_iterations is not None
        if wants_optimization and not fmt.is_raster:
            raise OptimizationNotSupportedError(fmt.value)
        if self.margin is not None and self.margin < 0:
            raise RenderValidationError(
                f"margin must not be negative, got {self.margin}", context={"margin": self.margin}
            )
        if self.module_size is not None and self.module_size < 1:
            raise RenderValidationError(
                f"module size must be positive, got {self.module_size}",
                context={"size": self.module_size},
            )
        if self.zopfli_iterations is not None and self.zopfli_iterations < 1:
            raise RenderValidationError(
                f"zopfli iterations must be positive, got {self.zopfli_iterations}",
                context={"iterations": self.zopfli_iterations},
            )

    def resolve(self, symbol: Symbol) -> RenderRequest:
        """
        Validate and fill layered defaults for ``symbol``.

        Defaults: module size 8 for png/svg/pic and 1 for text formats; margin 4
        for normal symbols and 2 for Micro/rMQR symbols.
        """
        self.validate()
        fmt = self.output_format

        margin = self.margin
        if margin is None:
            margin = MICRO_MARGIN if symbol.version.is_micro else DEFAULT_MARGIN
        module_size = self.module_size if self.module_size is not None else fmt.default_module_size

        optimization: Optional[PngOptimization] = None
        if self.optimize_level is not None or self.zopfli_iterations is not None:
            level = self.optimize_level
            if level is None:
                level = ZOPFLI_IMPLIED_LEVEL
            optimization = PngOptimization(level=level, zopfli_iterations=self.zopfli_iterations)

        request = RenderRequest(
            output_format=fmt,
            margin=margin,
            module_size=module_size,
            foreground=self.foreground if self.foreground is not None else BLACK,
            background=self.background if self.background is not None else WHITE,
            invert=fmt.is_inverted,
            optimization=optimization,
        )
        logger.debug("Resolved render request %s", request)
        return request
