"""
RU: Разбор цветовых выражений в каноническое 8-битное RGBA.
EN: Parses color expressions into canonical 8-bit RGBA.

Grammars are tried in order:

1. Hex ``RGB``, ``RGBA``, ``RRGGBB``, ``RRGGBBAA`` with or without ``#``.
2. Named CSS keywords (Pillow's ``ImageColor`` table) and ``transparent``.
3. Functions ``rgb()``/``rgba()``, ``hsl()``/``hsla()``, ``hwb()``, ``oklab()``,
   ``oklch()`` in comma-separated legacy or space-separated modern syntax with an
   optional ``/ alpha`` suffix.

Functional forms are converted to floating-point sRGB and then quantized with
clamping, so conversions are lossy: two different inputs can map to the same
:class:`Color`, and out-of-gamut oklab/oklch values are clipped per channel.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, Final, List, Optional, Tuple, Type

from PIL import ImageColor

from qrtool.errors import (
    ColorParseError,
    InvalidColorFunctionError,
    InvalidHexError,
    InvalidHslError,
    InvalidHwbError,
    InvalidOklabError,
    InvalidOklchError,
    InvalidRgbError,
    UnknownColorFormatError,
)

from . import spaces

logger = logging.getLogger(__name__)

__all__ = ["Color", "BLACK", "WHITE", "parse_color"]


@dataclass(frozen=True)
class Color:
    """
    Fully resolved 8-bit RGBA color; alpha defaults to opaque.

    Examples:
        >>> Color(18, 58, 188).to_hex()
        '#123abc'
        >>> Color(18, 52, 171, 205).to_hex()
        '#1234abcd'
    """

    red: int
    green: int
    blue: int
    alpha: int = 255

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue", "alpha"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= 255:
                raise ValueError(f"{name} must be an integer in 0..255, got {value!r}")

    @property
    def is_opaque(self) -> bool:
        return self.alpha == 255

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self.red, self.green, self.blue

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        return self.red, self.green, self.blue, self.alpha

    def to_hex(self) -> str:
        """Lowercase ``#rrggbb``, or ``#rrggbbaa`` when not fully opaque."""
        text = f"#{self.red:02x}{self.green:02x}{self.blue:02x}"
        if not self.is_opaque:
            text += f"{self.alpha:02x}"
        return text

    def __str__(self) -> str:
        return self.to_hex()


BLACK: Final[Color] = Color(0, 0, 0)
WHITE: Final[Color] = Color(255, 255, 255)

_HEX_RE: Final = re.compile(r"#?(?P<digits>[0-9a-fA-F]+)")
_FUNCTION_RE: Final = re.compile(r"(?P<name>[a-zA-Z][a-zA-Z0-9-]*)\s*\((?P<args>.*)\)", re.DOTALL)
_NUMBER_RE: Final = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def parse_color(expression: str) -> Color:
    """
    Parse a color expression.

    Args:
        expression: Hex, named or functional color.

    Returns:
        The canonical :class:`Color`.

    Raises:
        UnknownColorFormatError: No grammar matches.
        InvalidHexError, InvalidRgbError, ...: The expression has the shape of a
            grammar but malformed or out-of-range components.

    Example:
        >>> parse_color("#abc") == parse_color("aabbcc")
        True
        >>> parse_color("hsl(0 100% 50% / 50%)").to_hex()
        '#ff000080'
    """
    text = expression.strip()

    color = _parse_hex(expression, text)
    if color is not None:
        return color

    color = _parse_named(text)
    if color is not None:
        return color

    match = _FUNCTION_RE.fullmatch(text)
    if match is None:
        logger.debug("Color expression %r matches no grammar", expression)
        raise UnknownColorFormatError(expression)

    name = match.group("name").lower()
    handler = _FUNCTIONS.get(name)
    if handler is None:
        raise InvalidColorFunctionError(expression, f"unknown function {name!r}")
    return handler(expression, match.group("args"))


# ==============================================================================
# HEX / NAMED
# ==============================================================================


def _parse_hex(expression: str, text: str) -> Optional[Color]:
    match = _HEX_RE.fullmatch(text)
    if match is None:
        # "#" commits to the hex grammar
        if text.startswith("#"):
            raise InvalidHexError(expression)
        return None
    digits = match.group("digits")
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    elif len(digits) not in (6, 8):
        if text.startswith("#"):
            raise InvalidHexError(expression, f"expected 3, 4, 6 or 8 digits, got {len(digits)}")
        return None
    channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
    return Color(*channels)


def _parse_named(text: str) -> Optional[Color]:
    name = text.lower()
    if name == "transparent":
        return Color(0, 0, 0, 0)
    if name not in ImageColor.colormap:
        return None
    red, green, blue = ImageColor.getrgb(name)[:3]
    return Color(red, green, blue)


# ==============================================================================
# FUNCTIONAL NOTATION
# ==============================================================================


def _split_arguments(
    expression: str, args: str, error: Type[ColorParseError]
) -> Tuple[List[str], Optional[str]]:
    """Split function arguments into components and an optional alpha token."""
    args = args.strip()
    if "/" in args:
        main, _, alpha = args.partition("/")
        if "," in main or "/" in alpha:
            raise error(expression, "cannot mix commas with '/ alpha'")
        components = main.split()
        alpha_token = alpha.strip()
        if not alpha_token or len(alpha_token.split()) != 1:
            raise error(expression, "malformed alpha")
        if len(components) != 3:
            raise error(expression, f"expected 3 components, got {len(components)}")
        return components, alpha_token
    if "," in args:
        components = [part.strip() for part in args.split(",")]
        if any(not part for part in components):
            raise error(expression, "empty component")
    else:
        components = args.split()
    if len(components) == 4:
        return components[:3], components[3]
    if len(components) != 3:
        raise error(expression, f"expected 3 components, got {len(components)}")
    return components, None


def _number(expression: str, token: str, error: Type[ColorParseError]) -> Tuple[float, bool]:
    """Return ``(value, is_percentage)`` for a numeric token."""
    is_percentage = token.endswith("%")
    body = token[:-1] if is_percentage else token
    if not _NUMBER_RE.fullmatch(body):
        raise error(expression, f"malformed component {token!r}")
    value = float(body)
    if not math.isfinite(value):
        raise error(expression, f"non-finite component {token!r}")
    return value, is_percentage


def _fraction(
    expression: str,
    token: str,
    error: Type[ColorParseError],
    *,
    scale: float,
) -> float:
    """Percentage or plain number in ``[0, scale]``, normalized to ``[0, 1]``."""
    value, is_percentage = _number(expression, token, error)
    fraction = value / 100 if is_percentage else value / scale
    if not 0.0 <= fraction <= 1.0:
        raise error(expression, f"component {token!r} out of range")
    return fraction


def _hue(expression: str, token: str, error: Type[ColorParseError]) -> float:
    for unit, factor in (("deg", 1.0), ("grad", 0.9), ("rad", 180 / math.pi), ("turn", 360.0)):
        if token.lower().endswith(unit):
            value, is_percentage = _number(expression, token[: -len(unit)], error)
            if is_percentage:
                break
            return value * factor
    else:
        value, is_percentage = _number(expression, token, error)
        if not is_percentage:
            return value
    raise error(expression, f"malformed hue {token!r}")


def _alpha(expression: str, token: Optional[str], error: Type[ColorParseError]) -> int:
    if token is None:
        return 255
    return spaces.to_channel(_fraction(expression, token, error, scale=1.0))


def _rgb(expression: str, args: str) -> Color:
    components, alpha = _split_arguments(expression, args, InvalidRgbError)
    channels = [
        spaces.to_channel(_fraction(expression, token, InvalidRgbError, scale=255.0))
        for token in components
    ]
    return Color(*channels, _alpha(expression, alpha, InvalidRgbError))


def _hsl(expression: str, args: str) -> Color:
    components, alpha = _split_arguments(expression, args, InvalidHslError)
    hue = _hue(expression, components[0], InvalidHslError)
    saturation = _fraction(expression, components[1], InvalidHslError, scale=100.0)
    lightness = _fraction(expression, components[2], InvalidHslError, scale=100.0)
    rgb = spaces.hsl_to_rgb(hue, saturation, lightness)
    return Color(*map(spaces.to_channel, rgb), _alpha(expression, alpha, InvalidHslError))


def _hwb(expression: str, args: str) -> Color:
    components, alpha = _split_arguments(expression, args, InvalidHwbError)
    hue = _hue(expression, components[0], InvalidHwbError)
    whiteness = _fraction(expression, components[1], InvalidHwbError, scale=100.0)
    blackness = _fraction(expression, components[2], InvalidHwbError, scale=100.0)
    rgb = spaces.hwb_to_rgb(hue, whiteness, blackness)
    return Color(*map(spaces.to_channel, rgb), _alpha(expression, alpha, InvalidHwbError))


# Oklab/Oklch: 100% lightness = 1.0, 100% a/b/chroma = 0.4
_OK_PERCENT_SCALE: Final[float] = 0.4


def _ok_lightness(expression: str, token: str, error: Type[ColorParseError]) -> float:
    return _fraction(expression, token, error, scale=1.0)


def _ok_axis(expression: str, token: str, error: Type[ColorParseError]) -> float:
    value, is_percentage = _number(expression, token, error)
    return value / 100 * _OK_PERCENT_SCALE if is_percentage else value


def _oklab(expression: str, args: str) -> Color:
    components, alpha = _split_arguments(expression, args, InvalidOklabError)
    lightness = _ok_lightness(expression, components[0], InvalidOklabError)
    a = _ok_axis(expression, components[1], InvalidOklabError)
    b = _ok_axis(expression, components[2], InvalidOklabError)
    rgb = spaces.oklab_to_rgb(lightness, a, b)
    return Color(*map(spaces.to_channel, rgb), _alpha(expression, alpha, InvalidOklabError))


def _oklch(expression: str, args: str) -> Color:
    components, alpha = _split_arguments(expression, args, InvalidOklchError)
    lightness = _ok_lightness(expression, components[0], InvalidOklchError)
    chroma = _ok_axis(expression, components[1], InvalidOklchError)
    if chroma < 0:
        raise InvalidOklchError(expression, "chroma must not be negative")
    hue = _hue(expression, components[2], InvalidOklchError)
    rgb = spaces.oklch_to_rgb(lightness, chroma, hue)
    return Color(*map(spaces.to_channel, rgb), _alpha(expression, alpha, InvalidOklchError))


_FUNCTIONS: Final[Dict[str, Callable[[str, str], Color]]] = {
    "rgb": _rgb,
    "rgba": _rgb,
    "hsl": _hsl,
    "hsla": _hsl,
    "hwb": _hwb,
    "oklab": _oklab,
    "oklch": _oklch,
}
