"""
RU: Преобразования цветовых пространств в sRGB (0..1 на канал).
EN: Color-space transforms to gamma-encoded sRGB floats in ``[0, 1]``.

The results are quantized to 8 bits by the caller; values outside the sRGB
gamut are clamped there, so out-of-gamut oklab/oklch inputs lose information.
"""

from __future__ import annotations

import math
from typing import Final, Tuple

RGBFloat = Tuple[float, float, float]

LINEAR_TO_SRGB_TH: Final[float] = 0.0031308


def _linear_to_srgb(c: float) -> float:
    if c <= LINEAR_TO_SRGB_TH:
        return 12.92 * c
    return 1.055 * (c ** (1 / 2.4)) - 0.055


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> RGBFloat:
    """Convert HSL (hue in degrees, s/l in ``[0, 1]``) to sRGB."""
    h = hue % 360
    if saturation == 0:
        return lightness, lightness, lightness
    c = (1 - abs(2 * lightness - 1)) * saturation
    x = c * (1 - abs(((h / 60) % 2) - 1))
    m = lightness - c / 2
    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return r + m, g + m, b + m


def hwb_to_rgb(hue: float, whiteness: float, blackness: float) -> RGBFloat:
    """Convert HWB to sRGB; ``whiteness + blackness >= 1`` yields a gray."""
    total = whiteness + blackness
    if total >= 1:
        gray = whiteness / total
        return gray, gray, gray
    r, g, b = hsl_to_rgb(hue, 1.0, 0.5)
    scale = 1 - whiteness - blackness
    return (
        r * scale + whiteness,
        g * scale + whiteness,
        b * scale + whiteness,
    )


def oklab_to_rgb(lightness: float, a: float, b: float) -> RGBFloat:
    """Convert Oklab to sRGB via LMS and linear sRGB."""
    l_ = lightness + 0.3963377774 * a + 0.2158037573 * b
    m_ = lightness - 0.1055613458 * a - 0.0638541728 * b
    s_ = lightness - 0.0894841775 * a - 1.2914855480 * b

    l_cubed = l_**3
    m_cubed = m_**3
    s_cubed = s_**3

    r_lin = 4.0767416621 * l_cubed - 3.3077115913 * m_cubed + 0.2309699292 * s_cubed
    g_lin = -1.2684380046 * l_cubed + 2.6097574011 * m_cubed - 0.3413193965 * s_cubed
    b_lin = -0.0041960863 * l_cubed - 0.7034186147 * m_cubed + 1.7076147010 * s_cubed

    return _linear_to_srgb(r_lin), _linear_to_srgb(g_lin), _linear_to_srgb(b_lin)


def oklch_to_rgb(lightness: float, chroma: float, hue: float) -> RGBFloat:
    a = chroma * math.cos(math.radians(hue))
    b = chroma * math.sin(math.radians(hue))
    return oklab_to_rgb(lightness, a, b)


def to_channel(value: float) -> int:
    """Quantize a ``[0, 1]`` float to an 8-bit channel, clamping out-of-gamut values."""
    if value != value:  # NaN
        return 0
    return max(0, min(255, int(round(value * 255))))
