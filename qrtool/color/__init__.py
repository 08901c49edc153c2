"""
color

Разбор цветовых выражений (hex, именованные, rgb/hsl/hwb/oklab/oklch) в 8-битный RGBA.
"""

from qrtool.color.color import BLACK, WHITE, Color, parse_color

__all__ = ["Color", "BLACK", "WHITE", "parse_color"]
