"""
Тесты текстовых форматов: ASCII и Unicode (плотная упаковка 1x2).
"""

import pytest

from qrtool.model import OutputFormat, RenderOptions, Symbol
from qrtool.render import render
from qrtool.render.text import scaled_rows


def _render(symbol: Symbol, fmt: OutputFormat, **kwargs) -> str:
    request = RenderOptions(output_format=fmt, **kwargs).resolve(symbol)
    output = render(symbol, request)
    assert isinstance(output, str)
    return output


class TestAscii:
    def test_ascii(self, tiny_symbol: Symbol) -> None:
        assert _render(tiny_symbol, OutputFormat.ASCII, margin=0) == "##    \n  ##  \n    ##\n"

    def test_ascii_invert(self, tiny_symbol: Symbol) -> None:
        assert _render(tiny_symbol, OutputFormat.ASCII_INVERT, margin=0) == "  ####\n##  ##\n####  \n"

    def test_default_margin(self, tiny_symbol: Symbol) -> None:
        lines = _render(tiny_symbol, OutputFormat.ASCII).splitlines()
        assert len(lines) == 3 + 2 * 4
        assert all(len(line) == 2 * (3 + 2 * 4) for line in lines)
        assert lines[4] == " " * 8 + "##    " + " " * 8

    def test_module_size_repeats_both_ways(self, tiny_symbol: Symbol) -> None:
        lines = _render(tiny_symbol, OutputFormat.ASCII, margin=0, module_size=2).splitlines()
        assert lines == [
            "####        ",
            "####        ",
            "    ####    ",
            "    ####    ",
            "        ####",
            "        ####",
        ]


class TestUnicode:
    def test_unicode_draws_light_modules(self, tiny_symbol: Symbol) -> None:
        # Обычный режим рисует светлые модули: наблюдаемое поведение, инверсное растру
        assert _render(tiny_symbol, OutputFormat.UNICODE, margin=0) == "▄▀█\n██▄\n"

    def test_unicode_invert_draws_dark_modules(self, tiny_symbol: Symbol) -> None:
        assert _render(tiny_symbol, OutputFormat.UNICODE_INVERT, margin=0) == "▀▄ \n  ▀\n"

    def test_unicode_mapping_is_inverse_of_raster(self, tiny_symbol: Symbol) -> None:
        """Обычный unicode и unicode-invert - взаимные дополнения глифов."""
        complement = {" ": "█", "█": " ", "▀": "▄", "▄": "▀", "\n": "\n"}
        plain = _render(tiny_symbol, OutputFormat.UNICODE, margin=1)
        inverted = _render(tiny_symbol, OutputFormat.UNICODE_INVERT, margin=1)
        assert "".join(complement[ch] for ch in plain) == inverted

    def test_two_rows_per_line(self, qr_symbol: Symbol) -> None:
        lines = _render(qr_symbol, OutputFormat.UNICODE).splitlines()
        side = qr_symbol.width + 8
        assert len(lines) == (side + 1) // 2
        assert all(len(line) == side for line in lines)

    def test_quiet_zone_is_full_block_by_default(self, qr_symbol: Symbol) -> None:
        first = _render(qr_symbol, OutputFormat.UNICODE).splitlines()[0]
        assert set(first) == {"█"}


@pytest.mark.parametrize("size", [1, 3])
def test_scaled_rows_dimensions(tiny_symbol: Symbol, size: int) -> None:
    rows = list(scaled_rows(tiny_symbol, 1, size))
    assert len(rows) == 5 * size
    assert all(len(row) == 5 * size for row in rows)
