from pathlib import PurePath

import pytest

from qrtool.color import BLACK, WHITE, Color
from qrtool.errors import (
    ColorsNotSupportedError,
    OptimizationNotSupportedError,
    RenderValidationError,
)
from qrtool.model import (
    EccLevel,
    InputFormat,
    Metadata,
    OutputFormat,
    PngOptimization,
    RenderOptions,
    Symbol,
    Version,
    VersionKind,
    parse_optimization_level,
)


class TestEnums:
    @pytest.mark.parametrize("letter", ["l", "M", " q ", "H"])
    def test_ecc_from_letter(self, letter: str) -> None:
        assert EccLevel.from_letter(letter).letter == letter.strip().upper()

    def test_ecc_from_letter_invalid(self) -> None:
        with pytest.raises(ValueError):
            EccLevel.from_letter("x")

    @pytest.mark.parametrize(
        "fmt,size",
        [
            (OutputFormat.PNG, 8),
            (OutputFormat.SVG, 8),
            (OutputFormat.PIC, 8),
            (OutputFormat.ANSI, 1),
            (OutputFormat.ANSI_TRUE_COLOR, 1),
            (OutputFormat.ASCII_INVERT, 1),
            (OutputFormat.UNICODE, 1),
        ],
    )
    def test_default_module_size(self, fmt: OutputFormat, size: int) -> None:
        assert fmt.default_module_size == size

    def test_colorless_formats(self) -> None:
        colorless = {fmt for fmt in OutputFormat if fmt.is_colorless}
        assert colorless == {
            OutputFormat.PIC,
            OutputFormat.ASCII,
            OutputFormat.ASCII_INVERT,
            OutputFormat.UNICODE,
            OutputFormat.UNICODE_INVERT,
        }

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("a.PNG", InputFormat.PNG),
            ("a.jpg", InputFormat.JPEG),
            ("a.svgz", InputFormat.SVG),
            ("a.pgm", InputFormat.PNM),
            ("a.tif", InputFormat.TIFF),
            ("a.txt", None),
            ("noext", None),
        ],
    )
    def test_input_format_from_path(self, name: str, expected) -> None:
        assert InputFormat.from_path(PurePath(name)) is expected

    def test_every_raster_format_has_pillow_plugin(self) -> None:
        for fmt in InputFormat:
            assert (fmt.pillow_format is None) == fmt.is_vector


class TestVersionAndSymbol:
    @pytest.mark.parametrize(
        "version,text,micro",
        [
            (Version.normal(40), "40", False),
            (Version.micro(2), "M2", True),
            (Version.rect_micro(13, 43), "R13x43", True),
        ],
    )
    def test_version_display(self, version: Version, text: str, micro: bool) -> None:
        assert str(version) == text
        assert version.is_micro is micro

    def test_rect_micro_carries_two_dimensions(self) -> None:
        version = Version.rect_micro(7, 59)
        assert version.kind is VersionKind.RECT_MICRO
        assert (version.height, version.width) == (7, 59)

    def test_metadata_lines(self) -> None:
        assert Metadata(Version.micro(3), EccLevel.Q).lines() == ["Version: M3", "Level: Q"]

    def test_symbol_shape_checked(self) -> None:
        with pytest.raises(ValueError):
            Symbol(width=2, height=2, modules=((True,),), version=Version.normal(1), ecc_level=EccLevel.L)

    def test_padded_rows(self, tiny_symbol: Symbol) -> None:
        rows = list(tiny_symbol.padded_rows(1))
        assert len(rows) == 5
        assert all(len(row) == 5 for row in rows)
        assert rows[0] == (False,) * 5
        assert rows[1] == (False, True, False, False, False)

    def test_is_dark(self, tiny_symbol: Symbol) -> None:
        assert tiny_symbol.is_dark(1, 1)
        assert not tiny_symbol.is_dark(2, 0)

    def test_symbol_is_immutable(self, tiny_symbol: Symbol) -> None:
        with pytest.raises(AttributeError):
            tiny_symbol.width = 5  # type: ignore[misc]


class TestRenderOptions:
    def test_default_margin_normal(self, tiny_symbol: Symbol) -> None:
        assert RenderOptions().resolve(tiny_symbol).margin == 4

    def test_default_margin_micro(self, micro_symbol: Symbol) -> None:
        assert RenderOptions().resolve(micro_symbol).margin == 2

    def test_explicit_margin_wins(self, micro_symbol: Symbol) -> None:
        assert RenderOptions(margin=0).resolve(micro_symbol).margin == 0

    @pytest.mark.parametrize("fmt", list(OutputFormat))
    def test_default_module_size(self, tiny_symbol: Symbol, fmt: OutputFormat) -> None:
        request = RenderOptions(output_format=fmt).resolve(tiny_symbol)
        assert request.module_size == fmt.default_module_size

    @pytest.mark.parametrize("fmt", list(OutputFormat))
    def test_invert_only_for_invert_formats(self, tiny_symbol: Symbol, fmt: OutputFormat) -> None:
        request = RenderOptions(output_format=fmt).resolve(tiny_symbol)
        assert request.invert is fmt.value.endswith("-invert")

    def test_default_colors(self, tiny_symbol: Symbol) -> None:
        request = RenderOptions().resolve(tiny_symbol)
        assert (request.foreground, request.background) == (BLACK, WHITE)
        assert request.is_monochrome

    @pytest.mark.parametrize(
        "fmt",
        [
            OutputFormat.PIC,
            OutputFormat.ASCII,
            OutputFormat.ASCII_INVERT,
            OutputFormat.UNICODE,
            OutputFormat.UNICODE_INVERT,
        ],
    )
    @pytest.mark.parametrize(
        "foreground,background",
        [
            (Color(255, 0, 0), None),
            (None, Color(0, 0, 255)),
            (Color(255, 0, 0), Color(0, 0, 255)),
            (BLACK, Color(1, 1, 1)),
            (Color(0, 0, 0, 128), WHITE),
        ],
    )
    def test_colorless_format_rejects_colors(
        self, tiny_symbol: Symbol, fmt: OutputFormat, foreground, background
    ) -> None:
        options = RenderOptions(output_format=fmt, foreground=foreground, background=background)
        with pytest.raises(ColorsNotSupportedError) as exc_info:
            options.resolve(tiny_symbol)
        assert exc_info.value.output_format == fmt.value

    @pytest.mark.parametrize("fmt", [OutputFormat.ASCII, OutputFormat.PIC, OutputFormat.UNICODE])
    def test_colorless_format_accepts_default_colors(self, tiny_symbol: Symbol, fmt: OutputFormat) -> None:
        options = RenderOptions(output_format=fmt, foreground=BLACK, background=WHITE)
        assert options.resolve(tiny_symbol).output_format is fmt

    @pytest.mark.parametrize("fmt", [fmt for fmt in OutputFormat if fmt is not OutputFormat.PNG])
    def test_optimization_requires_png(self, tiny_symbol: Symbol, fmt: OutputFormat) -> None:
        with pytest.raises(OptimizationNotSupportedError):
            RenderOptions(output_format=fmt, optimize_level=2).resolve(tiny_symbol)
        with pytest.raises(OptimizationNotSupportedError):
            RenderOptions(output_format=fmt, zopfli_iterations=15).resolve(tiny_symbol)

    def test_zopfli_implies_level_two(self, tiny_symbol: Symbol) -> None:
        request = RenderOptions(zopfli_iterations=15).resolve(tiny_symbol)
        assert request.optimization == PngOptimization(level=2, zopfli_iterations=15)

    def test_no_optimization_by_default(self, tiny_symbol: Symbol) -> None:
        assert RenderOptions().resolve(tiny_symbol).optimization is None

    @pytest.mark.parametrize(
        "options",
        [
            RenderOptions(margin=-1),
            RenderOptions(module_size=0),
            RenderOptions(zopfli_iterations=0),
        ],
    )
    def test_invalid_geometry(self, tiny_symbol: Symbol, options: RenderOptions) -> None:
        with pytest.raises(RenderValidationError):
            options.resolve(tiny_symbol)


class TestOptimizationLevel:
    @pytest.mark.parametrize("text,level", [("0", 0), ("6", 6), ("max", 6), ("MAX", 6), (3, 3)])
    def test_parse(self, text, level: int) -> None:
        assert parse_optimization_level(text) == level

    @pytest.mark.parametrize("text", ["7", "-1", "fast"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_optimization_level(text)
