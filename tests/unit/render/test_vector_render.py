import xml.etree.ElementTree as ET

from qrtool.color import Color
from qrtool.model import OutputFormat, RenderOptions, Symbol
from qrtool.render import render

SVG_NS = "{http://www.w3.org/2000/svg}"


def _render(symbol: Symbol, fmt: OutputFormat, **kwargs) -> str:
    return render(symbol, RenderOptions(output_format=fmt, **kwargs).resolve(symbol))


class TestSvg:
    def test_structure(self, tiny_symbol: Symbol) -> None:
        output = _render(tiny_symbol, OutputFormat.SVG)
        assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
        root = ET.fromstring(output.split("\n", 1)[1])
        side = (3 + 2 * 4) * 8
        assert root.tag == f"{SVG_NS}svg"
        assert root.get("width") == str(side)
        assert root.get("viewBox") == f"0 0 {side} {side}"
        assert root.get("shape-rendering") == "crispEdges"

        rects = root.findall(f"{SVG_NS}rect")
        background, modules = rects[0], rects[1:]
        assert (background.get("width"), background.get("fill")) == (str(side), "#ffffff")
        assert len(modules) == 3
        assert [(r.get("x"), r.get("y")) for r in modules] == [
            ("32", "32"),
            ("40", "40"),
            ("48", "48"),
        ]
        assert all(r.get("fill") == "#000000" for r in modules)

    def test_colors_as_hex(self, tiny_symbol: Symbol) -> None:
        output = _render(
            tiny_symbol,
            OutputFormat.SVG,
            foreground=Color(165, 42, 42),
            background=Color(255, 255, 255, 0),
        )
        assert 'fill="#a52a2a"' in output
        assert 'fill="#ffffff00"' in output

    def test_module_size_and_margin(self, tiny_symbol: Symbol) -> None:
        output = _render(tiny_symbol, OutputFormat.SVG, margin=0, module_size=3)
        assert 'width="9" height="9"' in output
        assert '<rect x="6" y="6" width="3" height="3" fill="#000000"/>' in output


class TestPic:
    def test_pic(self, tiny_symbol: Symbol) -> None:
        output = _render(tiny_symbol, OutputFormat.PIC, margin=1, module_size=2)
        lines = output.splitlines()
        assert lines[0] == "maxpswid=10;maxpsht=10;movewid=0;moveht=1;boxwid=1;boxht=1"
        assert lines[1].startswith("define p {")
        assert lines[2].startswith("box wid 10 ht 10")
        assert lines[3:] == ["p(2,2,2,2)", "p(4,4,2,2)", "p(6,6,2,2)"]

    def test_default_module_size(self, qr_symbol: Symbol) -> None:
        output = _render(qr_symbol, OutputFormat.PIC)
        side = (qr_symbol.width + 8) * 8
        assert output.startswith(f"maxpswid={side};maxpsht={side};")
        dark = sum(cell for row in qr_symbol.modules for cell in row)
        assert output.count("\np(") == dark
