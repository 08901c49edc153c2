import gzip
import io
from pathlib import Path

import pytest

from qrtool.app_context import detect_capabilities
from qrtool.barcodegen import SymbolAdapter
from qrtool.decode import InputDescriptor, resolve
from qrtool.decode.svg import decompress_svg
from qrtool.errors import VectorParseError
from qrtool.model import EccLevel, InputFormat, OutputFormat, RenderOptions, Symbol, Version
from qrtool.render import render

svg_supported = pytest.mark.skipif(
    not detect_capabilities().supports(InputFormat.SVG), reason="cairosvg/cairo unavailable"
)


def _svg(symbol: Symbol) -> str:
    return render(symbol, RenderOptions(output_format=OutputFormat.SVG).resolve(symbol))


def test_decompress_plain_passthrough() -> None:
    assert decompress_svg(b"<svg/>", "x") == b"<svg/>"


def test_decompress_corrupt() -> None:
    with pytest.raises(VectorParseError):
        decompress_svg(b"\x1f\x8b\x08\x00broken", "x.svgz")


@svg_supported
class TestSvgInput:
    def test_rendered_svg_decodes(self, tmp_path: Path, qr_symbol: Symbol) -> None:
        path = tmp_path / "code.svg"
        path.write_text(_svg(qr_symbol), encoding="utf-8")
        image = resolve(InputDescriptor.from_path(path))
        assert image.mode == "L"

        payloads = SymbolAdapter().decode(image)
        assert [p.data for p in payloads] == [b"QR code"]
        assert payloads[0].metadata.version == Version.normal(1)
        assert payloads[0].metadata.ecc_level is EccLevel.M

    def test_svgz(self, tmp_path: Path, qr_symbol: Symbol) -> None:
        path = tmp_path / "code.svgz"
        path.write_bytes(gzip.compress(_svg(qr_symbol).encode("utf-8")))
        payloads = SymbolAdapter().decode(resolve(InputDescriptor.from_path(path)))
        assert payloads[0].data == b"QR code"

    def test_sniffed_from_stdin(self, qr_symbol: Symbol) -> None:
        stream = io.BytesIO(_svg(qr_symbol).encode("utf-8"))
        image = resolve(InputDescriptor.from_path("-"), stdin=stream)
        assert SymbolAdapter().decode(image)[0].data == b"QR code"

    def test_empty_document(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.svg"
        path.write_bytes(b"   \n")
        with pytest.raises(VectorParseError):
            resolve(InputDescriptor.from_path(path))

    def test_malformed_document(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.svg"
        path.write_bytes(b"<svg xmlns='http://www.w3.org/2000/svg'><rect")
        with pytest.raises(VectorParseError):
            resolve(InputDescriptor.from_path(path))
