"""
Интеграционные тесты командной строки: коды завершения и потоки вывода.
"""

import io
import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import shtab
from PIL import Image

from qrtool import cli
from qrtool.app_context import detect_capabilities
from qrtool.cli import build_parser, main
from qrtool.model import InputFormat


class _Stdin:
    """Replacement for ``sys.stdin`` exposing a binary ``buffer``."""

    def __init__(self, data: bytes) -> None:
        self.buffer = io.BytesIO(data)


def _encode_png(path: Path, *extra: str) -> None:
    assert main(["encode", "-o", str(path), *extra, "QR code"]) == 0


class TestParser:
    def test_aliases(self) -> None:
        parser = build_parser()
        assert parser.parse_args(["e", "x"]).output_format == "png"
        assert parser.parse_args(["dec", "a.png"]).input == "a.png"

    def test_optimize_defaults(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["encode", "--optimize-png", "--zopfli", "-o", "a.png", "x"])
        assert (args.optimize_png, args.zopfli) == (2, 15)
        args = parser.parse_args(["encode", "--optimize-png", "max", "x"])
        assert args.optimize_png == 6

    def test_rect_micro_version(self) -> None:
        args = build_parser().parse_args(["encode", "-v", "R13x43", "x"])
        assert str(args.symbol_version) == "R13x43"

    def test_config_defaults(self) -> None:
        parser = build_parser({"error_correction_level": "H", "output_format": "svg"})
        args = parser.parse_args(["encode", "x"])
        assert (args.error_correction_level, args.output_format) == ("h", "svg")

    def test_invalid_config_default_ignored(self) -> None:
        args = build_parser({"output_format": "gif"}).parse_args(["encode", "x"])
        assert args.output_format == "png"


class TestEncode:
    def test_ascii_to_stdout(self, capsysbinary) -> None:
        assert main(["encode", "-t", "ascii", "QR code"]) == 0
        out = capsysbinary.readouterr().out
        lines = out.split(b"\n")
        assert lines[-1] == b""
        assert len(lines[:-1]) == 21 + 8
        assert all(len(line) == 2 * (21 + 8) for line in lines[:-1])

    def test_unicode_is_utf8(self, capsysbinary) -> None:
        assert main(["encode", "-t", "unicode", "QR code"]) == 0
        out = capsysbinary.readouterr().out
        assert "█".encode("utf-8") in out
        assert out.endswith(b"\n")

    def test_png_to_stdout(self, capsysbinary) -> None:
        assert main(["encode", "QR code"]) == 0
        out = capsysbinary.readouterr().out
        assert out.startswith(b"\x89PNG\r\n\x1a\n")
        assert Image.open(io.BytesIO(out)).size == ((21 + 8) * 8,) * 2

    def test_verbose_prints_metadata(self, capsysbinary) -> None:
        assert main(["encode", "--verbose", "-t", "svg", "QR code"]) == 0
        captured = capsysbinary.readouterr()
        assert b"Version: 1\nLevel: M\n" in captured.err
        assert captured.out.startswith(b"<?xml")

    def test_micro_verbose(self, capsysbinary) -> None:
        argv = ["encode", "--verbose", "-v", "2", "--variant", "micro", "-M", "numeric", "-l", "l", "-t", "ascii", "12345"]
        assert main(argv) == 0
        captured = capsysbinary.readouterr()
        assert b"Version: M2\nLevel: L\n" in captured.err
        # Micro: поле тишины 2 модуля
        assert len(captured.out.split(b"\n")) - 1 == 13 + 4

    def test_stdin_input(self, capsysbinary, monkeypatch) -> None:
        monkeypatch.setattr(sys, "stdin", _Stdin(b"QR code"))
        assert main(["encode", "--verbose", "-t", "pic"]) == 0
        assert b"Version: 1" in capsysbinary.readouterr().err

    def test_read_from_file(self, tmp_path: Path, capsysbinary) -> None:
        source = tmp_path / "payload.bin"
        source.write_bytes(b"\x00\xff" * 4)
        assert main(["encode", "-r", str(source), "-t", "ansi256"]) == 0
        assert capsysbinary.readouterr().out.count(b"\x1b[0m\n") == 21 + 8

    def test_optimized_png_to_file(self, tmp_path: Path) -> None:
        plain, optimized = tmp_path / "plain.png", tmp_path / "optimized.png"
        _encode_png(plain)
        _encode_png(optimized, "--optimize-png", "4")
        assert optimized.stat().st_size <= plain.stat().st_size
        with Image.open(plain) as a, Image.open(optimized) as b:
            assert a.convert("L").tobytes() == b.convert("L").tobytes()

    def test_config_output_format(self, tmp_path: Path, capsysbinary) -> None:
        (tmp_path / "qrtool.json").write_text(json.dumps({"output_format": "ascii"}), encoding="utf-8")
        assert main(["encode", "QR code"]) == 0
        assert capsysbinary.readouterr().out.startswith(b"  ")


class TestEncodeErrors:
    @pytest.mark.parametrize(
        "argv",
        [
            ["encode", "--foreground", "#g", "x"],
            ["encode", "--background", "fn(0)", "x"],
            ["encode", "--foreground", "nosuchcolor", "x"],
            ["encode", "-t", "ascii", "--foreground", "red", "x"],
            ["encode", "-t", "unicode-invert", "--background", "#ff0000", "x"],
            ["encode", "-t", "svg", "--optimize-png", "2", "x"],
            ["encode", "-t", "ansi", "--zopfli", "3", "x"],
            ["encode", "-M", "numeric", "123"],
            ["encode", "--variant", "micro", "123"],
            ["encode", "-t", "gif", "x"],
            ["encode", "-m", "-1", "x"],
            ["encode", "-s", "0", "x"],
            ["encode", "--optimize-png", "7", "x"],
            ["encode", "-r", "a.txt", "x"],
            [],
        ],
    )
    def test_usage_errors(self, argv, capsysbinary) -> None:
        assert main(argv) == 2
        assert capsysbinary.readouterr().out == b""

    def test_color_error_message(self, capsysbinary) -> None:
        assert main(["encode", "--foreground", "#g", "x"]) == 2
        assert b"Error: invalid hex format: '#g'" in capsysbinary.readouterr().err

    def test_colors_checked_before_reading_input(self, tmp_path: Path) -> None:
        assert main(["encode", "-t", "pic", "--foreground", "red", "-r", str(tmp_path / "missing")]) == 2

    @pytest.mark.parametrize(
        "argv",
        [
            ["encode", "-v", "41", "x"],
            ["encode", "-v", "1", "-l", "h", "x" * 100],
            ["encode", "-v", "1", "-M", "numeric", "abc"],
            ["encode", "-v", "1", "--variant", "micro", "-l", "m", "1"],
        ],
    )
    def test_data_errors(self, argv) -> None:
        assert main(argv) == 65

    def test_rect_micro_unavailable(self) -> None:
        assert main(["encode", "-v", "R13x43", "x"]) == 69

    def test_missing_input_file(self, tmp_path: Path, capsysbinary) -> None:
        assert main(["encode", "-r", str(tmp_path / "missing.txt")]) == 66
        assert b"missing.txt" in capsysbinary.readouterr().err

    def test_unwritable_output(self, tmp_path: Path) -> None:
        assert main(["encode", "-o", str(tmp_path / "no" / "dir" / "a.png"), "x"]) == 66

    def test_version_flag(self, capsysbinary) -> None:
        assert main(["--version"]) == 0
        assert b"qrtool" in capsysbinary.readouterr().out


class TestDecode:
    def test_round_trip(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "code.png"
        _encode_png(path)
        capsysbinary.readouterr()
        assert main(["decode", str(path)]) == 0
        captured = capsysbinary.readouterr()
        assert captured.out == b"QR code"

    def test_verbose(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "code.png"
        _encode_png(path)
        capsysbinary.readouterr()
        assert main(["decode", "--verbose", str(path)]) == 0
        captured = capsysbinary.readouterr()
        assert b"Version: 1\nLevel: M\n" in captured.err
        assert captured.out == b"QR code"

    def test_metadata_only(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "code.png"
        _encode_png(path, "-l", "q")
        capsysbinary.readouterr()
        assert main(["decode", "--metadata", str(path)]) == 0
        captured = capsysbinary.readouterr()
        assert b"Version: 1\nLevel: Q\n" in captured.err
        assert captured.out == b""

    def test_stdin(self, tmp_path: Path, capsysbinary, monkeypatch) -> None:
        path = tmp_path / "code.png"
        _encode_png(path)
        capsysbinary.readouterr()
        monkeypatch.setattr(sys, "stdin", _Stdin(path.read_bytes()))
        assert main(["decode"]) == 0
        assert capsysbinary.readouterr().out == b"QR code"

    def test_no_symbol(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "blank.png"
        Image.new("L", (100, 100), 255).save(path)
        assert main(["decode", str(path)]) == 0
        assert capsysbinary.readouterr().out == b""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert main(["decode", str(tmp_path / "missing.png")]) == 66

    def test_undetermined_format(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")
        assert main(["decode", str(path)]) == 69
        assert b"could not determine the image format" in capsysbinary.readouterr().err

    def test_explicit_format_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "code.png"
        _encode_png(path)
        assert main(["decode", "-t", "bmp", str(path)]) == 65

    def test_corrupt_image(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 20)
        assert main(["decode", str(path)]) == 65

    def test_unknown_input_type(self) -> None:
        assert main(["decode", "-t", "pdf", "a.pdf"]) == 2


class TestErrorMessages:
    def test_undetermined_format_names_input(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "mystery.bin"
        path.write_bytes(b"\x00\x01\x02\x03")
        assert main(["decode", str(path)]) == 69
        assert b"mystery.bin" in capsysbinary.readouterr().err

    def test_format_mismatch_names_input(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "code.png"
        _encode_png(path)
        capsysbinary.readouterr()
        assert main(["decode", "-t", "bmp", str(path)]) == 65
        err = capsysbinary.readouterr().err
        assert b"code.png" in err
        assert b"bmp" in err

    @pytest.mark.skipif(
        not detect_capabilities().supports(InputFormat.SVG), reason="cairosvg/cairo unavailable"
    )
    def test_malformed_svg_names_input(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "broken.svg"
        path.write_bytes(b"<svg xmlns='http://www.w3.org/2000/svg'><rect")
        assert main(["decode", str(path)]) == 65
        assert b"broken.svg" in capsysbinary.readouterr().err

    def test_damaged_symbol(self, tmp_path: Path, capsysbinary) -> None:
        path = tmp_path / "damaged.png"
        _encode_png(path)
        with Image.open(path) as image:
            damaged = image.convert("L")
        # модули 9..20 версии 1 содержат только данные
        damaged.paste(255, (13 * 8, 13 * 8, 25 * 8, 25 * 8))
        damaged.save(path)
        capsysbinary.readouterr()
        assert main(["decode", str(path)]) == 65
        captured = capsysbinary.readouterr()
        assert captured.out == b""
        assert b"could not decode" in captured.err


class TestConfigValues:
    @pytest.mark.parametrize("value", ["lots", 0, None, [3]])
    def test_invalid_zopfli_iterations_ignored(self, tmp_path: Path, value) -> None:
        (tmp_path / "qrtool.json").write_text(json.dumps({"zopfli_iterations": value}), encoding="utf-8")
        output = tmp_path / "a.png"
        with patch.object(cli.logger, "warning") as warning:
            assert main(["encode", "-o", str(output), "QR code"]) == 0
        assert output.read_bytes().startswith(b"\x89PNG")
        if value is not None:
            assert "zopfli_iterations" in warning.call_args.args[0]

    def test_valid_zopfli_iterations_used(self, tmp_path: Path) -> None:
        (tmp_path / "qrtool.json").write_text(json.dumps({"zopfli_iterations": 2}), encoding="utf-8")
        assert main(["encode", "-o", str(tmp_path / "a.png"), "QR code"]) == 0


class TestCompletion:
    @pytest.mark.parametrize("shell", shtab.SUPPORTED_SHELLS)
    def test_generate(self, shell: str, capsysbinary) -> None:
        assert main(["--generate-completion", shell]) == 0
        out = capsysbinary.readouterr().out
        assert out
        assert b"qrtool" in out

    def test_bash_lists_subcommands(self, capsysbinary) -> None:
        assert main(["--generate-completion", "bash"]) == 0
        out = capsysbinary.readouterr().out
        assert b"encode" in out
        assert b"decode" in out

    def test_invalid_shell(self, capsysbinary) -> None:
        assert main(["--generate-completion", "a"]) == 2
        assert b"invalid choice: 'a'" in capsysbinary.readouterr().err

    def test_command_still_required(self, capsysbinary) -> None:
        assert main([]) == 2
        assert b"command is required" in capsysbinary.readouterr().err
