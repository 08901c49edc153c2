"""
RU: Интерфейс командной строки qrtool: подкоманды encode и decode.
EN: Command-line shell. Parses options, wires the symbol adapter, renderer and
input negotiator together, and maps errors to exit codes.

Usage:
    qrtool encode [OPTIONS] [STRING]
    qrtool decode [OPTIONS] [IMAGE]
    qrtool --generate-completion {bash,zsh,tcsh}
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import shtab

from qrtool import __version__, set_log_level
from qrtool.app_context import get_app_context
from qrtool.barcodegen import SymbolAdapter
from qrtool.color import Color, parse_color
from qrtool.decode import InputDescriptor, resolve
from qrtool.errors import IoError, QrToolError
from qrtool.exit_codes import ExitCode, classify
from qrtool.model import (
    EccLevel,
    InputFormat,
    Metadata,
    Mode,
    OutputFormat,
    RenderOptions,
    Variant,
    Version,
    parse_optimization_level,
)
from qrtool.model.request import DEFAULT_ZOPFLI_ITERATIONS, ZOPFLI_IMPLIED_LEVEL
from qrtool.render import render

logger = logging.getLogger(__name__)

__all__ = ["build_parser", "main", "entry_point"]

_RECT_MICRO_RE = re.compile(r"[rR](\d+)[xX](\d+)")


class _UsageError(Exception):
    """Option combination rejected after parsing (exit code 2)."""


# ==============================================================================
# ARGUMENT TYPES
# ==============================================================================


def _symbol_version(text: str) -> Any:
    """A version number or ``R<height>x<width>`` for rectangular Micro QR."""
    match = _RECT_MICRO_RE.fullmatch(text.strip())
    if match:
        return Version.rect_micro(int(match.group(1)), int(match.group(2)))
    try:
        return int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid symbol version: {text!r}") from None


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text}")
    return value


def _positive(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be positive: {text}")
    return value


def _optimization_level(text: str) -> int:
    try:
        return parse_optimization_level(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _choices(enum_type: Any) -> List[str]:
    return [member.value for member in enum_type]


def _config_choice(config: Dict[str, Any], key: str, enum_type: Any, fallback: str) -> str:
    value = str(config.get(key) or fallback).lower()
    if value not in _choices(enum_type):
        logger.warning("Ignoring invalid %s %r from the configuration", key, value)
        return fallback
    return value


# ==============================================================================
# PARSER
# ==============================================================================


def build_parser(config: Optional[Dict[str, Any]] = None) -> argparse.ArgumentParser:
    """
    Build the argument parser; ``config`` supplies defaults for some options.
    """
    config = config or {}
    parser = argparse.ArgumentParser(
        prog="qrtool",
        description="Encode and decode QR codes.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--generate-completion",
        choices=shtab.SUPPORTED_SHELLS,
        metavar="SHELL",
        help="Print a shell completion script to stdout.",
    )
    # команда обязательна, если не запрошено автодополнение (проверяется в main)
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    enc = subparsers.add_parser(
        "encode", aliases=["enc", "e"], help="Encode input data in a QR code."
    )
    enc.set_defaults(handler=run_encode)
    source = enc.add_mutually_exclusive_group()
    source.add_argument("input", nargs="?", metavar="STRING", help="Input data (default: stdin).")
    read_from = source.add_argument(
        "-r", "--read-from", metavar="FILE", type=Path, help="Read input data from FILE."
    )
    read_from.complete = shtab.FILE  # type: ignore[attr-defined]
    output = enc.add_argument(
        "-o", "--output", metavar="FILE", type=Path, help="Output the result to FILE."
    )
    output.complete = shtab.FILE  # type: ignore[attr-defined]
    enc.add_argument(
        "-l",
        "--error-correction-level",
        choices=_choices(EccLevel),
        type=str.lower,
        default=_config_choice(config, "error_correction_level", EccLevel, EccLevel.M.value),
        metavar="LEVEL",
        help="Error correction level: l, m, q or h (default: %(default)s).",
    )
    enc.add_argument(
        "-v",
        "--symbol-version",
        type=_symbol_version,
        metavar="NUMBER",
        help="Symbol version (1-40 normal, 1-4 micro).",
    )
    enc.add_argument(
        "-m", "--margin", type=_non_negative, metavar="NUMBER",
        help="Quiet zone width in modules (default: 4, or 2 for Micro QR).",
    )
    enc.add_argument(
        "-s", "--size", type=_positive, metavar="NUMBER",
        help="Module size in pixels (default: 8 for png/svg/pic, 1 for text).",
    )
    enc.add_argument(
        "-t",
        "--type",
        dest="output_format",
        choices=_choices(OutputFormat),
        default=_config_choice(config, "output_format", OutputFormat, OutputFormat.PNG.value),
        metavar="FORMAT",
        help="Output format (default: %(default)s).",
    )
    enc.add_argument(
        "--optimize-png",
        nargs="?",
        const=ZOPFLI_IMPLIED_LEVEL,
        type=_optimization_level,
        metavar="LEVEL",
        help="Losslessly optimize the PNG output, level 0-6 or max.",
    )
    enc.add_argument(
        "--zopfli",
        nargs="?",
        const=DEFAULT_ZOPFLI_ITERATIONS,
        type=_positive,
        metavar="ITERATION",
        help="Use Zopfli to compress PNG (default iterations: %(const)s).",
    )
    enc.add_argument("-M", "--mode", choices=_choices(Mode), metavar="MODE", help="Encoding mode.")
    enc.add_argument(
        "--variant", choices=_choices(Variant), metavar="TYPE", help="Symbol variant: normal or micro."
    )
    enc.add_argument("--foreground", metavar="COLOR", help="Foreground color.")
    enc.add_argument("--background", metavar="COLOR", help="Background color.")
    enc.add_argument("--verbose", action="store_true", help="Print the symbol metadata.")

    dec = subparsers.add_parser(
        "decode", aliases=["dec", "d"], help="Detect and decode QR codes in an image."
    )
    dec.set_defaults(handler=run_decode)
    dec.add_argument(
        "-t", "--type", dest="input_format", choices=_choices(InputFormat), metavar="FORMAT",
        help="Input image format (default: from extension or content).",
    )
    dec.add_argument("--verbose", action="store_true", help="Also print the symbol metadata.")
    dec.add_argument(
        "--metadata", action="store_true", help="Print only the symbol metadata."
    )
    image = dec.add_argument("input", nargs="?", metavar="IMAGE", help="Input image (default: stdin).")
    image.complete = shtab.FILE  # type: ignore[attr-defined]
    return parser


# ==============================================================================
# OUTPUT
# ==============================================================================


def _print_metadata(metadata: Metadata) -> None:
    for line in metadata.lines():
        print(line, file=sys.stderr)


def _write_stdout(data: bytes) -> None:
    sys.stdout.flush()
    try:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    except OSError as e:
        raise IoError.from_os_error(e, "write data to", "stdout") from e


def _write_output(data: bytes, path: Optional[Path]) -> None:
    if path is None:
        _write_stdout(data)
        return
    try:
        path.write_bytes(data)
    except OSError as e:
        raise IoError.from_os_error(e, "write the image to", path) from e
    logger.info("Wrote %d bytes to %s", len(data), path)


# ==============================================================================
# COMMANDS
# ==============================================================================


def _color(expression: Optional[str]) -> Optional[Color]:
    return None if expression is None else parse_color(expression)


def run_encode(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    if (args.mode or args.variant) and args.symbol_version is None:
        raise _UsageError("--mode and --variant require --symbol-version")

    output_format = OutputFormat(args.output_format)
    optimize_level = args.optimize_png
    zopfli = args.zopfli
    if output_format is OutputFormat.PNG:
        if optimize_level is None and config.get("optimize_png_level") is not None:
            try:
                optimize_level = parse_optimization_level(config["optimize_png_level"])
            except ValueError as e:
                logger.warning("Ignoring optimize_png_level from the configuration: %s", e)
        if zopfli is None and config.get("zopfli_iterations") is not None:
            try:
                zopfli = _positive(str(config["zopfli_iterations"]))
            except (argparse.ArgumentTypeError, ValueError) as e:
                logger.warning("Ignoring zopfli_iterations from the configuration: %s", e)

    options = RenderOptions(
        output_format=output_format,
        margin=args.margin,
        module_size=args.size,
        foreground=_color(args.foreground),
        background=_color(args.background),
        optimize_level=optimize_level,
        zopfli_iterations=zopfli,
    )
    options.validate()

    if args.input is not None:
        descriptor = InputDescriptor.from_literal(args.input)
    elif args.read_from is not None:
        descriptor = InputDescriptor.from_path(args.read_from)
    else:
        descriptor = InputDescriptor.from_path(None)
    data = descriptor.read_all()

    adapter = SymbolAdapter()
    level = EccLevel(args.error_correction_level)
    if isinstance(args.symbol_version, Version):
        symbol = adapter.encode_rect_micro(data, level, args.symbol_version)
    else:
        symbol = adapter.encode(
            data,
            level,
            version=args.symbol_version,
            mode=Mode(args.mode) if args.mode else None,
            variant=Variant(args.variant) if args.variant else Variant.NORMAL,
        )
    if args.verbose:
        _print_metadata(symbol.metadata)

    request = options.resolve(symbol)
    output = render(symbol, request)
    if isinstance(output, str):
        # Текстовые форматы заканчиваются переводом строки
        output = output.encode("utf-8")
    _write_output(output, args.output)


def run_decode(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    descriptor = InputDescriptor.from_path(args.input)
    explicit = InputFormat(args.input_format) if args.input_format else None
    image = resolve(descriptor, explicit)

    for payload in SymbolAdapter().decode(image):
        if args.verbose or args.metadata:
            _print_metadata(payload.metadata)
            if args.metadata:
                continue
        _write_stdout(payload.data)


# ==============================================================================
# ENTRY POINT
# ==============================================================================


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run qrtool and return the process exit code.

    Example:
        >>> main(["encode", "-t", "ascii", "QR code"])
        0
    """
    ctx = get_app_context()
    parser = build_parser(ctx.config)
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse: --help/--version -> 0, ошибки использования -> 2
        return int(e.code) if isinstance(e.code, int) else ExitCode.USAGE

    if args.generate_completion:
        script = shtab.complete(parser, shell=args.generate_completion)
        try:
            _write_stdout(script.encode("utf-8"))
        except QrToolError as e:
            print(f"Error: {e.user_message()}", file=sys.stderr)
            return classify(e)
        return ExitCode.OK
    if args.command is None:
        parser.print_usage(sys.stderr)
        print("Error: a command is required (encode or decode)", file=sys.stderr)
        return ExitCode.USAGE

    if args.verbose:
        set_log_level(logging.INFO)

    try:
        args.handler(args, ctx.config)
    except _UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.USAGE
    except QrToolError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e.user_message()}", file=sys.stderr)
        return classify(e)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return classify(e)
    return ExitCode.OK


def entry_point() -> None:
    sys.exit(main())
