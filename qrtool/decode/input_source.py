"""
RU: Источник входных байтов: файл, стандартный ввод или строковый литерал.
EN: Byte sources behind a single read interface. The whole input is buffered
before format resolution so that content sniffing can inspect leading bytes.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, Union

from qrtool.errors import IoError
from qrtool.model.enums import InputFormat

logger = logging.getLogger(__name__)

__all__ = ["SourceKind", "InputDescriptor", "STDIN_PATH"]

STDIN_PATH = "-"


class SourceKind(str, Enum):
    FILE = "file"
    STDIN = "stdin"
    LITERAL = "literal"


@dataclass(frozen=True)
class InputDescriptor:
    """
    Where input bytes come from, and once resolved, which format they are in.

    Examples:
        >>> InputDescriptor.from_path("-").kind
        <SourceKind.STDIN: 'stdin'>
        >>> InputDescriptor.from_path("code.png").name
        'code.png'
    """

    kind: SourceKind
    path: Optional[Path] = None
    literal: Optional[bytes] = None
    format: Optional[InputFormat] = None

    @classmethod
    def from_path(cls, path: Union[str, Path, None]) -> "InputDescriptor":
        """``None`` and ``"-"`` mean standard input."""
        if path is None or str(path) == STDIN_PATH:
            return cls(SourceKind.STDIN)
        return cls(SourceKind.FILE, path=Path(path))

    @classmethod
    def from_literal(cls, data: Union[str, bytes]) -> "InputDescriptor":
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(SourceKind.LITERAL, literal=data)

    @property
    def name(self) -> str:
        """Display name for messages: the path, ``stdin`` or ``<literal>``."""
        if self.kind is SourceKind.FILE:
            return str(self.path)
        return "stdin" if self.kind is SourceKind.STDIN else "<literal>"

    def with_format(self, fmt: InputFormat) -> "InputDescriptor":
        return InputDescriptor(self.kind, path=self.path, literal=self.literal, format=fmt)

    def read_all(self, stdin: Optional[BinaryIO] = None) -> bytes:
        """
        Buffer the entire input.

        Args:
            stdin: Binary stream to use instead of ``sys.stdin.buffer``.

        Raises:
            IoError: The file or stream could not be read.
        """
        if self.kind is SourceKind.LITERAL:
            return self.literal or b""
        if self.kind is SourceKind.STDIN:
            stream = stdin if stdin is not None else sys.stdin.buffer
            try:
                data = stream.read()
            except OSError as e:
                raise IoError.from_os_error(e, "read data from", "stdin") from e
        else:
            assert self.path is not None
            try:
                data = self.path.read_bytes()
            except OSError as e:
                raise IoError.from_os_error(e, "read data from", self.path) from e
        logger.debug("Read %d bytes from %s", len(data), self.name)
        return data
