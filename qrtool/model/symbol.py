"""
RU: Доменная модель символа: версия (обычная, Micro, rMQR), матрица модулей и метаданные.
EN: Symbol domain model: tagged version, immutable module grid, decode metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from .enums import EccLevel, VersionKind

ModuleRow = Tuple[bool, ...]


@dataclass(frozen=True)
class Version:
    """
    Tagged symbol version.

    ``Normal(n)`` and ``Micro(n)`` carry one number; ``RectMicro(height, width)``
    carries both dimensions in modules.

    Examples:
        >>> str(Version.normal(1)), str(Version.micro(3)), str(Version.rect_micro(13, 43))
        ('1', 'M3', 'R13x43')
    """

    kind: VersionKind
    number: Optional[int] = None
    height: Optional[int] = None
    width: Optional[int] = None

    @classmethod
    def normal(cls, number: int) -> "Version":
        return cls(VersionKind.NORMAL, number=number)

    @classmethod
    def micro(cls, number: int) -> "Version":
        return cls(VersionKind.MICRO, number=number)

    @classmethod
    def rect_micro(cls, height: int, width: int) -> "Version":
        return cls(VersionKind.RECT_MICRO, height=height, width=width)

    @property
    def is_micro(self) -> bool:
        """Micro and rectangular Micro symbols use a 2-module quiet zone."""
        return self.kind is not VersionKind.NORMAL

    def __str__(self) -> str:
        if self.kind is VersionKind.NORMAL:
            return str(self.number)
        if self.kind is VersionKind.MICRO:
            return f"M{self.number}"
        return f"R{self.height}x{self.width}"


@dataclass(frozen=True)
class Metadata:
    """Version and ECC level of a symbol; diagnostic output only."""

    version: Version
    ecc_level: EccLevel

    def lines(self) -> List[str]:
        return [f"Version: {self.version}", f"Level: {self.ecc_level.letter}"]


@dataclass(frozen=True)
class Symbol:
    """
    Abstract barcode: a ``height`` x ``width`` grid of modules (``True`` = dark)
    without quiet zone, plus its version and ECC level.

    Produced once per encode invocation by the symbol adapter; immutable.
    """

    width: int
    height: int
    modules: Tuple[ModuleRow, ...]
    version: Version
    ecc_level: EccLevel

    def __post_init__(self) -> None:
        if len(self.modules) != self.height:
            raise ValueError(f"expected {self.height} module rows, got {len(self.modules)}")
        for row in self.modules:
            if len(row) != self.width:
                raise ValueError(f"expected rows of {self.width} modules, got {len(row)}")

    @classmethod
    def from_matrix(
        cls, matrix: Sequence[Sequence[object]], version: Version, ecc_level: EccLevel
    ) -> "Symbol":
        """Build a symbol from any row-major matrix of truthy (dark) / falsy values."""
        modules = tuple(tuple(bool(cell) for cell in row) for row in matrix)
        width = len(modules[0]) if modules else 0
        return cls(width=width, height=len(modules), modules=modules, version=version, ecc_level=ecc_level)

    @property
    def metadata(self) -> Metadata:
        return Metadata(version=self.version, ecc_level=self.ecc_level)

    def is_dark(self, x: int, y: int) -> bool:
        return self.modules[y][x]

    def padded_rows(self, margin: int) -> Iterator[ModuleRow]:
        """Yield rows with ``margin`` light modules on every side."""
        blank = (False,) * (self.width + 2 * margin)
        side = (False,) * margin
        for _ in range(margin):
            yield blank
        for row in self.modules:
            yield side + row + side
        for _ in range(margin):
            yield blank


@dataclass(frozen=True)
class DecodedPayload:
    """One symbol found in a decoded image."""

    metadata: Metadata
    data: bytes = field(repr=False)
