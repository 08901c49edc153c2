"""Run qrtool as ``python -m qrtool``."""

from qrtool.cli import entry_point

entry_point()
