"""Document structure synthesis and outline planning."""

from expander.planning.outline import OutlinePlanner
from expander.planning.structure import build_structure, resolve_target

__all__ = ["OutlinePlanner", "build_structure", "resolve_target"]
