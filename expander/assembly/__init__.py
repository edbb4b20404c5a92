"""Document assembly."""

from expander.assembly.assembler import assemble

__all__ = ["assemble"]
