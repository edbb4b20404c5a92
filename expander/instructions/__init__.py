"""Instruction parsing."""

from expander.instructions.parser import InstructionParser

__all__ = ["InstructionParser"]
