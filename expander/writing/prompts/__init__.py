"""Prompt builders for every generation stage."""
