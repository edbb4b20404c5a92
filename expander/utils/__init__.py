"""Logging, retry and text helpers shared across stages."""
