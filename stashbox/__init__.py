"""Stashbox: local-first content capture with one-way cloud push."""

__version__ = "0.4.0"
