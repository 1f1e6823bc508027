"""Hireloom aptitude test backend."""

__version__ = "1.0.0"
