"""Nomena: baby name suggestions with durable favorites."""

__version__ = "0.1.0"
