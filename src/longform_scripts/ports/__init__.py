"""Ports (interfaces) – depend on these, implement in adapters."""

from longform_scripts.ports.interfaces import ITextGenerator

__all__ = ["ITextGenerator"]
