"""Exceptions raised by the conversion engine."""
from __future__ import annotations


class ConversionError(Exception):
    """Base class for conversion failures."""


class XmlParseError(ConversionError):
    """The input text is not a well-formed XML document."""


class ProviderError(ConversionError):
    """A metadata provider could not answer a query."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


__all__ = ["ConversionError", "XmlParseError", "ProviderError"]
