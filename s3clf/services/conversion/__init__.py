"""Conversion service module - file in, CLF file out."""
from .service import LogConversionService

__all__ = ["LogConversionService"]
