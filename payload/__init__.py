"""Resilient decoding for upstream payloads."""

from .repair import DecodeError, DecodeResult, Strategy, decode

__all__ = ["decode", "DecodeError", "DecodeResult", "Strategy"]
