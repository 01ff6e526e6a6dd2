"""Configuration for restpipe."""

from .schemas import AppSettings

__all__ = ["AppSettings"]
