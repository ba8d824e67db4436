"""Shared helpers."""

from .crc import crc8
