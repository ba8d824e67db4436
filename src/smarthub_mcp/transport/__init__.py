"""Transports carrying packet batches between the hub and the network."""

from .http_connection import HTTPConnection
