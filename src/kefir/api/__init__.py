"""API client for the KEF speaker HTTP interface."""

from kefir.api.client import KefClient
from kefir.api.protocol import (
    FirmwareInfo,
    KefConnectionError,
    KefError,
    KefProtocolError,
)

__all__ = [
    "KefClient",
    "FirmwareInfo",
    "KefError",
    "KefConnectionError",
    "KefProtocolError",
]
