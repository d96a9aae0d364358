"""
Contracts (data models).

This folder defines the shapes exchanged between the catalog layers:
- Peripheral and history values returned by the store and the service
- the payload format of the remote peripheral API
- the PeripheralSource interface implemented by every catalog client

Both the mocked endpoint and the HTTP client produce data shaped by these
contracts, so the service never handles raw dicts.
"""

from .peripherals import (
    HistoryEntry,
    Peripheral,
    PeripheralHistoryItem,
    PeripheralPayload,
    PeripheralQuery,
    PeripheralSource,
)

__all__ = [
    "HistoryEntry",
    "Peripheral",
    "PeripheralHistoryItem",
    "PeripheralPayload",
    "PeripheralQuery",
    "PeripheralSource",
]
