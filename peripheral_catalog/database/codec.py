"""
Text encoding for the structured peripheral columns.

specs are stored as a JSON object of strings and features as a JSON array of
strings. Anything that does not decode to exactly that shape is treated as
empty instead of failing the read.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


def encode_specs(specs: Optional[Mapping[str, str]]) -> str:
    return json.dumps(dict(specs or {}), ensure_ascii=False)


def decode_specs(raw: Optional[str]) -> Dict[str, str]:
    if raw is None or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed specs encoding: %r", raw[:80])
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        logger.warning("Discarding specs encoding with unexpected shape: %r", raw[:80])
        return {}
    return value


def encode_features(features: Optional[Iterable[str]]) -> str:
    return json.dumps(list(features or ()), ensure_ascii=False)


def decode_features(raw: Optional[str]) -> Tuple[str, ...]:
    if raw is None or not raw.strip():
        return ()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed features encoding: %r", raw[:80])
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        logger.warning("Discarding features encoding with unexpected shape: %r", raw[:80])
        return ()
    return tuple(value)
