"""Extraction and repair of JSON payloads embedded in model responses."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Tuple

import json_repair

logger = logging.getLogger(__name__)

_CLOSERS = {"{": "}", "[": "]"}


class InvalidModelOutput(ValueError):
    """Model response did not contain a usable JSON payload."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


def find_balanced_span(text: str, opener: str) -> Optional[Tuple[int, int]]:
    """
    Locate the first balanced span starting with ``opener``.

    Brackets inside JSON string literals are ignored. Returns ``(start, end)``
    with ``end`` exclusive, or None when no balanced span exists.
    """
    closer = _CLOSERS[opener]
    start = text.find(opener)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return start, idx + 1
    return None


def _repair(candidate: str) -> Any:
    return json_repair.repair_json(candidate, return_objects=True)


def parse_model_json(text: str, expected: type) -> Any:
    """
    Parse the first JSON object (``dict``) or array (``list``) in ``text``.

    Tries a strict ``json.loads`` of the first balanced span, then a
    json-repair pass. A truncated response with an opener but no balanced
    close is handed straight to the repair pass.
    """
    opener = "{" if expected is dict else "["
    raw = text or ""
    span = find_balanced_span(raw, opener)
    if span is not None:
        candidate = raw[span[0]:span[1]]
    else:
        start = raw.find(opener)
        if start == -1:
            logger.error("Model response has no JSON %s; raw response: %s", expected.__name__, raw[:4000])
            raise InvalidModelOutput(f"No JSON {expected.__name__} found in model response", raw)
        candidate = raw[start:]

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Model JSON parse failed (%s); attempting repair", exc)
        try:
            parsed = _repair(candidate)
        except Exception as repair_exc:
            logger.error("Model JSON repair failed: %s; raw response: %s", repair_exc, raw[:4000])
            raise InvalidModelOutput("Model response JSON could not be repaired", raw) from repair_exc

    if not isinstance(parsed, expected) or (expected is dict and not parsed):
        logger.error("Model JSON has unexpected shape %s; raw response: %s", type(parsed).__name__, raw[:4000])
        raise InvalidModelOutput(f"Model response is not a JSON {expected.__name__}", raw)
    return parsed
