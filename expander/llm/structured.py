"""Fallible parsing of structured (JSON) provider responses."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_structured(raw: str, model_cls: Type[T]) -> Optional[T]:
    """Validate *raw* into *model_cls*; None when no usable JSON object is found.

    Providers without schema enforcement often wrap JSON in prose or code
    fences, so the outermost ``{...}`` span is tried when the whole string
    does not validate.
    """
    try:
        return model_cls.model_validate_json(raw)
    except ValidationError:
        pass
    match = _JSON_OBJECT.search(raw or "")
    if match is None:
        logger.debug("No JSON object in response for %s", model_cls.__name__)
        return None
    try:
        return model_cls.model_validate_json(match.group(0))
    except ValidationError as exc:
        logger.debug("Response did not validate as %s: %s", model_cls.__name__, exc)
        return None


def string_items(value: Any) -> List[str]:
    """Coerce a loosely-typed JSON list field: non-lists become ``[]``, non-string items are dropped."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]
