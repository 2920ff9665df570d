"""
Encoding of list-valued text columns (``alt_texts``, ``top_keywords``,
``tracked_keywords``).

The store keeps these as JSON text. Decoding goes through an explicit
``list[str]`` schema so a corrupt column fails loudly instead of turning into
``None``.
"""

import json
import logging
from typing import Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from core.errors import ValidationError

logger = logging.getLogger(__name__)

_STRING_LIST = TypeAdapter(list[str])


def encode_list(values: list[str]) -> str:
    return json.dumps(_STRING_LIST.validate_python(list(values)))


def decode_list(raw: Optional[str], column: str = "column") -> list[str]:
    """
    Decode a JSON text column into a list of strings.

    NULL (a column that was never written) decodes to an empty list.
    Anything else must be a JSON array of strings.
    """
    if raw is None:
        return []
    try:
        return _STRING_LIST.validate_json(raw)
    except SchemaError as exc:
        logger.error("Malformed %s value %r", column, raw[:80])
        raise ValidationError(f"{column} is not a JSON list of strings") from exc
