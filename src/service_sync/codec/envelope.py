"""Event envelope codec.

The envelope is the wire form of an event payload: the decycled tree
rendered as UTF-8 JSON text. Decoding is plain JSON parsing; ``$ref``
markers stay in place as ordinary objects.
"""

from functools import lru_cache
from typing import Any

from loguru import logger
from pydantic_core import PydanticSerializationError, from_json, to_json

from service_sync.exceptions import DecodeError, SerializationError

from .decycle import Replacer, decycle


class EnvelopeCodec:
    """Converts event payloads to and from envelope text."""

    def __init__(self, replacer: Replacer | None = None) -> None:
        """Initialize the codec.

        Args:
            replacer: Optional per-value replacement hook passed to ``decycle``
        """
        self._replacer = replacer

    def encode(self, value: Any) -> str:
        """Encode ``value`` as envelope text.

        Raises:
            SerializationError: If the decycled tree holds unencodable values
        """
        tree = decycle(value, self._replacer)
        try:
            return to_json(tree).decode("utf-8")
        except (PydanticSerializationError, TypeError, ValueError) as e:
            logger.debug(f"Failed to serialize payload of type {type(value).__name__}: {e}")
            raise SerializationError(f"Cannot serialize {type(value).__name__} payload: {e}") from e

    def decode(self, payload: str | bytes | bytearray) -> Any:
        """Parse envelope text back into plain Python values.

        Raises:
            DecodeError: If ``payload`` is not valid JSON
        """
        try:
            return from_json(payload)
        except ValueError as e:
            raise DecodeError(f"Invalid envelope payload: {e}", payload) from e


@lru_cache
def get_default_codec() -> EnvelopeCodec:
    """Return the shared codec without a replacer."""
    return EnvelopeCodec()


def encode(value: Any) -> str:
    """Encode ``value`` with the default codec."""
    return get_default_codec().encode(value)


def decode(payload: str | bytes | bytearray) -> Any:
    """Decode ``payload`` with the default codec."""
    return get_default_codec().decode(payload)
