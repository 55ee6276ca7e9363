"""Cycle-safe payload serialization.

``decycle`` turns any value graph into a tree with ``{"$ref": PATH}``
markers in place of repeated objects; ``EnvelopeCodec`` renders that tree
as JSON text for the broker and parses it back on the other side.
"""

from .decycle import REF_KEY, Decycler, decycle, is_ref
from .envelope import EnvelopeCodec, decode, encode, get_default_codec

__all__ = [
    "REF_KEY",
    "Decycler",
    "EnvelopeCodec",
    "decode",
    "decycle",
    "encode",
    "get_default_codec",
    "is_ref",
]
