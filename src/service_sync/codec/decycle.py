"""Cycle-safe deep copy of arbitrary value graphs.

``decycle`` makes a deep copy of a value in which every composite (mapping,
sequence, set, pydantic model, dataclass) appears at most once. Any later
occurrence of the same object, including cycles back to an ancestor, is
replaced by a marker of the form ``{"$ref": PATH}`` where ``PATH`` is the
JSONPath of the first occurrence.

```python
a = []
a.append(a)
decycle(a)  # [{"$ref": "$"}]

shared = {"n": 1}
decycle({"x": shared, "y": shared})
# {"x": {"n": 1}, "y": {"$ref": '$["x"]'}}
```

``$`` is the top level; ``[NUMBER]`` or ``[STRING]`` selects a child element
or property. The input is never mutated and markers are never resolved back
into live references.
"""

import dataclasses
import datetime
import decimal
import enum
import re
import uuid
from collections.abc import Callable, Mapping
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_json

REF_KEY = "$ref"
ROOT_PATH = "$"

Replacer = Callable[[Any], Any]

# Values that are objects in Python but behave as scalars on the wire
ATOMIC_TYPES: tuple[type, ...] = (
    datetime.date,
    datetime.time,
    datetime.timedelta,
    decimal.Decimal,
    uuid.UUID,
    enum.Enum,
    bytes,
    bytearray,
    re.Pattern,
    PurePath,
)

PRIMITIVE_TYPES: tuple[type, ...] = (str, int, float, bool, type(None))


def quote_key(key: Any) -> str:
    """Quote a property name for use in a JSONPath segment."""
    return to_json(str(key)).decode("utf-8")


def is_ref(value: Any) -> bool:
    """Return True if ``value`` is a ``{"$ref": PATH}`` marker."""
    return isinstance(value, dict) and len(value) == 1 and isinstance(value.get(REF_KEY), str)


class Decycler:
    """Single-use traversal state for one ``decycle`` call.

    Holds the identity map from visited composites to the path of their first
    occurrence. The visited objects are also kept alive here so their ids
    cannot be reused by the interpreter while the traversal runs.
    """

    def __init__(self, replacer: Replacer | None = None) -> None:
        self._replacer = replacer
        self._paths: dict[int, tuple[Any, str]] = {}

    def derez(self, value: Any, path: str = ROOT_PATH) -> Any:
        """Recursively copy ``value`` located at ``path``."""
        if self._replacer is not None:
            value = self._replacer(value)

        if isinstance(value, PRIMITIVE_TYPES) or isinstance(value, ATOMIC_TYPES):
            return value

        children = self._children(value)
        if children is None:
            return value

        # The empty tuple and frozenset are interpreter singletons
        if not children and isinstance(value, (tuple, frozenset)):
            return []

        seen = self._paths.get(id(value))
        if seen is not None:
            return {REF_KEY: seen[1]}
        self._paths[id(value)] = (value, path)

        if isinstance(children, list):
            return [self.derez(element, f"{path}[{i}]") for i, element in enumerate(children)]
        return {name: self.derez(child, f"{path}[{quote_key(name)}]") for name, child in children.items()}

    @staticmethod
    def _children(value: Any) -> list[Any] | dict[Any, Any] | None:
        """Return the children of a composite value, or None for opaque values."""
        if isinstance(value, Mapping):
            return dict(value.items())
        if isinstance(value, (list, tuple, set, frozenset)):
            return list(value)
        if isinstance(value, BaseModel):
            return dict(iter(value))
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}
        return None


def decycle(value: Any, replacer: Replacer | None = None) -> Any:
    """Return a cycle-free deep copy of ``value``.

    Args:
        value: Any value graph, possibly with shared or cyclic references
        replacer: Optional function called for each value; its return value
                  is used in place of the original

    Returns:
        A tree made of dicts, lists and leaf values where duplicate
        composites are replaced with ``{"$ref": PATH}`` markers
    """
    return Decycler(replacer).derez(value, ROOT_PATH)
