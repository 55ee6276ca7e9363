"""Tests for cycle-safe deep copies."""

import copy
import datetime
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from pydantic import BaseModel

from service_sync.codec import REF_KEY, decycle, is_ref


class Author(BaseModel):
    """Pydantic payload used in tests."""

    name: str
    tags: list[str] = []


@dataclass
class Node:
    """Dataclass payload that can point at itself."""

    name: str
    children: list["Node"] = field(default_factory=list)
    parent: "Node | None" = None


@pytest.mark.parametrize("value", [None, True, False, 0, 42, 3.5, "", "text"])
def test_primitives_pass_through(value):
    assert decycle(value) is value


def test_atomic_values_pass_through():
    when = datetime.datetime(2024, 5, 1, 12, 30)
    ident = uuid.uuid4()
    amount = Decimal("9.99")
    result = decycle({"when": when, "id": ident, "amount": amount})
    assert result["when"] is when
    assert result["id"] is ident
    assert result["amount"] is amount


def test_self_reference_at_root():
    a = []
    a.append(a)
    assert decycle(a) == [{"$ref": "$"}]


def test_dict_self_reference():
    a = {"name": "a"}
    a["self"] = a
    assert decycle(a) == {"name": "a", "self": {"$ref": "$"}}


def test_shared_reference_is_emitted_once():
    s = {"n": 1, "items": [1, 2]}
    b = {"x": s, "y": s}

    result = decycle(b)

    assert result["x"] == {"n": 1, "items": [1, 2]}
    assert result["y"] == {"$ref": '$["x"]'}


def test_shared_reference_in_list_uses_index_path():
    s = [1]
    assert decycle([s, s]) == [[1], {"$ref": "$[0]"}]


def test_mutual_cycle():
    a = {"name": "a"}
    b = {"name": "b", "a": a}
    a["b"] = b

    assert decycle(a) == {"name": "a", "b": {"name": "b", "a": {"$ref": "$"}}}


def test_nested_path_is_recorded():
    shared = {"v": 1}
    value = {"outer": {"inner": [shared]}, "again": shared}

    result = decycle(value)

    assert result["again"] == {"$ref": '$["outer"]["inner"][0]'}


def test_equal_but_distinct_objects_are_not_deduplicated():
    value = {"x": {"n": 1}, "y": {"n": 1}}
    assert decycle(value) == {"x": {"n": 1}, "y": {"n": 1}}


def test_input_is_not_mutated():
    a = {"name": "a", "list": [1, 2]}
    a["self"] = a
    a["list"].append(a["list"])
    before_keys = list(a)
    before_list_len = len(a["list"])

    result = decycle(a)

    assert list(a) == before_keys
    assert len(a["list"]) == before_list_len
    assert a["self"] is a
    assert result is not a
    assert result["list"] is not a["list"]


def test_copy_is_deep():
    inner = {"n": 1}
    result = decycle({"inner": inner})
    result["inner"]["n"] = 2
    assert inner["n"] == 1


def test_key_order_is_preserved():
    value = {"z": 1, "a": 2, "m": 3}
    assert list(decycle(value)) == ["z", "a", "m"]


def test_non_ascii_keys_are_quoted_verbatim():
    shared = {}
    result = decycle({"café": shared, "other": shared})
    assert result["other"] == {"$ref": '$["café"]'}


def test_keys_with_quotes_are_escaped():
    shared = []
    result = decycle({'say "hi"': shared, "b": shared})
    assert result["b"] == {"$ref": '$["say \\"hi\\""]'}


def test_tuples_and_sets_become_lists():
    assert decycle((1, 2)) == [1, 2]
    assert decycle({"s": {3}}) == {"s": [3]}


def test_empty_tuples_are_never_references():
    assert decycle({"a": (), "b": ()}) == {"a": [], "b": []}


def test_pydantic_model_is_copied_field_by_field():
    author = Author(name="Ada", tags=["math"])
    assert decycle({"author": author}) == {"author": {"name": "Ada", "tags": ["math"]}}


def test_dataclass_cycle():
    root = Node("root")
    child = Node("child", parent=root)
    root.children.append(child)

    result = decycle(root)

    assert result == {
        "name": "root",
        "children": [{"name": "child", "children": [], "parent": {"$ref": "$"}}],
        "parent": None,
    }


def test_opaque_objects_pass_through():
    marker = object()
    assert decycle({"m": marker})["m"] is marker


def test_replacer_is_applied_to_every_value():
    def replacer(value):
        if isinstance(value, int):
            return value * 10
        return value

    assert decycle({"a": 1, "b": [2, 3]}, replacer) == {"a": 10, "b": [20, 30]}


def test_each_call_has_its_own_identity_map():
    shared = {"n": 1}
    first = decycle({"x": shared, "y": shared})
    second = decycle(shared)
    assert first["y"] == {REF_KEY: '$["x"]'}
    assert second == {"n": 1}


def test_is_ref():
    assert is_ref({"$ref": "$"})
    assert not is_ref({"$ref": 1})
    assert not is_ref({"$ref": "$", "other": 1})
    assert not is_ref(["$ref"])


def test_acyclic_values_round_trip_unchanged():
    value = {"a": [1, {"b": None}], "c": "d", "e": [[], {}]}
    assert decycle(copy.deepcopy(value)) == value
