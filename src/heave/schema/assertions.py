"""Build ordered response assertions from resolved schema nodes.

Each :class:`~heave.models.AssertionEntry` becomes one ``jsonpath`` line in
the ``[Asserts]`` section of a generated hurl file. Entries are emitted in
schema declaration order, and that order is part of the output contract.

An assertion is *enabled* only when the field is guaranteed to be present:

* a property is enabled iff it is required and every enclosing property is
  enabled too;
* an array's ``isCollection`` check ignores whether the array property itself
  is required and follows its parent's state instead (at an object root,
  like ``$.tags`` on a Pet, this is always enabled; keep it tied to the
  parent so arrays under optional properties stay disabled);
* anything below an array element (``$.tags[0]...``) is disabled, since the
  array may be empty;
* members of ``anyOf`` / ``oneOf`` are all disabled, since only one of them
  applies to a given response.

``writeOnly`` fields never appear in responses and produce nothing.
"""

from __future__ import annotations

from heave.models import (
    ArrayNode,
    AssertionEntry,
    AssertionKind,
    CompositeNode,
    ObjectNode,
    OpaqueNode,
    Primitive,
    ScalarNode,
    SchemaNode,
)
from heave.schema.jsonpath import ROOT, child_path, item_path

_SCALAR_KINDS: dict[Primitive, AssertionKind] = {
    Primitive.STRING: AssertionKind.IS_STRING,
    Primitive.INTEGER: AssertionKind.IS_INTEGER,
    Primitive.NUMBER: AssertionKind.IS_NUMBER,
    Primitive.BOOLEAN: AssertionKind.IS_BOOLEAN,
}


def build_assertions(
    node: SchemaNode,
    path: str = ROOT,
    ancestor_enabled: bool = True,
) -> list[AssertionEntry]:
    """Return the assertions for a response body described by *node*.

    The first entry is always an enabled ``exists`` check on *path*. For an
    object body the properties follow directly; any other body kind gets its
    own type check first.

    Args:
        node: The resolved response schema.
        path: JSONPath of the body, ``$`` for a whole response.
        ancestor_enabled: Whether the body itself is guaranteed present.

    Returns:
        Assertions in declaration order.
    """
    entries = [AssertionEntry(path=path, kind=AssertionKind.EXISTS, enabled=True)]
    if node.write_only:
        return entries
    if isinstance(node, ObjectNode):
        entries.extend(_object_properties(node, path, ancestor_enabled))
    else:
        entries.extend(_node_entries(node, path, ancestor_enabled, ancestor_enabled))
    return entries


def _node_entries(
    node: SchemaNode, path: str, enabled: bool, parent_enabled: bool
) -> list[AssertionEntry]:
    """Assertions for *node* at *path*: its own type check, then its children."""
    if node.write_only:
        return []

    if isinstance(node, ScalarNode):
        return [AssertionEntry(path=path, kind=_SCALAR_KINDS[node.primitive], enabled=enabled)]

    if isinstance(node, ObjectNode):
        entries = [AssertionEntry(path=path, kind=AssertionKind.IS_COLLECTION, enabled=enabled)]
        entries.extend(_object_properties(node, path, enabled))
        return entries

    if isinstance(node, ArrayNode):
        entries = [
            AssertionEntry(path=path, kind=AssertionKind.IS_COLLECTION, enabled=parent_enabled)
        ]
        entries.extend(_node_entries(node.items, item_path(path), False, False))
        return entries

    if isinstance(node, CompositeNode):
        return _alternatives(node, path)

    if isinstance(node, OpaqueNode):
        return []

    raise TypeError(f"Unhandled schema node: {type(node).__name__}")


def _object_properties(node: ObjectNode, path: str, enabled: bool) -> list[AssertionEntry]:
    entries: list[AssertionEntry] = []
    for name, prop in node.properties.items():
        prop_enabled = enabled and name in node.required
        entries.extend(_node_entries(prop, child_path(path, name), prop_enabled, enabled))
    return entries


def _alternatives(node: CompositeNode, path: str) -> list[AssertionEntry]:
    """Union of every concrete member's assertions, all disabled, first occurrence kept."""
    entries: list[AssertionEntry] = []
    seen: set[tuple[str, AssertionKind]] = set()
    for member in node.members:
        if isinstance(member, OpaqueNode):
            continue
        for entry in _node_entries(member, path, False, False):
            key = (entry.path, entry.kind)
            if key not in seen:
                seen.add(key)
                entries.append(entry)
    return entries
