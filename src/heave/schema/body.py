"""Build placeholder request bodies from resolved schema nodes.

The value produced here is what ends up, pretty-printed as JSON, in the
request section of a generated hurl file. Every scalar gets a neutral
placeholder (``""``, ``0``, ``false``) for the user to fill in.

``None`` means "no value": the caller omits the field or slot entirely. It is
never rendered as JSON ``null``.
"""

from __future__ import annotations

from typing import Any, Optional

from heave.models import (
    ArrayNode,
    CompositeNode,
    ObjectNode,
    OpaqueNode,
    Primitive,
    ScalarNode,
    SchemaNode,
)

_PLACEHOLDERS: dict[Primitive, Any] = {
    Primitive.STRING: "",
    Primitive.INTEGER: 0,
    Primitive.NUMBER: 0,
    Primitive.BOOLEAN: False,
}


def build_body(node: SchemaNode) -> Optional[Any]:
    """Return the placeholder value for *node*, or ``None`` if it has none.

    * scalars become their primitive's placeholder;
    * objects keep property declaration order and drop ``readOnly``
      properties and properties without a value;
    * arrays hold a single placeholder element, or are empty when the item
      schema has no value;
    * ``anyOf`` / ``oneOf`` take the first member that has a value;
    * opaque nodes and ``readOnly`` nodes have no value.
    """
    if node.read_only:
        return None

    if isinstance(node, ScalarNode):
        return _PLACEHOLDERS[node.primitive]

    if isinstance(node, ObjectNode):
        value: dict[str, Any] = {}
        for name, prop in node.properties.items():
            prop_value = build_body(prop)
            if prop_value is not None:
                value[name] = prop_value
        return value

    if isinstance(node, ArrayNode):
        item = build_body(node.items)
        return [] if item is None else [item]

    if isinstance(node, CompositeNode):
        for member in node.members:
            if isinstance(member, OpaqueNode):
                continue
            member_value = build_body(member)
            if member_value is not None:
                return member_value
        return None

    if isinstance(node, OpaqueNode):
        return None

    raise TypeError(f"Unhandled schema node: {type(node).__name__}")
