"""Resolve raw OpenAPI schema objects into acyclic :data:`~heave.models.SchemaNode` trees.

The resolver is the only part of heave that follows schema ``$ref``
pointers. It walks a schema depth-first and returns a fresh, frozen node tree
in which:

* every ``$ref`` has been replaced by the node it points to,
* ``allOf`` has been merged into a single :class:`~heave.models.ObjectNode`,
* ``anyOf`` / ``oneOf`` are kept as :class:`~heave.models.CompositeNode`,
* anything without a usable shape is an :class:`~heave.models.OpaqueNode`.

Cycles are cut by tracking the reference strings on the *active* resolution
path in a :class:`ResolutionContext`. Re-entering a reference that is already
on the path yields an ``OpaqueNode`` and a ``CycleDetected`` diagnostic. Since
a reference string can appear at most once on the path, recursion depth is
bounded by the number of distinct references in the document.

Cycle identity is the reference string, not the schema's shape: two
different schemas reached through the same ``$ref`` on one path are treated
as a cycle.

Example::

    collector = DiagnosticsCollector()
    node = resolve_schema({"$ref": "#/components/schemas/Pet"}, document, collector)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from heave.diagnostics import DiagnosticsCollector
from heave.models import (
    ArrayNode,
    Composition,
    CompositeNode,
    DiagnosticKind,
    ObjectNode,
    OpaqueNode,
    Primitive,
    ScalarNode,
    SchemaNode,
)
from heave.parser.references import PointerError, lookup_pointer
from heave.schema.jsonpath import ROOT, child_path, item_path

_PRIMITIVES = frozenset(p.value for p in Primitive)


@dataclass
class ResolutionContext:
    """State for one top-level :func:`resolve` call.

    Child contexts are derived with :meth:`enter` and :meth:`at`; they share
    the document, the collector, and the set of already reported cycles, but
    each branch has its own ``active`` path so sibling properties that use
    the same reference do not interfere with each other.

    Attributes:
        document: The loaded OpenAPI document references are resolved against.
        diagnostics: The run's collector.
        location: Operation description used as the diagnostic location
            prefix (``"POST /pet (addPet)"``).
        json_path: Position of the schema being resolved inside the body.
        active: Reference strings currently being resolved on this branch.
        reported_cycles: References already reported as cycles during this
            top-level call, so each is reported once.
    """

    document: dict[str, Any]
    diagnostics: DiagnosticsCollector
    location: str = ""
    json_path: str = ROOT
    active: frozenset[str] = frozenset()
    reported_cycles: set[str] = field(default_factory=set)

    def enter(self, ref: str) -> ResolutionContext:
        """Return a context with *ref* added to the active path."""
        return replace(self, active=self.active | {ref})

    def at(self, json_path: str) -> ResolutionContext:
        """Return a context positioned at *json_path*."""
        return replace(self, json_path=json_path)

    @property
    def where(self) -> str:
        if self.location:
            return f"{self.location} at {self.json_path}"
        return self.json_path


def resolve_schema(
    schema: Any,
    document: dict[str, Any],
    diagnostics: DiagnosticsCollector,
    location: str = "",
) -> SchemaNode:
    """Resolve *schema* with a fresh :class:`ResolutionContext`.

    This is the entry point used by the generator. Calling it twice with the
    same arguments yields equal trees and records equal diagnostics.

    Args:
        schema: A schema object or ``{"$ref": ...}`` dict.
        document: The loaded OpenAPI document.
        diagnostics: Collector receiving non-fatal problems.
        location: Operation description used in diagnostics.

    Returns:
        The resolved node tree.
    """
    context = ResolutionContext(document=document, diagnostics=diagnostics, location=location)
    return resolve(schema, context)


def resolve(schema: Any, context: ResolutionContext) -> SchemaNode:
    """Resolve one schema object within an existing context.

    Args:
        schema: A schema object or ``{"$ref": ...}`` dict. Anything that is
            not a dict resolves to :class:`~heave.models.OpaqueNode`.
        context: The current resolution state.

    Returns:
        The resolved node. Never raises for malformed or unsupported schemas.
    """
    if not isinstance(schema, dict):
        return OpaqueNode()

    if "$ref" in schema:
        return _resolve_reference(schema, context)

    flags = _own_flags(schema)

    if "allOf" in schema:
        return _resolve_all_of(schema, context, flags)
    if "anyOf" in schema:
        return _resolve_alternatives(Composition.ANY_OF, schema["anyOf"], context, flags)
    if "oneOf" in schema:
        return _resolve_alternatives(Composition.ONE_OF, schema["oneOf"], context, flags)
    if "not" in schema:
        context.diagnostics.record(
            DiagnosticKind.UNSUPPORTED_SCHEMA_KIND,
            "Schemas using `not` have no structural meaning and are skipped",
            context.where,
        )
        return OpaqueNode(**flags)

    schema_type = _schema_type(schema)
    if schema_type in _PRIMITIVES:
        return ScalarNode(
            primitive=Primitive(schema_type),
            format=schema.get("format"),
            example=schema.get("example"),
            **flags,
        )
    if schema_type == "array":
        items_path = item_path(context.json_path)
        items = resolve(schema["items"], context.at(items_path)) if "items" in schema else OpaqueNode()
        return ArrayNode(items=items, **flags)
    if schema_type == "object" or (
        schema_type is None and isinstance(schema.get("properties"), dict)
    ):
        return _resolve_object(schema, context, flags)

    # Untyped (including untyped enums), "null", or an unknown type.
    return OpaqueNode(**flags)


def _resolve_reference(schema: dict[str, Any], context: ResolutionContext) -> SchemaNode:
    ref = schema["$ref"]
    if not isinstance(ref, str):
        context.diagnostics.record(
            DiagnosticKind.UNRESOLVED_REFERENCE,
            f"$ref must be a string, got {type(ref).__name__}",
            context.where,
        )
        return OpaqueNode()

    if ref in context.active:
        if ref not in context.reported_cycles:
            context.reported_cycles.add(ref)
            context.diagnostics.record(
                DiagnosticKind.CYCLE_DETECTED,
                f"Reference '{ref}' re-entered at {context.json_path}",
                context.where,
                reference=ref,
            )
        return OpaqueNode()

    try:
        target = lookup_pointer(ref, context.document)
    except PointerError as exc:
        context.diagnostics.record(
            DiagnosticKind.UNRESOLVED_REFERENCE, str(exc), context.where, reference=ref
        )
        return OpaqueNode()

    node = resolve(target, context.enter(ref))

    # OpenAPI 3.1 allows readOnly/writeOnly next to $ref.
    flags = _own_flags(schema)
    if flags["read_only"] or flags["write_only"]:
        node = node.model_copy(
            update={
                "read_only": node.read_only or flags["read_only"],
                "write_only": node.write_only or flags["write_only"],
            }
        )
    return node


def _resolve_object(
    schema: dict[str, Any], context: ResolutionContext, flags: dict[str, bool]
) -> ObjectNode:
    raw_properties = schema.get("properties")
    properties: dict[str, SchemaNode] = {}
    if isinstance(raw_properties, dict):
        for name, prop in raw_properties.items():
            name = str(name)
            properties[name] = resolve(prop, context.at(child_path(context.json_path, name)))

    required = frozenset(name for name in _required_names(schema) if name in properties)
    return ObjectNode(properties=properties, required=required, **flags)


def _resolve_all_of(
    schema: dict[str, Any], context: ResolutionContext, flags: dict[str, bool]
) -> SchemaNode:
    """Merge ``allOf`` members.

    Object members are merged by property union (a later member replaces an
    earlier property of the same name). Properties declared beside ``allOf``
    in the same schema count as one more, final, member. The ``required``
    lists of every member (through ``$ref``), of bare ``{"required": [...]}``
    members, and beside ``allOf`` are unioned and then limited to the merged
    property names.

    When no member is an object the last concrete member stands in for the
    whole composition, which covers the ``allOf: [{$ref: ...}]`` wrapper
    idiom for scalars and arrays.
    """
    members = schema["allOf"] if isinstance(schema["allOf"], list) else []
    nodes = [resolve(member, context) for member in members]

    if isinstance(schema.get("properties"), dict):
        own = {key: value for key, value in schema.items() if key != "allOf"}
        nodes.append(_resolve_object(own, context, flags))

    objects = [node for node in nodes if isinstance(node, ObjectNode)]
    if not objects:
        concrete = [node for node in nodes if not isinstance(node, OpaqueNode)]
        if not concrete:
            return OpaqueNode(**flags)
        chosen = concrete[-1]
        return chosen.model_copy(
            update={
                "read_only": chosen.read_only or flags["read_only"],
                "write_only": chosen.write_only or flags["write_only"],
            }
        )

    properties: dict[str, SchemaNode] = {}
    for obj in objects:
        properties.update(obj.properties)

    # Required names are checked against the merged properties, not each
    # member's own: a member may require a property declared by a sibling.
    declared = set(_required_names(schema))
    for member in members:
        declared |= _member_required(member, context, frozenset())
    required = frozenset(name for name in declared if name in properties)

    return ObjectNode(properties=properties, required=required, **flags)


def _resolve_alternatives(
    composition: Composition,
    members: Any,
    context: ResolutionContext,
    flags: dict[str, bool],
) -> CompositeNode:
    if not isinstance(members, list):
        members = []
    return CompositeNode(
        composition=composition,
        members=tuple(resolve(member, context) for member in members),
        **flags,
    )


def _own_flags(schema: dict[str, Any]) -> dict[str, bool]:
    return {
        "read_only": bool(schema.get("readOnly", False)),
        "write_only": bool(schema.get("writeOnly", False)),
    }


def _schema_type(schema: dict[str, Any]) -> Optional[str]:
    """Return the declared type, taking the first non-null entry of a 3.1 type list."""
    type_value = schema.get("type")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        return str(non_null[0]) if non_null else None
    if type_value is None:
        return None
    return str(type_value)


def _required_names(schema: dict[str, Any]) -> list[str]:
    required = schema.get("required")
    if not isinstance(required, list):
        return []
    return [str(name) for name in required]


def _member_required(
    member: Any, context: ResolutionContext, seen: frozenset[str]
) -> set[str]:
    """Collect the raw ``required`` names of an ``allOf`` member.

    ``$ref`` targets and nested ``allOf`` members are followed. References
    on the active path or already visited here contribute nothing, and
    broken references are left for :func:`resolve` to report.
    """
    if not isinstance(member, dict):
        return set()
    ref = member.get("$ref")
    if isinstance(ref, str):
        if ref in context.active or ref in seen:
            return set()
        try:
            target = lookup_pointer(ref, context.document)
        except PointerError:
            return set()
        return _member_required(target, context, seen | {ref})

    names = set(_required_names(member))
    nested = member.get("allOf")
    if isinstance(nested, list):
        for sub in nested:
            names |= _member_required(sub, context, seen)
    return names
