"""Canonical Pydantic models shared across all heave modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Schema nodes** -- the resolved, acyclic form of an OpenAPI schema produced by
:func:`~heave.schema.resolver.resolve` and consumed by the body and assertion
builders: :class:`ScalarNode`, :class:`ObjectNode`, :class:`ArrayNode`,
:class:`CompositeNode` and :class:`OpaqueNode`, joined in the
:data:`SchemaNode` discriminated union.

**Generation IR** -- what the generator hands to the renderer:
    :class:`AssertionEntry`, :class:`Diagnostic`, :class:`OperationOutput`
    and :class:`GenerateResult`.

**Configuration models** -- :class:`GenerationFilters` and
:class:`GenerateConfig`, assembled by :func:`~heave.config.resolve_config`.

Schema nodes are frozen, so two trees built from the same schema compare equal
with ``==`` and cannot be modified after construction.
"""

from __future__ import annotations

import enum
import re
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Schema nodes ---


class Primitive(str, enum.Enum):
    """JSON Schema primitive types that resolve to a :class:`ScalarNode`."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class Composition(str, enum.Enum):
    """Composition keywords, valued by their OpenAPI spelling."""

    ALL_OF = "allOf"
    ANY_OF = "anyOf"
    ONE_OF = "oneOf"
    NOT = "not"


class _Node(BaseModel):
    """Fields common to every schema node.

    ``read_only`` and ``write_only`` come from the node's own declaration;
    composition never copies them onto sibling members.
    """

    model_config = ConfigDict(frozen=True)

    read_only: bool = False
    write_only: bool = False


class ScalarNode(_Node):
    """A string, integer, number, or boolean schema (enums included)."""

    kind: Literal["scalar"] = "scalar"
    primitive: Primitive
    format: Optional[str] = None
    example: Any = None


class ObjectNode(_Node):
    """An object schema.

    ``properties`` keeps declaration order. ``required`` only ever names keys
    present in ``properties``.
    """

    kind: Literal["object"] = "object"
    properties: dict[str, SchemaNode] = Field(default_factory=dict)
    required: frozenset[str] = frozenset()


class ArrayNode(_Node):
    """An array schema with a single ``items`` schema."""

    kind: Literal["array"] = "array"
    items: SchemaNode = Field(default_factory=lambda: OpaqueNode())


class CompositeNode(_Node):
    """An ``anyOf`` / ``oneOf`` alternative set.

    ``allOf`` is merged by the resolver and ``not`` becomes opaque, so in
    practice only the two alternative compositions appear here.
    """

    kind: Literal["composite"] = "composite"
    composition: Composition
    members: tuple[SchemaNode, ...] = ()


class OpaqueNode(_Node):
    """A schema with no usable shape: untyped, ``not``, unresolved, or a cut cycle."""

    kind: Literal["opaque"] = "opaque"


SchemaNode = Annotated[
    Union[ScalarNode, ObjectNode, ArrayNode, CompositeNode, OpaqueNode],
    Field(discriminator="kind"),
]

ObjectNode.model_rebuild()
ArrayNode.model_rebuild()
CompositeNode.model_rebuild()


# --- Diagnostics ---


class DiagnosticKind(str, enum.Enum):
    """Categories of non-fatal problems found while generating."""

    UNRESOLVED_REFERENCE = "UnresolvedReference"
    UNSUPPORTED_SCHEMA_KIND = "UnsupportedSchemaKind"
    MISSING_JSON_MEDIA_TYPE = "MissingJsonMediaType"
    CYCLE_DETECTED = "CycleDetected"
    MISSING_SCHEMA_DEFINITION = "MissingSchemaDefinition"
    UNSUPPORTED_STATUS_CODE_RANGE = "UnsupportedStatusCodeRange"
    MALFORMED_REFERENCE = "MalformedReference"


class Diagnostic(BaseModel):
    """A single non-fatal issue recorded by :class:`~heave.diagnostics.DiagnosticsCollector`.

    ``location`` identifies the operation (``"GET /pets (listPets)"``) and, for
    schema problems, the JSON path inside the body (``"... at $.owner"``).
    """

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    message: str
    location: str = ""
    reference: Optional[str] = None


# --- Generation IR ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects.

    Declaration order is the order operations are visited within a path.
    """

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class AssertionKind(str, enum.Enum):
    """Hurl ``jsonpath`` predicates emitted by the assertion builder."""

    EXISTS = "exists"
    IS_STRING = "isString"
    IS_INTEGER = "isInteger"
    IS_NUMBER = "isNumber"
    IS_BOOLEAN = "isBoolean"
    IS_COLLECTION = "isCollection"


class AssertionEntry(BaseModel):
    """One response assertion.

    Disabled entries are still emitted, commented out, so the user can
    enable them by hand once they know the field is always present.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    kind: AssertionKind
    enabled: bool = True

    def render(self) -> str:
        """Return the hurl assert line, e.g. ``#jsonpath "$.tags" isCollection``."""
        prefix = "" if self.enabled else "#"
        return f'{prefix}jsonpath "{self.path}" {self.kind.value}'


class OperationOutput(BaseModel):
    """Everything needed to render one ``.hurl`` file.

    ``request_body`` is a JSON-like value (dict, list, str, int, bool) or
    ``None`` when the operation has no usable JSON request body.
    """

    name: str
    method: str
    path: str
    expected_status_code: int
    header_parameters: list[str] = Field(default_factory=list)
    query_parameters: list[str] = Field(default_factory=list)
    media_type: Optional[str] = None
    request_body: Any = None
    assertions: list[AssertionEntry] = Field(default_factory=list)


class GenerateResult(BaseModel):
    """Outputs of a whole generation run plus every diagnostic, in emission order."""

    outputs: list[OperationOutput] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)


# --- Configuration ---


class GenerationFilters(BaseModel):
    """Optional regular expressions restricting which files are generated.

    Each pattern is matched with :func:`re.search`, so ``"^get"`` anchors and
    ``"pet"`` matches anywhere.
    """

    operation: Optional[str] = Field(
        default=None, description="Regex matched against the operation name"
    )
    path: Optional[str] = Field(
        default=None, description="Regex matched against the URL path template"
    )
    status: Optional[str] = Field(
        default=None, description="Regex matched against the status code"
    )

    @field_validator("operation", "path", "status")
    @classmethod
    def _check_regex(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as exc:
                raise ValueError(f"invalid regular expression {value!r}: {exc}") from exc
        return value

    def matches_operation(self, name: str, path: str) -> bool:
        """Return True if the operation name and path patterns (when set) both match."""
        return _search(self.operation, name) and _search(self.path, path)

    def matches_status(self, status_code: str) -> bool:
        """Return True if the status pattern (when set) matches."""
        return _search(self.status, status_code)


def _search(pattern: Optional[str], value: str) -> bool:
    return pattern is None or re.search(pattern, value) is not None


class GenerateConfig(BaseModel):
    """Effective settings for one ``heave generate`` run.

    Built by :func:`~heave.config.resolve_config` from CLI flags, ``HEAVE_*``
    environment variables, and the project-local ``heave.json``.
    """

    template: Optional[Path] = Field(
        default=None, description="Custom Jinja2 template file"
    )
    show_diagnostics: bool = False
    only_new: bool = Field(
        default=False, description="Skip files that already exist in the output directory"
    )
    filters: GenerationFilters = Field(default_factory=GenerationFilters)
