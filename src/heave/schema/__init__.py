"""Schema resolution and IR construction.

This sub-package turns a raw OpenAPI schema into the two artefacts a
generated test file needs:

* :mod:`~heave.schema.resolver` -- ``$ref`` / composition resolution into an
  acyclic :data:`~heave.models.SchemaNode` tree, with cycle cutting.
* :mod:`~heave.schema.body` -- placeholder request body values.
* :mod:`~heave.schema.assertions` -- ordered response assertions.
* :mod:`~heave.schema.jsonpath` -- JSONPath helpers shared by the above.

Typical usage::

    from heave.schema import build_assertions, build_body, resolve_schema

    node = resolve_schema(schema, document, collector, location="POST /pet")
    body = build_body(node)
    asserts = build_assertions(node)
"""

from heave.schema.assertions import build_assertions
from heave.schema.body import build_body
from heave.schema.resolver import ResolutionContext, resolve, resolve_schema

__all__ = [
    "ResolutionContext",
    "build_assertions",
    "build_body",
    "resolve",
    "resolve_schema",
]
