"""JSONPath expressions for response fields, in the dialect hurl accepts."""

from __future__ import annotations

import re

ROOT = "$"

_PLAIN_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


def child_path(parent: str, name: str) -> str:
    """Return the path of property *name* under *parent*.

    Names that dot notation cannot express (``@type``, ``$id``, ``a.b``)
    use bracket notation::

        >>> child_path("$", "name")
        '$.name'
        >>> child_path("$", "@type")
        "$['@type']"
    """
    if _PLAIN_NAME.match(name):
        return f"{parent}.{name}"
    escaped = name.replace("\\", "\\\\").replace("'", "\\'")
    return f"{parent}['{escaped}']"


def item_path(parent: str) -> str:
    """Return the path of the first element of the collection at *parent*."""
    return f"{parent}[0]"
