"""YAML mirror of the native record.

Same keys as the JSON format, so nothing is lost either way. Hand-written
outlines may leave out ids (they are generated) and may use `label` instead
of `content`.

Unquoted dates and times stay strings, so every parsed tree can also be
written as JSON.
"""

from __future__ import annotations

import datetime
import json

import yaml

from .errors import ParseError
from .models import TreeNode

FORMAT = "yaml"

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _Loader(yaml.SafeLoader):
    """SafeLoader that does not turn plain scalars into dates."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _json_default(value):
    # Explicitly tagged !!timestamp values
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    raise TypeError(f"unsupported value of type {type(value).__name__}")


def parse(text: str) -> TreeNode:
    """Parse YAML into a tree.

    Raises:
        ParseError: On YAML syntax errors, a document that is not a node, or
            values that have no JSON equivalent (sets, binary, recursive
            aliases).
    """
    try:
        data = yaml.load(text, Loader=_Loader)
    except yaml.YAMLError as e:
        raise ParseError(str(e), FORMAT) from e
    except RecursionError as e:
        raise ParseError("document is nested too deeply", FORMAT) from e
    if not isinstance(data, dict):
        raise ParseError("document is not a mapping", FORMAT)

    # Normalize to plain JSON data
    try:
        data = json.loads(json.dumps(data, default=_json_default))
    except (TypeError, ValueError) as e:
        raise ParseError(str(e), FORMAT) from e
    except RecursionError as e:
        raise ParseError("document is nested too deeply", FORMAT) from e

    try:
        return TreeNode.from_dict(data)
    except ParseError as e:
        raise ParseError(str(e), FORMAT) from e


def serialize(tree: TreeNode) -> str:
    """Serialize a tree to block-style YAML, keys in record order."""
    return yaml.safe_dump(
        tree.to_dict(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=10_000,
    )
