"""
Name resolution for test bodies and fixture providers.

A callable declares the fixtures it wants through its keyword-only
parameters::

    async def test_login(client, *, db, user): ...      # wants db, user
    async def session(use, *, db): ...                   # depends on db

A ``**rest`` parameter is reported verbatim as the opaque token ``"**rest"``.
Annotations and default values never show up in the result.
"""
import ast
import inspect
import logging
import textwrap
from typing import Any, Callable, List, Optional, Union

from .exceptions import InvalidFixtureKey

logger = logging.getLogger(__name__)

REST_MARKER = "**"

_FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda]


def _first_function(tree: ast.AST) -> Optional[_FunctionNode]:
    candidates = [
        node for node in ast.walk(tree)
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda))
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda node: (node.lineno, node.col_offset))


def resolve_names(source: str) -> List[str]:
    """
    Extract the declared names of the first function found in ``source``.

    Args:
        source: Python source text containing a ``def``, ``async def`` or
            ``lambda``.

    Returns:
        Keyword-only parameter names in declaration order, followed by the
        ``**rest`` token if present. Unparsable input or input without a
        function yields an empty list.
    """
    if not source or not source.strip():
        return []
    try:
        tree = ast.parse(textwrap.dedent(source))
    except SyntaxError as e:
        logger.debug(f"Could not parse source for name resolution: {e}")
        return []

    node = _first_function(tree)
    if node is None:
        return []

    names = [arg.arg for arg in node.args.kwonlyargs]
    if node.args.kwarg is not None:
        names.append(f"{REST_MARKER}{node.args.kwarg.arg}")
    return names


def names_of(func: Callable[..., Any]) -> List[str]:
    """Same rules as :func:`resolve_names`, applied to a live callable's signature."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return []

    names: List[str] = []
    rest: Optional[str] = None
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.KEYWORD_ONLY:
            names.append(param.name)
        elif param.kind is inspect.Parameter.VAR_KEYWORD:
            rest = f"{REST_MARKER}{param.name}"
    if rest:
        names.append(rest)
    return names


def is_rest_token(name: str) -> bool:
    return name.startswith(REST_MARKER)


def validate_key(key: Any) -> None:
    """
    Reject fixture keys that are not simple identifiers.

    Raises:
        InvalidFixtureKey: If the key contains the rest marker or is not a
            valid Python identifier.
    """
    text = str(key)
    if REST_MARKER in text:
        raise InvalidFixtureKey(key)
    if not isinstance(key, str) or not key.isidentifier():
        raise InvalidFixtureKey(key, detail=f"Invalid fixture key {key!r}: fixture keys must be identifiers")
