"""Type naming and introspection helpers.

The type registry is keyed by type identity; these helpers provide the
secondary, name-based view of the same keys:

- ``display_name`` renders a type key as ``module.qualname``.
- ``bare_name`` strips quoting, one indirection marker and any qualifying
  prefix, so ``"pkg.models.Database"`` and ``"'Database'"`` both match
  ``"Database"``.
"""

from __future__ import annotations

import functools
import inspect
import logging
import types
import typing
from typing import Any, ForwardRef, Protocol, Union, cast, get_args, get_origin, get_type_hints


logger = logging.getLogger(__name__)

_QUOTES = ("'", '"')


def display_name(tp: object) -> str:
    if isinstance(tp, str):
        return tp
    if isinstance(tp, ForwardRef):
        return tp.__forward_arg__
    if inspect.isclass(tp) and get_origin(tp) is None:
        module = getattr(tp, "__module__", "")
        if module in ("", "builtins"):
            return tp.__qualname__
        return f"{module}.{tp.__qualname__}"
    return repr(tp)


def bare_name(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] == text[0]:  # noqa: PLR2004
        text = text[1:-1]
    text = text.removeprefix("*")
    text, _, _ = text.partition("[")
    _, _, tail = text.rpartition(".")
    return tail


def unwrap_optional(tp: object) -> object:
    """Return ``X`` for ``Optional[X]`` / ``X | None``; anything else unchanged."""
    if get_origin(tp) not in (Union, types.UnionType):
        return tp

    args = [a for a in get_args(tp) if a is not type(None)]
    if len(args) == 1:
        return args[0]
    return tp


def get_hints(obj: object) -> dict[str, Any]:
    """Evaluate annotations, returning ``{}`` when they cannot be evaluated."""
    try:
        return get_type_hints(obj)
    except TypeError:
        return {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %r type hints", exc.name, obj)
        return {}


def declared_return_type(factory: object) -> object | None:
    """Type a factory declares it produces, or ``None`` when unknown."""
    if inspect.isclass(factory):
        return factory

    ret = _return_hint(factory)
    if ret is None or ret is type(None):
        return None
    return unwrap_optional(ret)


def call_hints(fn: object) -> dict[str, Any]:
    """Parameter annotations of whatever runs when ``fn`` is called."""
    return get_hints(_hint_target(fn))


def is_zero_arg_callable(obj: object) -> bool:
    """Whether ``obj`` can be called with no arguments and declares a result."""
    if obj is None or not callable(obj):
        return False

    try:
        sig = inspect.signature(obj)
    except (TypeError, ValueError):
        # classes without an own constructor on some interpreters
        return inspect.isclass(obj) and obj.__init__ is object.__init__

    if not inspect.isclass(obj) and _return_hint(obj) is type(None):
        return False

    return all(
        p.default is not inspect.Parameter.empty or p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        for p in sig.parameters.values()
    )


def can_check_instance(tp: object) -> bool:
    """Whether ``isinstance(value, tp)`` is a meaningful check."""
    if not inspect.isclass(tp) or get_origin(tp) is not None:
        return False
    if not _is_protocol(tp):
        return True

    try:
        isinstance(None, tp)
    except TypeError:
        return False
    else:
        return True


def _is_callable_object(obj: object) -> bool:
    return callable(obj) and not (
        inspect.isfunction(obj) or inspect.ismethod(obj) or inspect.isbuiltin(obj) or inspect.isclass(obj)
    )


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and issubclass(tp, cast("type", Protocol))


def _hint_target(obj: object) -> object:
    while isinstance(obj, functools.partial):
        obj = obj.func
    if inspect.isclass(obj):
        return inspect.getattr_static(obj, "__init__")
    if _is_callable_object(obj):
        return type(obj).__call__
    return obj


def _return_hint(obj: object) -> Any:
    return get_hints(_hint_target(obj)).get("return")
