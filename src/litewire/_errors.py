from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    T = TypeVar("T")


class LitewireError(Exception):
    """Base class for every error raised by litewire."""


class RegistrationError(LitewireError, ValueError):
    pass


class ResolutionError(LitewireError, RuntimeError):
    """Recoverable failure while resolving or wiring a dependency."""


class DependencyNotFoundError(ResolutionError):
    def __init__(self, key: object, msg: str | None = None) -> None:
        self.key = key
        if msg is None:
            msg = f"dependency {key!r} not found"
        super().__init__(msg)


class NoDependencyForTypeNameError(DependencyNotFoundError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name, f"no dependency found for type name {name!r}")


class TypeMismatchError(ResolutionError):
    def __init__(self, target: object, actual: object) -> None:
        self.target = target
        self.actual = actual
        target_name = getattr(target, "__name__", repr(target))
        msg = f"resolved {type(actual).__name__} is not assignable to {target_name}"
        super().__init__(msg)


class FactoryReturnedNothingError(ResolutionError):
    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f"factory registered for {key!r} returned nothing")


class InvalidTargetError(ResolutionError):
    pass


class NilTargetError(InvalidTargetError):
    def __init__(self) -> None:
        super().__init__("resolve_into target cannot be None")


class InvocationError(ResolutionError):
    pass


class NilFunctionError(InvocationError):
    def __init__(self) -> None:
        super().__init__("invoke target cannot be None")


class NotCallableError(InvocationError):
    def __init__(self, obj: object) -> None:
        self.obj = obj
        super().__init__(f"invoke target {type(obj).__name__} is not callable")


class MissingParameterError(InvocationError):
    def __init__(self, annotation: object, position: int, name: str) -> None:
        self.annotation = annotation
        self.position = position
        self.name = name
        ann_repr = getattr(annotation, "__name__", repr(annotation))
        msg = f"cannot resolve parameter {position} '{name}' (annotation: {ann_repr})"
        super().__init__(msg)


class FatalResolutionError(LitewireError):
    """Escalated wiring failure raised by the ``must_*`` helpers.

    Deliberately not a :class:`ResolutionError`: handlers for recoverable
    errors must not catch it. The wrapped error is kept on ``error``.
    """

    def __init__(self, error: ResolutionError) -> None:
        self.error = error
        super().__init__(f"unrecoverable wiring error: {error}")


def unwrap_or_abort(fn: Callable[..., T], *args: Any) -> T:
    """Call ``fn`` and turn any :class:`ResolutionError` into a fatal abort."""
    try:
        return fn(*args)
    except ResolutionError as exc:
        logger.critical("Aborting on unresolved dependency: %s", exc)
        raise FatalResolutionError(exc) from exc
