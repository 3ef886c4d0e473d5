from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar, cast

from ._errors import unwrap_or_abort


if TYPE_CHECKING:
    from ._container import Injector

T = TypeVar("T")


class TypedResolver(Generic[T]):
    """Resolver bound to a single target type.

    Example:
      db = TypedResolver(injector, Database).resolve()
      db = injector.typed(Database).must_resolve()

    """

    def __init__(self, injector: Injector, tp: type[T]) -> None:
        self._injector = injector
        self._type = tp

    def resolve(self) -> T:
        return cast("T", self._injector.resolve_type(self._type))

    def must_resolve(self) -> T:
        return unwrap_or_abort(self.resolve)

    def __repr__(self) -> str:
        return f"TypedResolver({getattr(self._type, '__name__', self._type)!r})"


def resolve_by_type(injector: Injector, tp: type[T]) -> T:
    return TypedResolver(injector, tp).resolve()


def must_resolve_by_type(injector: Injector, tp: type[T]) -> T:
    return TypedResolver(injector, tp).must_resolve()


get = resolve_by_type
must = must_resolve_by_type
