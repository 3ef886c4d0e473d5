from __future__ import annotations

import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, ForwardRef, TypeVar, get_origin, overload

from ._errors import (
    DependencyNotFoundError,
    FactoryReturnedNothingError,
    InvalidTargetError,
    MissingParameterError,
    NilFunctionError,
    NilTargetError,
    NoDependencyForTypeNameError,
    NotCallableError,
    RegistrationError,
    TypeMismatchError,
    unwrap_or_abort,
)
from ._providers import FactoryProvider, InstanceProvider
from ._typed import TypedResolver
from ._typenames import (
    bare_name,
    call_hints,
    can_check_instance,
    declared_return_type,
    display_name,
    get_hints,
    is_zero_arg_callable,
    unwrap_optional,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, MutableMapping

    from ._providers import Provider

    T = TypeVar("T")


class Injector:
    """Dependency injection container with a name registry and a type registry.

    - ``register`` / ``resolve``: dependencies keyed by an explicit name
    - ``register_by_type`` / ``resolve_type``: dependencies keyed by type, with
      a bare type name fallback (``"Database"`` for ``app.db.Database``)
    - factories run once, on first resolution, and their result is cached
    - ``invoke`` / ``resolve_into``: wire callables and attributes from the
      type registry.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self._by_name: dict[str, Provider] = {}
        self._by_type: dict[Any, Provider] = {}
        self._type_names: dict[str, Any] = {}
        self._strict = strict
        self._lock = threading.RLock()

    # -- name registry ---------------------------------------------------

    def register(self, name: str, dependency: object) -> None:
        """Register ``dependency`` under ``name``, replacing any previous entry.

        Zero-argument callables are stored as factories, anything else as an
        instance. Use :meth:`register_instance` to store a callable as a value.

        Example:
          injector.register("database", make_database)
          injector.register("settings", Settings(debug=True))

        """
        if is_zero_arg_callable(dependency):
            self._store_name(name, dependency, FactoryProvider(dependency))  # type: ignore[arg-type]
        else:
            self._store_name(name, dependency, InstanceProvider(dependency))

    def register_instance(self, name: str, value: object) -> None:
        self._store_name(name, value, InstanceProvider(value))

    def register_factory(self, name: str, factory: Callable[[], object]) -> None:
        self._check_source(factory, name)
        if not callable(factory):
            msg = f"Factory registered as {name!r} must be callable, got {type(factory).__name__}"
            raise RegistrationError(msg)
        self._store_name(name, factory, FactoryProvider(factory))

    def resolve(self, name: str) -> object:
        """Resolve ``name``, running and caching its factory on first use."""
        with self._lock:
            provider = self._by_name.get(name)
            if provider is None:
                raise DependencyNotFoundError(name)
            return self._materialize(self._by_name, name, provider)

    def must_resolve(self, name: str) -> object:
        """Like :meth:`resolve`, but a missing dependency is a fatal wiring error."""
        return unwrap_or_abort(self.resolve, name)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._by_name

    # -- type registry ---------------------------------------------------

    def register_by_type(self, dependency: object, *, key: Any = None) -> None:
        """Register ``dependency`` keyed by type.

        A zero-argument factory is keyed by its declared return type, an
        instance by its runtime type. ``key`` overrides the inferred type.
        """
        if is_zero_arg_callable(dependency):
            self.register_factory_by_type(dependency, key=key)  # type: ignore[arg-type]
        else:
            self.register_instance_by_type(dependency, key=key)

    def register_instance_by_type(self, value: object, *, key: Any = None) -> None:
        self._check_source(value)

        if key is None:
            key = type(value)
        elif can_check_instance(key) and not isinstance(value, key):
            raise TypeMismatchError(key, value)

        self._store_type(key, InstanceProvider(value))

    def register_factory_by_type(self, factory: Callable[[], object], *, key: Any = None) -> None:
        self._check_source(factory)
        if not callable(factory):
            msg = f"Factory must be callable, got {type(factory).__name__}"
            raise RegistrationError(msg)

        if key is None:
            key = declared_return_type(factory)
            if key is None:
                msg = (
                    f"Cannot determine the return type of factory {factory!r}. "
                    "Annotate its return type or pass key=."
                )
                raise RegistrationError(msg)

        self._store_type(key, FactoryProvider(factory))

    def resolve_by_type_exact(self, tp: type[T]) -> T:
        """Resolve by type identity only, without the bare name fallback."""
        with self._lock:
            provider = self._by_type.get(tp)
            if provider is None:
                raise DependencyNotFoundError(tp)
            return self._materialize(self._by_type, tp, provider)  # type: ignore[return-value]

    def resolve_by_type_name(self, name: str) -> object:
        """Resolve the type registration whose bare name is ``name``."""
        with self._lock:
            key = self._type_names.get(name)
            if key is None:
                raise NoDependencyForTypeNameError(name)
            return self._materialize(self._by_type, key, self._by_type[key])

    @overload
    def resolve_type(self, tp: type[T]) -> T: ...

    @overload
    def resolve_type(self, tp: object) -> object: ...

    def resolve_type(self, tp: object) -> object:
        """Resolve ``tp`` by exact type, falling back to its bare name.

        The resolved value must be an instance of ``tp`` whenever that can be
        checked at runtime. ``Optional[X]`` resolves ``X``; string annotations
        are matched by bare name.
        """
        target = unwrap_optional(tp)
        with self._lock:
            key = self._lookup_type_key(target)
            if key is None:
                msg = f"no dependency found for type {display_name(target)}"
                raise DependencyNotFoundError(target, msg)
            value = self._materialize(self._by_type, key, self._by_type[key])

        if can_check_instance(target) and not isinstance(value, target):  # type: ignore[arg-type]
            raise TypeMismatchError(target, value)
        return value

    def must_resolve_type(self, tp: type[T]) -> T:
        return unwrap_or_abort(self.resolve_type, tp)

    def typed(self, tp: type[T]) -> TypedResolver[T]:
        return TypedResolver(self, tp)

    def has_type(self, tp: object) -> bool:
        with self._lock:
            return self._lookup_type_key(unwrap_optional(tp)) is not None

    # -- wiring ----------------------------------------------------------

    def resolve_into(self, target: object, attribute: str) -> None:
        """Resolve the annotated type of ``target.attribute`` and assign it.

        Example:
          class Handler:
              db: Database

          injector.resolve_into(handler, "db")

        """
        if target is None:
            raise NilTargetError

        annotation = _attribute_annotation(type(target), attribute)
        if annotation is None:
            msg = f"{type(target).__name__}.{attribute} has no type annotation to resolve"
            raise InvalidTargetError(msg)

        value = self.resolve_type(annotation)
        try:
            setattr(target, attribute, value)
        except (AttributeError, TypeError) as e:
            msg = f"Cannot assign {type(target).__name__}.{attribute}: {e}"
            raise InvalidTargetError(msg) from e

    def invoke(self, fn: Callable[..., T]) -> T:
        """Call ``fn`` with every parameter resolved from the injector.

        Resolution precedence per parameter:
        1. type registration (exact type, then bare type name)
        2. name registration matching the parameter name
        3. default
        4. error.

        An exception *returned* by ``fn``, alone or as the last item of a
        returned tuple (``return value, err``), is raised, so callables written
        in the return-an-error style fail the same way as ones that raise.
        Classes are exempt: ``invoke(SomeError)`` returns the new instance.
        """
        if fn is None:
            raise NilFunctionError
        if not callable(fn):
            raise NotCallableError(fn)

        args, kwargs = self._wire_arguments(fn)
        logger.debug("Invoking %r with %d wired arguments", fn, len(args) + len(kwargs))
        result = fn(*args, **kwargs)

        # constructor injection: an Exception subclass builds, not fails
        if inspect.isclass(fn):
            return result

        error = result[-1] if isinstance(result, tuple) and result else result
        if isinstance(error, Exception):
            raise error
        return result

    def _wire_arguments(self, fn: Callable[..., object]) -> tuple[list[Any], dict[str, Any]]:
        try:
            sig = inspect.signature(fn)
        except (TypeError, ValueError) as e:
            raise NotCallableError(fn) from e

        hints = call_hints(fn)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for position, p in enumerate(sig.parameters.values()):
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            value = self._resolve_parameter(position, p, hints)
            if p.kind is p.KEYWORD_ONLY:
                kwargs[p.name] = value
            else:
                args.append(value)

        return args, kwargs

    def _resolve_parameter(self, position: int, p: inspect.Parameter, hints: dict[str, Any]) -> Any:
        ann = hints.get(p.name, p.annotation)

        # 1) type-based
        if ann is not inspect.Parameter.empty and self.has_type(ann):
            return self.resolve_type(ann)

        # 2) name-based
        if self.has(p.name):
            return self.resolve(p.name)

        # 3) default
        if p.default is not inspect.Parameter.empty:
            return p.default

        # 4) error
        raise MissingParameterError(None if ann is inspect.Parameter.empty else ann, position, p.name)

    # -- internals -------------------------------------------------------

    def _check_source(self, dependency: object, name: str | None = None) -> None:
        if not self._strict:
            return

        if name == "":
            msg = "name cannot be empty"
            raise RegistrationError(msg)

        if dependency is None:
            msg = "source cannot be None"
            raise RegistrationError(msg)

    def _store_name(self, name: str, dependency: object, provider: Provider) -> None:
        self._check_source(dependency, name)
        with self._lock:
            self._by_name[name] = provider
        logger.debug("Registered %s for name %r", type(provider).__name__, name)

    def _store_type(self, key: Any, provider: Provider) -> None:
        name = bare_name(display_name(key))
        logger.debug("Registering %s for type %s", type(provider).__name__, display_name(key))
        with self._lock:
            self._by_type[key] = provider

            # generic aliases (list[X], Annotated[...]) resolve by exact key only
            if not inspect.isclass(key) or get_origin(key) is not None:
                return

            previous = self._type_names.get(name)
            if previous is not None and previous != key:
                logger.warning(
                    "Type name %r now resolves to %s, shadowing %s",
                    name,
                    display_name(key),
                    display_name(previous),
                )
            self._type_names[name] = key

    def _lookup_type_key(self, tp: object) -> Any:
        if isinstance(tp, (str, ForwardRef)):
            return self._type_names.get(bare_name(display_name(tp)))

        try:
            if tp in self._by_type:
                return tp
        except TypeError:  # unhashable annotation
            pass
        return self._type_names.get(bare_name(display_name(tp)))

    def _materialize(self, registry: MutableMapping[Any, Provider], key: Any, provider: Provider) -> object:
        # callers hold self._lock, so a factory runs at most once per slot
        if isinstance(provider, InstanceProvider):
            return provider.value

        logger.debug("Creating dependency %r from factory", key)
        instance = provider.create()
        if instance is None:
            raise FactoryReturnedNothingError(key)

        registry[key] = InstanceProvider(instance)
        return instance


def _attribute_annotation(cls: type, attribute: str) -> Any:
    hints = get_hints(cls)
    if attribute in hints:
        return hints[attribute]

    # unevaluated annotations are still usable for bare name matching
    for klass in cls.__mro__:
        annotations = inspect.get_annotations(klass)
        if attribute in annotations:
            return annotations[attribute]
    return None
