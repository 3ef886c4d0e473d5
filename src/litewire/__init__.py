"""Lightweight dependency injection container.

Dependencies are registered either under an explicit name or keyed by type,
as a ready instance or as a zero-argument factory. Factories run lazily on
first resolution and their result is cached, so every dependency is a
singleton for the lifetime of its injector.

Exports:
- `Injector`: the container, with name- and type-based registration,
  resolution, `invoke` auto-wiring and `resolve_into` attribute injection.
- `TypedResolver`, `resolve_by_type`, `must_resolve_by_type`, `get`, `must`:
  resolution bound to a target type.
- `unwrap_or_abort`: escalate a recoverable resolution error into a
  `FatalResolutionError`.
"""

from ._container import Injector
from ._errors import (
    DependencyNotFoundError,
    FactoryReturnedNothingError,
    FatalResolutionError,
    InvalidTargetError,
    InvocationError,
    LitewireError,
    MissingParameterError,
    NilFunctionError,
    NilTargetError,
    NoDependencyForTypeNameError,
    NotCallableError,
    RegistrationError,
    ResolutionError,
    TypeMismatchError,
    unwrap_or_abort,
)
from ._providers import FactoryProvider, InstanceProvider
from ._typed import TypedResolver, get, must, must_resolve_by_type, resolve_by_type
from ._typenames import bare_name, display_name


__all__ = [
    "DependencyNotFoundError",
    "FactoryProvider",
    "FactoryReturnedNothingError",
    "FatalResolutionError",
    "Injector",
    "InstanceProvider",
    "InvalidTargetError",
    "InvocationError",
    "LitewireError",
    "MissingParameterError",
    "NilFunctionError",
    "NilTargetError",
    "NoDependencyForTypeNameError",
    "NotCallableError",
    "RegistrationError",
    "ResolutionError",
    "TypeMismatchError",
    "TypedResolver",
    "bare_name",
    "display_name",
    "get",
    "must",
    "must_resolve_by_type",
    "resolve_by_type",
    "unwrap_or_abort",
]
