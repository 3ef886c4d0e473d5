from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union


if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class InstanceProvider:
    """An already-built dependency, returned as is."""

    value: object


@dataclass(frozen=True)
class FactoryProvider:
    """A zero-argument factory, called once on first resolution."""

    factory: Callable[[], object]

    def create(self) -> object:
        return self.factory()


Provider = Union[InstanceProvider, FactoryProvider]
