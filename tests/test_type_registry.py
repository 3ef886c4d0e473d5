import functools
import logging
import types
import unittest
from typing import Optional, Protocol
from unittest.mock import MagicMock

import pytest

from litewire import (
    DependencyNotFoundError,
    FactoryProvider,
    InstanceProvider,
    Injector,
    NoDependencyForTypeNameError,
    RegistrationError,
    TypeMismatchError,
)


class Database:
    def __init__(self, name: str = "default-db"):
        self.name = name


class UserRepository:
    def __init__(self, db: Database):
        self.db = db


def new_db() -> Database:
    return Database(name="db")


class TestRegisterByType(unittest.TestCase):
    injector: Injector

    def setUp(self):
        self.injector = Injector()

    def test_instance_is_keyed_by_runtime_type(self):
        db = Database(name="test-db")
        self.injector.register_by_type(db)

        assert self.injector.has_type(Database)
        assert self.injector.resolve_by_type_exact(Database) is db

    def test_factory_is_keyed_by_declared_return_type(self):
        self.injector.register_by_type(new_db)

        assert isinstance(self.injector._by_type[Database], FactoryProvider)  # noqa: SLF001
        resolved = self.injector.resolve_by_type_exact(Database)
        assert resolved.name == "db"

    def test_factory_slot_becomes_instance_after_resolution(self):
        self.injector.register_by_type(new_db)

        resolved = self.injector.resolve_by_type_exact(Database)

        provider = self.injector._by_type[Database]  # noqa: SLF001
        assert isinstance(provider, InstanceProvider)
        assert provider.value is resolved
        assert self.injector.resolve_by_type_exact(Database) is resolved

    def test_class_is_keyed_by_itself(self):
        self.injector.register_by_type(Database)

        resolved = self.injector.resolve_by_type_exact(Database)
        assert resolved.name == "default-db"

    def test_optional_return_annotation_is_unwrapped(self):
        def maybe_db() -> Optional[Database]:
            return Database(name="maybe")

        self.injector.register_by_type(maybe_db)

        assert self.injector.resolve_by_type_exact(Database).name == "maybe"

    def test_partial_factory_uses_wrapped_return_type(self):
        def make_db(name: str) -> Database:
            return Database(name=name)

        self.injector.register_by_type(functools.partial(make_db, "partial-db"))

        assert self.injector.resolve_by_type_exact(Database).name == "partial-db"

    def test_factory_without_return_annotation_requires_key(self):
        with pytest.raises(RegistrationError, match="key="):
            self.injector.register_by_type(lambda: Database())

    def test_explicit_key_overrides_inferred_type(self):
        class Store(Protocol):
            name: str

        self.injector.register_by_type(lambda: Database(name="keyed"), key=Store)

        assert self.injector.resolve_type(Store).name == "keyed"

    def test_instance_with_unrelated_explicit_key_raises(self):
        class Cache: ...

        with pytest.raises(TypeMismatchError):
            self.injector.register_instance_by_type(Database(), key=Cache)

    def test_register_twice_resolves_latest(self):
        self.injector.register_by_type(Database(name="db1"))
        self.injector.register_by_type(Database(name="db2"))

        assert self.injector.resolve_by_type_exact(Database).name == "db2"

    def test_factory_dependencies_share_cached_instance(self):
        self.injector.register_by_type(new_db)

        def new_repo() -> UserRepository:
            return UserRepository(self.injector.resolve_type(Database))

        self.injector.register_by_type(new_repo)

        db = self.injector.resolve_type(Database)
        repo = self.injector.resolve_type(UserRepository)
        assert repo.db is db

    def test_exact_lookup_miss_raises_not_found(self):
        with pytest.raises(DependencyNotFoundError):
            self.injector.resolve_by_type_exact(Database)

    def test_factory_is_not_called_before_first_resolution(self):
        factory = MagicMock(return_value=Database(name="lazy"))
        self.injector.register_factory_by_type(factory, key=Database)

        assert factory.call_count == 0
        first = self.injector.resolve_by_type_exact(Database)
        second = self.injector.resolve_type(Database)
        assert factory.call_count == 1
        assert first is second

    def test_callable_returning_none_is_an_instance(self):
        def on_shutdown() -> None:
            pass

        self.injector.register_by_type(on_shutdown)

        assert self.injector.resolve_by_type_exact(types.FunctionType) is on_shutdown

    def test_generic_alias_key_is_not_name_indexed(self):
        dbs = [Database(name="a"), Database(name="b")]
        self.injector.register_instance_by_type(dbs, key=list[Database])

        assert self.injector.resolve_by_type_exact(list[Database]) is dbs
        assert self.injector.resolve_type(list[Database]) is dbs
        with pytest.raises(NoDependencyForTypeNameError):
            self.injector.resolve_by_type_name("Database]")
        with pytest.raises(NoDependencyForTypeNameError):
            self.injector.resolve_by_type_name("list")


class TestResolveByTypeName(unittest.TestCase):
    injector: Injector

    def setUp(self):
        self.injector = Injector()

    def test_bare_name_finds_instance(self):
        db = Database(name="test-db")
        self.injector.register_by_type(db)

        assert self.injector.resolve_by_type_name("Database") is db

    def test_bare_name_matches_exact_lookup(self):
        self.injector.register_by_type(new_db)

        by_name = self.injector.resolve_by_type_name("Database")
        by_type = self.injector.resolve_by_type_exact(Database)

        assert by_name is by_type

    def test_unknown_name_raises(self):
        with pytest.raises(NoDependencyForTypeNameError, match="Ghost"):
            self.injector.resolve_by_type_name("Ghost")

    def test_unknown_name_is_a_not_found_error(self):
        with pytest.raises(DependencyNotFoundError):
            self.injector.resolve_by_type_name("Ghost")

    def test_latest_registration_wins_shared_bare_name(self):
        class Other:
            pass

        Other.__name__ = Other.__qualname__ = "Database"
        other = Other()

        self.injector.register_by_type(Database(name="first"))
        with self.assertLogs("litewire._container", level=logging.WARNING):
            self.injector.register_by_type(other)

        assert self.injector.resolve_by_type_name("Database") is other
        assert self.injector.resolve_by_type_exact(Database).name == "first"


class TestResolveType(unittest.TestCase):
    injector: Injector

    def setUp(self):
        self.injector = Injector()

    def test_falls_back_to_bare_name_for_same_named_type(self):
        def local_types():
            class Database:
                name = "shadow"

            return Database

        shadow = local_types()
        self.injector.register_by_type(Database(name="db"))

        # different identity, same bare name; the value is not a `shadow`
        with pytest.raises(TypeMismatchError):
            self.injector.resolve_type(shadow)

    def test_string_annotation_is_matched_by_bare_name(self):
        self.injector.register_by_type(new_db)

        assert self.injector.resolve_type("app.models.Database").name == "db"

    def test_optional_annotation_resolves_inner_type(self):
        self.injector.register_by_type(new_db)

        assert self.injector.resolve_type(Optional[Database]).name == "db"

    def test_miss_names_the_type(self):
        with pytest.raises(DependencyNotFoundError, match="no dependency found for type"):
            self.injector.resolve_type(Database)
