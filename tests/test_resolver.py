from __future__ import annotations

import pytest

from tests.helpers.view_models import AmbiguousViewModel, ShellViewModel
from view_actions import AmbiguousMatchError, MethodResolver, action


def test_resolves_public_instance_method():
    resolver = MethodResolver()
    vm = ShellViewModel()

    method = resolver.resolve(vm, "open")

    assert method is not None
    assert method.owner is ShellViewModel
    assert method.is_static is False
    assert method.parameter_count == 1
    method.bind(vm)("a.txt")
    assert vm.calls == [("open", "a.txt")]


def test_private_and_missing_names_do_not_resolve():
    resolver = MethodResolver()
    vm = ShellViewModel()

    assert resolver.resolve(vm, "_hidden") is None
    assert resolver.resolve(vm, "does_not_exist") is None
    # Data attributes are not actions.
    assert resolver.resolve(ShellViewModel, "resets") is None


def test_decorator_renames_the_action():
    resolver = MethodResolver()
    vm = ShellViewModel()

    method = resolver.resolve(vm, "ShowDialog")

    assert method is not None
    assert method.attribute == "show_dialog"
    assert resolver.resolve(vm, "show_dialog") is None


def test_type_target_binds_static_methods_only():
    resolver = MethodResolver()

    static = resolver.resolve(ShellViewModel, "reset_all")
    assert static is not None and static.is_static
    assert resolver.resolve(ShellViewModel, "save") is None
    # ... and an instance never sees static members.
    assert resolver.resolve(ShellViewModel(), "reset_all") is None


def test_classmethod_binds_to_the_type_target():
    class Registry:
        seen: list = []

        @classmethod
        def clear(cls, tag) -> None:
            cls.seen.append((cls, tag))

    resolver = MethodResolver()
    method = resolver.resolve(Registry, "clear")

    assert method is not None and method.is_classmethod
    assert method.parameter_count == 1
    method.bind(Registry)("x")
    assert Registry.seen == [(Registry, "x")]


def test_duplicate_action_names_are_ambiguous():
    resolver = MethodResolver()
    with pytest.raises(AmbiguousMatchError, match="save"):
        resolver.resolve(AmbiguousViewModel(), "save")


def test_inherited_methods_are_found():
    class Base:
        def close(self) -> None:
            pass

    class Derived(Base):
        @action
        def refresh(self) -> None:
            pass

    resolver = MethodResolver()
    assert resolver.resolve(Derived(), "close") is not None
    assert resolver.resolve(Derived(), "refresh") is not None


def test_register_builds_descriptor_once():
    resolver = MethodResolver()
    assert not resolver.is_registered(ShellViewModel)

    resolver.register(ShellViewModel)
    table = resolver.describe(ShellViewModel)

    assert resolver.is_registered(ShellViewModel)
    assert resolver.describe(ShellViewModel) is table
    assert {"save", "open", "ShowDialog", "reset_all"} <= set(table)

    resolver.forget(ShellViewModel)
    assert not resolver.is_registered(ShellViewModel)


def test_parameter_shape_excludes_receiver():
    class VM:
        def handler(self, sender, data=None, *rest, flag, other=1) -> None:
            pass

    method = MethodResolver().resolve(VM(), "handler")

    assert method is not None
    assert method.parameter_count == 2
    assert method.required_count == 1
    assert method.accepts_varargs is True
    assert method.required_keyword_only == ("flag",)
