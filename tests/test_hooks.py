"""Tests for plume.hooks — filter and action registries."""

import pytest

from plume.hooks import BEFORE_MATCH, Hooks


class TestFilters:
    def test_unregistered_returns_value(self) -> None:
        hooks = Hooks()
        assert hooks.apply("missing", "value") == "value"

    def test_priority_order(self) -> None:
        hooks = Hooks()
        hooks.add_filter("t", lambda v: v + "1", priority=20)
        hooks.add_filter("t", lambda v: v + "2", priority=5)
        hooks.add_filter("t", lambda v: v + "3", priority=30)
        assert hooks.apply("t", "") == "213"

    def test_equal_priority_keeps_registration_order(self) -> None:
        hooks = Hooks()
        for ch in "abc":
            hooks.add_filter("t", lambda v, ch=ch: v + ch)
        assert hooks.apply("t", "") == "abc"

    def test_extra_args_passed_through(self) -> None:
        hooks = Hooks()
        seen: list[tuple[object, ...]] = []

        def record(value: int, *args: object) -> int:
            seen.append(args)
            return value + 1

        hooks.add_filter("t", record)
        hooks.add_filter("t", record)
        assert hooks.apply("t", 0, "req", 42) == 2
        assert seen == [("req", 42), ("req", 42)]

    def test_has_filter(self) -> None:
        hooks = Hooks()
        assert not hooks.has_filter(BEFORE_MATCH)
        hooks.add_filter(BEFORE_MATCH, lambda v, *a: v)
        assert hooks.has_filter(BEFORE_MATCH)
        assert hooks.registered_filters() == [BEFORE_MATCH]

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(TypeError, match="not callable"):
            Hooks().add_filter("t", "nope")  # type: ignore[arg-type]

    def test_registering_during_dispatch(self) -> None:
        hooks = Hooks()

        def first(value: str) -> str:
            hooks.add_filter("t", lambda v: v + "late")
            return value + "first"

        hooks.add_filter("t", first)
        assert hooks.apply("t", "") == "first"
        assert hooks.apply("t", "") == "firstlate"


class TestActions:
    def test_do_action_runs_in_order(self) -> None:
        hooks = Hooks()
        calls: list[str] = []
        hooks.add_action("ready", lambda site: calls.append(f"b:{site}"), priority=20)
        hooks.add_action("ready", lambda site: calls.append(f"a:{site}"), priority=1)
        hooks.do_action("ready", "s")
        assert calls == ["a:s", "b:s"]

    def test_unregistered_action_is_noop(self) -> None:
        Hooks().do_action("nothing", 1, 2)

    def test_registered_actions(self) -> None:
        hooks = Hooks()
        hooks.add_action("one", print)
        assert hooks.has_action("one")
        assert not hooks.has_filter("one")
        assert hooks.registered_actions() == ["one"]


class TestManagement:
    def test_remove_all(self) -> None:
        hooks = Hooks()
        hooks.add_filter("t", lambda v: v + 1)
        hooks.add_action("t", print)
        hooks.add_filter("keep", lambda v: v)
        hooks.remove_all("t")
        assert hooks.apply("t", 1) == 1
        assert not hooks.has_action("t")
        assert hooks.has_filter("keep")

    def test_reset(self) -> None:
        hooks = Hooks()
        hooks.add_filter("t", lambda v: v)
        hooks.add_action("a", print)
        hooks.reset()
        assert hooks.registered_filters() == []
        assert hooks.registered_actions() == []

    def test_instances_are_isolated(self) -> None:
        one, two = Hooks(), Hooks()
        one.add_filter("t", lambda v: v * 2)
        assert one.apply("t", 2) == 4
        assert two.apply("t", 2) == 2
