import pytest

from workstrap.errors import DuplicateNameError, UnknownStepError
from workstrap.registry import StepRegistry, required_config
from workstrap.steps.base import Step, step


def _noop_step(name, requires=()):
    return step(name, check=lambda ctx: True, action=lambda ctx: None, requires=requires)


def test_register_keeps_order():
    reg = StepRegistry([_noop_step("a"), _noop_step("b"), _noop_step("c")])
    assert reg.names() == ["a", "b", "c"]
    assert len(reg) == 3
    assert "b" in reg
    assert reg.get("c").name == "c"


def test_duplicate_name_leaves_registry_unchanged():
    reg = StepRegistry([_noop_step("a")])
    first = reg.get("a")

    with pytest.raises(DuplicateNameError, match="Step already registered: a"):
        reg.register(_noop_step("a"))

    assert reg.names() == ["a"]
    assert reg.get("a") is first


def test_all_is_replayable():
    reg = StepRegistry([_noop_step("a"), _noop_step("b")])
    assert [s.name for s in reg.all()] == [s.name for s in reg.all()]
    assert [s.name for s in reg] == ["a", "b"]
    assert [s.name for s in reg] == ["a", "b"]


def test_empty_registry():
    reg = StepRegistry()
    assert reg.all() == ()
    assert reg.select() == ()


def test_select_only_and_skip_preserve_order():
    reg = StepRegistry([_noop_step(n) for n in ("a", "b", "c", "d")])

    assert [s.name for s in reg.select(only=["d", "b"])] == ["b", "d"]
    assert [s.name for s in reg.select(skip=["a"])] == ["b", "c", "d"]
    assert [s.name for s in reg.select(only=["a", "b"], skip=["a"])] == ["b"]


def test_select_unknown_names():
    reg = StepRegistry([_noop_step("a")])

    with pytest.raises(UnknownStepError) as exc:
        reg.select(only=["zz", "a"], skip=["yy"])
    assert exc.value.names == ("yy", "zz")


def test_required_config_union():
    steps = [_noop_step("a", ["hostname"]), _noop_step("b", ["token", "hostname"]), _noop_step("c")]
    assert required_config(steps) == frozenset({"hostname", "token"})
    assert required_config([]) == frozenset()


def test_step_validation():
    with pytest.raises(ValueError, match="Invalid step name"):
        _noop_step("Bad Name")
    with pytest.raises(ValueError, match="unknown configuration"):
        _noop_step("a", ["password"])


def test_step_normalizes_iterables():
    s = Step(name="a", check=lambda c: True, action=lambda c: None, requires=["token"], prerequisites=["x"])
    assert s.requires == frozenset({"token"})
    assert s.prerequisites == ("x",)
