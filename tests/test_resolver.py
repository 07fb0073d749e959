import pytest

from loaderkit import LoaderCache, LoaderStack, StackCycleError, resolve


def f1(value):
    return value


def f2(value):
    return value


def f3(value):
    return value


def test_flattens_names_depth_first_left_to_right():
    stack = LoaderStack()
    stack.set("a", f1)
    stack.set("b", f2, f3)

    assert resolve(stack, ["a", "b"]) == [f1, f2, f3]


def test_resolution_is_deterministic():
    stack = LoaderStack()
    stack.set("a", f1, "b")
    stack.set("b", [f2, [f3, "a2"]])
    stack.set("a2", f1)

    first = resolve(stack, "a", [f3])
    second = resolve(stack, "a", [f3])

    assert first == second
    assert [id(step) for step in first] == [id(step) for step in second]
    assert first == [f1, f2, f3, f1, f3]


def test_unknown_names_resolve_to_themselves():
    stack = LoaderStack()
    stack.set("a", f1, "missing")

    assert resolve(stack, "a") == [f1, "missing"]
    assert resolve(stack, "nothing") == ["nothing"]


def test_later_registrations_are_seen_by_new_resolutions():
    stack = LoaderStack()
    stack.set("outer", "inner")
    stack.set("inner", f1)
    assert resolve(stack, "outer") == [f1]

    stack.set("inner", f2)
    assert resolve(stack, "outer") == [f1, f2]


def test_repeated_references_are_not_cycles():
    stack = LoaderStack()
    stack.set("shared", f1)
    stack.set("left", "shared")
    stack.set("right", "shared")

    assert resolve(stack, "left", "right") == [f1, f1]


def test_self_reference_raises_cycle_error():
    stack = LoaderStack()
    stack.set("a", f1, "b")
    stack.set("b", "a")

    with pytest.raises(StackCycleError, match=r"a -> b -> a") as excinfo:
        resolve(stack, "a")
    assert excinfo.value.cycle == ("a", "b", "a")


def test_cycle_detection_can_be_disabled():
    stack = LoaderStack()
    stack.set("loop", "loop")

    with pytest.raises(RecursionError):
        resolve(stack, "loop", detect_cycles=False)


def test_engine_resolve_uses_the_detect_cycles_option():
    loaders = LoaderCache({"detect_cycles": False})
    loaders.register("loop", "loop")

    with pytest.raises(RecursionError):
        loaders.resolve("loop")


def test_engine_resolve_expands_first_and_last_hooks():
    loaders = LoaderCache()
    loaders.register("body", f2)
    loaders.first("body", f1)
    loaders.last("body", f3)

    assert loaders.resolve("body") == [f1, f2, f3]
