import logging

import pytest

from thds.tramp import DynamicVariable, OverlayBinding, overlay, tramp
from thds.tramp.composer import bindings_of


def test_single_variable(foo_bar):
    FOO, BAR = foo_bar

    with overlay({FOO: 100}):
        assert FOO() == 100
        assert BAR() == ""

    assert FOO() == 0
    assert BAR() == ""


def test_two_variables(foo_bar):
    FOO, BAR = foo_bar

    with overlay({FOO: 1, BAR: "A"}):
        assert FOO() == 1
        assert BAR() == "A"

    assert FOO() == 0
    assert BAR() == ""


def test_restores_after_the_block_raises_and_propagates_the_same_error(foo_bar):
    FOO, BAR = foo_bar
    err = ZeroDivisionError("no")

    def block():
        assert FOO() == 1
        raise err

    with pytest.raises(ZeroDivisionError) as caught:
        tramp({FOO: 1, BAR: "A"}, block)

    assert caught.value is err
    assert (FOO(), BAR()) == (0, "")


def test_tramp_returns_what_the_block_returns(foo_bar):
    FOO, BAR = foo_bar

    def block(times, sep=""):
        return sep.join([BAR()] * times * FOO())

    assert tramp({FOO: 2, BAR: "ab"}, block, 2, sep="-") == "ab-ab-ab-ab"
    assert (FOO(), BAR()) == (0, "")


def test_many_variables_are_the_same_as_nested_single_overlays(foo_bar):
    FOO, BAR = foo_bar

    def observe():
        return FOO(), BAR(), FOO.depth(), BAR.depth()

    together = tramp({FOO: 7, BAR: "x"}, observe)
    nested = tramp({FOO: 7}, lambda: tramp({BAR: "x"}, observe))
    assert together == nested == (7, "x", 1, 1)
    assert (FOO(), BAR()) == (0, "")


def test_lifo_nesting(foo_bar):
    A, B = foo_bar

    with overlay({A: 1, B: "b1"}):
        with overlay({B: "b2"}):
            assert B() == "b2"
            assert A() == 1
        assert B() == "b1"
        assert A() == 1
    assert A() == 0
    assert B() == ""


def test_installs_in_order_and_restores_in_reverse():
    events = list()

    def recording(tag):
        def capture(value):
            events.append(("install", tag))
            return value

        return capture

    class Recorder(DynamicVariable):
        def restore(self, previous):
            events.append(("restore", self.name))
            super().restore(previous)

    a = Recorder("a", 0, capture=recording("a"))
    b = Recorder("b", 0, capture=recording("b"))
    c = Recorder("c", 0, capture=recording("c"))

    with overlay([(a, 1), (b, 2), (c, 3)]):
        events.append(("block", ""))

    assert events == [
        ("install", "a"),
        ("install", "b"),
        ("install", "c"),
        ("block", ""),
        ("restore", "c"),
        ("restore", "b"),
        ("restore", "a"),
    ]


def test_a_failed_install_still_restores_the_earlier_bindings(foo_bar):
    FOO, BAR = foo_bar

    def uncopyable(value):
        raise TypeError("cannot capture")

    BAZ = DynamicVariable("BAZ", 0.5, capture=uncopyable)
    ran = list()

    with pytest.raises(TypeError, match="cannot capture"):
        with overlay({FOO: 1, BAR: "A", BAZ: 1.5}):
            ran.append(True)

    assert not ran
    assert (FOO(), BAR(), BAZ()) == (0, "", 0.5)
    assert FOO.depth() == BAR.depth() == BAZ.depth() == 0


def test_the_same_variable_twice_nests(foo_bar):
    FOO, _ = foo_bar

    with overlay([(FOO, 1), (FOO, 2)]):
        assert FOO() == 2
        assert FOO.depth() == 2
    assert FOO() == 0


def test_non_variable_keys_are_rejected_before_anything_is_installed(foo_bar):
    FOO, _ = foo_bar

    with pytest.raises(TypeError, match="Can only overlay a DynamicVariable"):
        overlay({FOO: 1, "BAR": "A"})  # type: ignore
    assert FOO() == 0


def test_empty_bindings_just_run_the_block():
    assert tramp({}, lambda: 42) == 42


def test_bindings_are_normalized_in_order(foo_bar):
    FOO, BAR = foo_bar
    assert bindings_of({BAR: "z", FOO: 9}) == (OverlayBinding(BAR, "z"), OverlayBinding(FOO, 9))


def test_overlay_as_a_decorator_can_be_reused_and_recursed(foo_bar):
    FOO, BAR = foo_bar

    @overlay(((v, n) for v, n in [(BAR, "deco")]))  # a one-shot iterator
    def countdown(n):
        assert BAR() == "deco"
        if n == 0:
            return [BAR.depth()]
        return [BAR.depth()] + countdown(n - 1)

    assert countdown(2) == [1, 2, 3]
    assert countdown(0) == [1]
    assert BAR() == ""


def test_overlaid_values_are_visible_deep_in_the_call_chain(foo_bar):
    FOO, _ = foo_bar

    def f():
        return g()

    def g():
        return h()

    def h():
        return i(FOO())

    def i(a):
        return f"only i uses {a}"

    assert tramp({FOO: 10}, f) == "only i uses 10"
    assert f() == "only i uses 0"


def test_overlay_logs_the_variable_names_at_debug(foo_bar, caplog):
    FOO, BAR = foo_bar
    with caplog.at_level(logging.DEBUG, logger="thds.tramp.composer"):
        with overlay({FOO: 1, BAR: "A"}):
            pass

    [record] = [r for r in caplog.records if r.name == "thds.tramp.composer"]
    assert record.getMessage() == "Overlaying"
    assert record.th_context == {"variables": "FOO,BAR"}


def test_decorating_a_generator_function_covers_iteration(foo_bar):
    _, BAR = foo_bar

    @overlay({BAR: "deco"})
    def gen():
        yield BAR()
        yield BAR()
        return "done"

    it = gen()
    assert next(it) == "deco"
    assert BAR() == ""  # the bindings stay inside the generator
    with overlay({BAR: "caller"}):
        assert next(it) == "deco"
        with pytest.raises(StopIteration) as stop:
            next(it)
        assert BAR() == "caller"
    assert stop.value.value == "done"
    assert BAR() == ""
    assert BAR.depth() == 0


def test_one_overlay_can_be_entered_again_while_active(foo_bar):
    FOO, _ = foo_bar
    once = overlay({FOO: 1})

    with once:
        with once:
            assert FOO.depth() == 2
        assert FOO.depth() == 1
    assert (FOO(), FOO.depth()) == (0, 0)
