"""
Tests for the calculator engine: formatting, arithmetic and transitions
"""
import math
from dataclasses import replace

import pytest
from hypothesis import given, strategies as st

import calculator as calc
import config
from calculator import (
    CalculatorState, INITIAL_STATE, MemoryOp, Operator,
    apply_op, format_number, parse_number, project, run, transition,
)
from input_surface import event_for_button


def press(*labels, state=INITIAL_STATE):
    """Run a sequence of keypad captions from `state`"""
    return run([event_for_button(label) for label in labels], state)


# ── format_number ─────────────────────────────────────────────────────

@pytest.mark.parametrize("value, expected", [
    (0.1 + 0.2, "0.3"),
    (5.0, "5"),
    (12, "12"),
    (-7.25, "-7.25"),
    (1 / 3, "0.3333333333"),
    (2 / 3, "0.6666666667"),
    (5e-11, "0.0000000001"),
    (-5e-11, "-0.0000000001"),
    (-1e-12, "0"),
    (-0.0, "0"),
    (1e20, "100000000000000000000"),
])
def test_format_number(value, expected):
    assert format_number(value) == expected


@pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
def test_format_non_finite_is_error(value):
    assert format_number(value) == "Error"


@given(st.floats(min_value=-99999, max_value=99999, allow_nan=False))
def test_format_is_idempotent(x):
    once = format_number(x)
    assert format_number(parse_number(once)) == once


def test_parse_number():
    assert parse_number("42.5") == 42.5
    assert parse_number("0.") == 0.0
    assert parse_number("-3") == -3.0
    assert parse_number("Error") is None
    assert parse_number("abc") is None
    assert parse_number(None) is None


def test_round10():
    assert calc.round10(0.1 + 0.2) == 0.3
    assert calc.round10(1.00000000005) == 1.0000000001
    assert math.isinf(calc.round10(math.inf))


# ── apply_op ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("a, b, op, expected", [
    ("7", "5", Operator.ADD, "12"),
    ("10", "4", Operator.SUBTRACT, "6"),
    ("1.5", "4", Operator.MULTIPLY, "6"),
    ("1", "3", Operator.DIVIDE, "0.3333333333"),
    ("0.1", "0.2", Operator.ADD, "0.3"),
    ("", "3", Operator.ADD, "3"),
    ("abc", "2", Operator.MULTIPLY, "0"),
    ("8", "0", Operator.DIVIDE, "Error"),
    ("0", "0", Operator.DIVIDE, "Error"),
    ("5", "-0", Operator.DIVIDE, "Error"),
])
def test_apply_op(a, b, op, expected):
    assert apply_op(a, b, op) == expected


@given(st.integers(min_value=-10**9, max_value=10**9))
def test_divide_by_zero_never_infinite(a):
    assert apply_op(str(a), "0", Operator.DIVIDE) == "Error"


@given(st.integers(min_value=-10**6, max_value=10**6), st.integers(min_value=-10**6, max_value=10**6))
def test_integer_arithmetic_is_exact(a, b):
    assert apply_op(str(a), str(b), Operator.ADD) == str(a + b)
    assert apply_op(str(a), str(b), Operator.SUBTRACT) == str(a - b)
    assert apply_op(str(a), str(b), Operator.MULTIPLY) == str(a * b)


# ── Scenarios ─────────────────────────────────────────────────────────

class TestScenarios:

    def test_simple_addition(self):
        assert press("7", "+", "5", "=").current_input == "12"

    def test_decimal_addition(self):
        assert press("1", ".", "2", "+", "3", ".", "4", "=").current_input == "4.6"

    def test_divide_by_zero(self):
        assert press("8", "÷", "0", "=").current_input == "Error"

    def test_square_roots(self):
        assert press("9", "√").current_input == "3"
        assert press("2", "√").current_input == "1.4142135624"
        assert press("9", "+/-", "√").current_input == "Error"

    def test_memory_store_and_recall(self):
        assert press("4", "2", ".", "5", "MS", "7", "MR").current_input == "42.5"

    def test_clear_twice_after_error(self):
        state = press("9", "÷", "0", "=")
        assert state.current_input == "Error"
        state = press("C", "C", state=state)
        assert state.current_input == "0"
        assert state == INITIAL_STATE


# ── Entry editing ─────────────────────────────────────────────────────

class TestEntry:

    def test_initial_state(self):
        assert INITIAL_STATE == CalculatorState("0", None, None, True, 0.0)

    def test_no_leading_zeros(self):
        assert press("0", "0", "7").current_input == "7"

    def test_digits_append(self):
        assert press("1", "2", "3").current_input == "123"

    def test_decimal_after_result_starts_fresh(self):
        state = press("7", "+", "5", "=", ".")
        assert state.current_input == "0."
        assert not state.overwrite

    def test_second_decimal_ignored(self):
        assert press("1", ".", "5", ".").current_input == "1.5"
        assert press(".", ".").current_input == "0."

    def test_toggle_sign(self):
        assert press("5", "+/-").current_input == "-5"
        assert press("5", "+/-", "+/-").current_input == "5"

    def test_toggle_sign_never_makes_negative_zero(self):
        assert press("+/-").current_input == "0"
        assert press(".", "+/-").current_input == "0."

    def test_delete(self):
        assert press("1", "2", "3", "⌫").current_input == "12"

    def test_delete_last_digit_resets(self):
        state = press("5", "⌫")
        assert state.current_input == "0"
        assert state.overwrite

    def test_delete_leaves_no_lone_sign(self):
        state = press("5", "+/-", "⌫")
        assert state.current_input == "0"
        assert state.overwrite

    def test_delete_after_result_resets(self):
        state = press("7", "+", "5", "=", "⌫")
        assert state.current_input == "0"
        assert state.overwrite

    def test_percent(self):
        state = press("5", "0", "%")
        assert state.current_input == "0.5"
        assert state.overwrite

    def test_percent_of_pending_operand(self):
        state = press("2", "0", "0", "+", "1", "0", "%")
        assert state.current_input == "20"
        assert state.previous_value == "200"
        assert state.operation is Operator.ADD


# ── Operators and equals ──────────────────────────────────────────────

class TestOperators:

    def test_left_to_right_chaining(self):
        state = press("2", "+", "3", "×")
        assert state.previous_value == "5"
        assert state.current_input == "5"
        assert state.operation is Operator.MULTIPLY
        assert press("4", "=", state=state).current_input == "20"

    def test_operator_substitution(self):
        state = press("2", "+", "−")
        assert state.previous_value == "2"
        assert state.operation is Operator.SUBTRACT
        assert press("3", "=", state=state).current_input == "-1"

    def test_equals_without_new_operand_is_noop(self):
        state = press("2", "+")
        assert transition(state, calc.EQUALS) is state

    def test_equals_without_pending_is_noop(self):
        state = press("7", "+", "5", "=")
        assert transition(state, calc.EQUALS) is state

    def test_chaining_error_clears_pending(self):
        state = press("6", "÷", "0", "+")
        assert state.current_input == "Error"
        assert state.previous_value is None
        assert state.operation is None
        assert state.overwrite

    def test_result_can_start_new_operation(self):
        assert press("7", "+", "5", "=", "×", "2", "=").current_input == "24"


# ── Clear ─────────────────────────────────────────────────────────────

class TestClear:

    def test_clear_from_initial_is_idempotent(self):
        assert press("C") == INITIAL_STATE
        assert press("C", "C") == INITIAL_STATE

    def test_clear_entry_keeps_pending_operation(self):
        state = press("7", "+", "3", "C")
        assert state.current_input == "0"
        assert state.previous_value == "7"
        assert state.operation is Operator.ADD
        assert press("5", "=", state=state).current_input == "12"

    def test_clear_keeps_memory(self):
        state = press("5", "MS", "C", "C")
        assert state.memory == 5.0
        assert state.current_input == "0"


# ── Error state ───────────────────────────────────────────────────────

class TestErrorState:

    def setup_method(self):
        self.state = replace_memory(press("8", "÷", "0", "="), 3.0)

    @pytest.mark.parametrize("label", ["5", ".", "+/-", "⌫", "%", "+", "=", "MS", "M+", "M-"])
    def test_editing_is_rejected(self, label):
        assert press(label, state=self.state) is self.state

    def test_memory_recall_replaces_error(self):
        state = press("MR", state=self.state)
        assert state.current_input == "3"
        assert state.overwrite

    def test_memory_clear_works(self):
        state = press("MC", state=self.state)
        assert state.memory == 0.0
        assert state.current_input == "Error"

    def test_sqrt_stays_in_error(self):
        assert press("√", state=self.state).current_input == "Error"


def replace_memory(state, value):
    return replace(state, memory=value)


# ── Square root ───────────────────────────────────────────────────────

def test_sqrt_keeps_pending_operation():
    state = press("1", "6", "+", "9", "√")
    assert state.current_input == "3"
    assert state.previous_value == "16"
    assert state.overwrite


def test_sqrt_error_clears_pending_operation():
    state = press("1", "6", "+", "9", "+/-", "√")
    assert state.current_input == "Error"
    assert state.previous_value is None
    assert state.operation is None


def test_sqrt_of_zero():
    assert press("√").current_input == "0"


@given(st.integers(min_value=-10**6, max_value=10**6))
def test_sqrt_sign(n):
    state = CalculatorState(current_input=str(n))
    result = transition(state, calc.SQRT).current_input
    if n < 0:
        assert result == "Error"
    else:
        assert parse_number(result) >= 0


# ── Memory ────────────────────────────────────────────────────────────

class TestMemory:

    def test_accumulates(self):
        state = press("5", "MS", "C", "2", "M+", "C", "3", "M-")
        assert state.memory == 4.0
        assert press("MR", state=state).current_input == "4"

    def test_accumulator_is_rounded(self):
        state = press(".", "1", "M+", "C", ".", "2", "M+")
        assert state.memory == 0.3

    def test_memory_clear(self):
        assert press("5", "MS", "MC").memory == 0.0

    def test_recall_keeps_pending_operation(self):
        state = press("5", "MS", "+", "MR")
        assert state.current_input == "5"
        assert state.previous_value == "5"
        assert state.overwrite

    def test_overflow_is_rejected(self):
        state = CalculatorState(current_input="1" + "0" * 308, memory=1.7e308)
        assert transition(state, calc.memory_event(MemoryOp.ADD)) is state

    @given(st.floats(min_value=-99999, max_value=99999, allow_nan=False))
    def test_store_then_recall_round_trips(self, x):
        shown = format_number(x)
        state = CalculatorState(current_input=shown)
        state = run([calc.memory_event(MemoryOp.STORE), calc.memory_event(MemoryOp.RECALL)], state)
        assert state.current_input == shown


# ── Overflow ────────────────────────────────────────────────────────

HUGE = "1" + "0" * 309


class TestOverflow:

    def test_parse_keeps_infinity(self):
        assert parse_number(HUGE) == math.inf
        assert parse_number("-" + HUGE) == -math.inf

    def test_arithmetic_on_huge_operand_is_error(self):
        assert apply_op(HUGE, "1", Operator.ADD) == "Error"
        assert apply_op("1", HUGE, Operator.MULTIPLY) == "Error"

    def test_equals_on_huge_entry_goes_to_error_state(self):
        state = CalculatorState(current_input=HUGE, overwrite=False)
        state = press("+", "1", "=", state=state)
        assert state.current_input == "Error"
        assert state.previous_value is None
        assert state.operation is None

    def test_toggle_sign_on_huge_entry(self):
        state = CalculatorState(current_input=HUGE, overwrite=False)
        assert transition(state, calc.TOGGLE_SIGN).current_input == "-" + HUGE

    def test_percent_overflow_clears_pending(self):
        state = CalculatorState(current_input="9" * 200, previous_value="9" * 200,
                                operation=Operator.MULTIPLY, overwrite=False)
        state = transition(state, calc.PERCENT)
        assert state.current_input == "Error"
        assert state.previous_value is None
        assert state.operation is None
        assert state.overwrite
        assert project(state).secondary_text == ""

    def test_sqrt_of_huge_entry_is_error(self):
        state = CalculatorState(current_input=HUGE)
        assert transition(state, calc.SQRT).current_input == "Error"

    def test_huge_entry_is_not_stored(self):
        state = CalculatorState(current_input=HUGE, memory=2.0)
        assert transition(state, calc.memory_event(MemoryOp.STORE)) is state
        assert transition(state, calc.memory_event(MemoryOp.ADD)) is state


# ── State invariants ──────────────────────────────────────────────────

KEYPAD_LABELS = [label for row in config.KEYPAD_ROWS for label in row]


@given(st.lists(st.sampled_from(KEYPAD_LABELS), max_size=60))
def test_invariants_hold_for_any_key_sequence(labels):
    state = INITIAL_STATE
    for label in labels:
        state = transition(state, event_for_button(label))
        assert (state.previous_value is None) == (state.operation is None)
        assert state.current_input
        assert math.isfinite(state.memory)
        if state.is_error:
            assert not state.has_pending
            assert state.previous_value is None
            assert state.overwrite


# ── Display projection ────────────────────────────────────────────────

class TestDisplay:

    def test_initial(self):
        view = project(INITIAL_STATE)
        assert view.display_text == "0"
        assert view.secondary_text == ""
        assert not view.is_error
        assert view.clear_label == "AC"

    def test_pending_operation(self):
        view = project(press("1", ".", "5", "0", "×"))
        assert view.secondary_text == "1.5 ×"
        assert view.clear_label == "C"

    def test_error(self):
        view = project(press("8", "÷", "0", "="))
        assert view.is_error
        assert view.display_text == "Error"
        assert view.secondary_text == ""


# ── Stateful wrapper ──────────────────────────────────────────────────

class TestCalculator:

    def setup_method(self):
        self.calculator = calc.Calculator()

    def test_button_helpers(self):
        self.calculator.add_digit("7")
        self.calculator.add_operator(Operator.ADD)
        self.calculator.add_digit(5)
        view = self.calculator.evaluate()
        assert view.display_text == "12"
        assert self.calculator.get_expression() == "12"

    def test_listener_sees_each_transition(self):
        seen = []
        self.calculator.subscribe(lambda old, new, event: seen.append((old.current_input, new.current_input)))
        self.calculator.add_digit("4")
        self.calculator.add_digit(".")
        assert seen == [("0", "4"), ("4", "4.")]

    def test_ignored_events_do_not_notify(self):
        seen = []
        self.calculator.subscribe(lambda old, new, event: seen.append(event))
        self.calculator.evaluate()
        assert seen == []

    def test_reentrant_dispatch_is_queued(self):
        seen = []
        inner = []

        def listener(old, new, event):
            seen.append(new.current_input)
            if event == calc.digit("1"):
                inner.append(self.calculator.dispatch(calc.digit("2")))

        self.calculator.subscribe(listener)
        view = self.calculator.dispatch(calc.digit("1"))
        assert inner[0].display_text == "1"
        assert seen == ["1", "12"]
        assert view.display_text == "12"

    def test_add_operator_accepts_ascii(self):
        self.calculator.add_digit("9")
        self.calculator.add_operator("-")
        self.calculator.add_digit("4")
        self.calculator.add_operator("*")
        self.calculator.add_digit("3")
        assert self.calculator.evaluate().display_text == "15"

    def test_add_operator_rejects_unknown(self):
        with pytest.raises(ValueError):
            self.calculator.add_operator("^")

    def test_reset_keeps_memory(self):
        self.calculator.add_digit("9")
        self.calculator.memory(MemoryOp.STORE)
        self.calculator.add_operator("+")
        self.calculator.reset()
        assert self.calculator.state == CalculatorState(memory=9.0)
