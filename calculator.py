"""
Calculator Engine for PocketCal
Pure state machine driven by symbolic button/key events
"""
import logging
import math
from collections import deque
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Callable, NamedTuple, Optional

import config

logger = logging.getLogger(__name__)

ERROR = config.ERROR_TEXT
_QUANTUM = Decimal(1).scaleb(-config.DISPLAY_PRECISION)


class Operator(Enum):
    ADD = "+"
    SUBTRACT = "−"
    MULTIPLY = "×"
    DIVIDE = "÷"

    @property
    def symbol(self):
        return self.value

    @classmethod
    def from_text(cls, text):
        """Accept the display symbol, an ASCII spelling or the name"""
        try:
            return _OPERATOR_ALIASES[str(text).strip()]
        except KeyError:
            raise ValueError(f"unknown operator: {text!r}") from None


_OPERATOR_ALIASES = {
    "+": Operator.ADD, "add": Operator.ADD,
    "-": Operator.SUBTRACT, "−": Operator.SUBTRACT, "subtract": Operator.SUBTRACT,
    "*": Operator.MULTIPLY, "x": Operator.MULTIPLY, "X": Operator.MULTIPLY,
    "×": Operator.MULTIPLY, "multiply": Operator.MULTIPLY,
    "/": Operator.DIVIDE, "÷": Operator.DIVIDE, "divide": Operator.DIVIDE,
}


class MemoryOp(Enum):
    CLEAR = "MC"
    RECALL = "MR"
    STORE = "MS"
    ADD = "M+"
    SUBTRACT = "M-"


class EventKind(Enum):
    DIGIT = "digit"
    DECIMAL = "decimal"
    OPERATOR = "operator"
    EQUALS = "equals"
    CLEAR = "clear"
    DELETE = "delete"
    TOGGLE_SIGN = "toggle_sign"
    PERCENT = "percent"
    SQRT = "sqrt"
    MEMORY = "memory"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    value: object = None

    def __str__(self):
        if self.value is None:
            return self.kind.value
        payload = self.value.value if isinstance(self.value, Enum) else self.value
        return f"{self.kind.value}({payload})"


def digit(d) -> Event:
    d = str(d)
    if len(d) != 1 or d not in "0123456789":
        raise ValueError(f"not a digit: {d!r}")
    return Event(EventKind.DIGIT, d)


def operator(op) -> Event:
    if not isinstance(op, Operator):
        op = Operator.from_text(op)
    return Event(EventKind.OPERATOR, op)


def memory_event(op: MemoryOp) -> Event:
    return Event(EventKind.MEMORY, MemoryOp(op))


DECIMAL = Event(EventKind.DECIMAL)
EQUALS = Event(EventKind.EQUALS)
CLEAR = Event(EventKind.CLEAR)
DELETE = Event(EventKind.DELETE)
TOGGLE_SIGN = Event(EventKind.TOGGLE_SIGN)
PERCENT = Event(EventKind.PERCENT)
SQRT = Event(EventKind.SQRT)


@dataclass(frozen=True)
class CalculatorState:
    current_input: str = "0"
    previous_value: Optional[str] = None
    operation: Optional[Operator] = None
    overwrite: bool = True
    memory: float = 0.0

    @property
    def is_error(self) -> bool:
        return self.current_input == ERROR

    @property
    def has_pending(self) -> bool:
        return self.previous_value is not None and self.operation is not None

    @property
    def is_initial(self) -> bool:
        return self.current_input == "0" and not self.has_pending


INITIAL_STATE = CalculatorState()


class Display(NamedTuple):
    display_text: str
    secondary_text: str
    is_error: bool
    clear_label: str

    def as_dict(self):
        return self._asdict()


# ── Formatting helpers ────────────────────────────────────────────────────────

def _quantize(x: float) -> Decimal:
    """Round half away from zero at the last display digit."""
    d = Decimal(repr(x))
    with localcontext() as ctx:
        ctx.prec = max(28, d.adjusted() + config.DISPLAY_PRECISION + 2)
        return d.quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def round10(x: float) -> float:
    """Numeric rounding used by the memory accumulator"""
    if not math.isfinite(x):
        return x
    return float(_quantize(x))


def format_number(x) -> str:
    """Format a number for the display, or return the error sentinel."""
    try:
        x = float(x)
    except (TypeError, ValueError):
        return ERROR
    if not math.isfinite(x):
        return ERROR

    text = f"{_quantize(x):.{config.DISPLAY_PRECISION}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("", "-", "-0"):
        return "0"
    return text


def parse_number(text) -> Optional[float]:
    """Parse a display numeral; None for the sentinel or garbage.

    Numerals beyond float range come back as infinity.
    """
    if text is None or text == ERROR:
        return None
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(value) else value


def _operand(text) -> float:
    value = parse_number(text or "0")
    return 0.0 if value is None else value


def apply_op(a, b, op: Operator) -> str:
    """Evaluate `a op b` and return the formatted result or the sentinel."""
    left, right = _operand(a), _operand(b)
    if not isinstance(op, Operator):
        op = Operator.from_text(op)
    if op is Operator.ADD:
        result = left + right
    elif op is Operator.SUBTRACT:
        result = left - right
    elif op is Operator.MULTIPLY:
        result = left * right
    else:
        if right == 0:
            return ERROR
        result = left / right
    return format_number(result)


def project(state: CalculatorState) -> Display:
    """Derive the fields a presenter renders"""
    secondary = ""
    if state.has_pending:
        secondary = f"{format_number(state.previous_value)} {state.operation.symbol}"
    return Display(
        display_text=state.current_input,
        secondary_text=secondary,
        is_error=state.is_error,
        clear_label="AC" if state.is_initial else "C",
    )


# ── Transition handlers ───────────────────────────────────────────────────────

def _error_state(state):
    return replace(state, current_input=ERROR, previous_value=None,
                   operation=None, overwrite=True)


def _on_digit(state, d):
    if state.overwrite:
        return replace(state, current_input=d, overwrite=False)
    if state.current_input == "0":
        return replace(state, current_input=d)
    return replace(state, current_input=state.current_input + d)


def _on_decimal(state, _):
    if state.overwrite:
        return replace(state, current_input="0.", overwrite=False)
    if "." in state.current_input:
        return state
    return replace(state, current_input=state.current_input + ".")


def _on_toggle_sign(state, _):
    text = state.current_input
    if _operand(text) == 0:
        return state
    if text.startswith("-"):
        return replace(state, current_input=text[1:])
    return replace(state, current_input="-" + text)


def _on_delete(state, _):
    text = state.current_input
    if state.overwrite:
        return replace(state, current_input="0")
    remaining = text[:-1]
    if remaining in ("", "-"):
        return replace(state, current_input="0", overwrite=True)
    return replace(state, current_input=remaining)


def _on_percent(state, _):
    current = _operand(state.current_input)
    if state.has_pending:
        value = _operand(state.previous_value) * current / 100
    else:
        value = current / 100
    text = format_number(value)
    if text == ERROR:
        return _error_state(state)
    return replace(state, current_input=text, overwrite=True)


def _on_operator(state, op):
    if not state.has_pending:
        return replace(state, previous_value=state.current_input,
                       operation=op, overwrite=True)
    if state.overwrite:
        # operator substitution
        return replace(state, operation=op)

    result = apply_op(state.previous_value, state.current_input, state.operation)
    if result == ERROR:
        return _error_state(state)
    return replace(state, previous_value=result, current_input=result,
                   operation=op, overwrite=True)


def _on_equals(state, _):
    if not state.has_pending or state.overwrite:
        return state
    result = apply_op(state.previous_value, state.current_input, state.operation)
    if result == ERROR:
        return _error_state(state)
    return replace(state, current_input=result, previous_value=None,
                   operation=None, overwrite=True)


def _on_clear(state, _):
    if state.is_initial:
        return replace(INITIAL_STATE, memory=state.memory)
    return replace(state, current_input="0", overwrite=True)


def _on_sqrt(state, _):
    value = parse_number(state.current_input)
    if value is None or not math.isfinite(value) or value < 0:
        return _error_state(state)
    return replace(state, current_input=format_number(math.sqrt(value)),
                   overwrite=True)


def _on_memory(state, op):
    if op is MemoryOp.CLEAR:
        return replace(state, memory=0.0)
    if op is MemoryOp.RECALL:
        return replace(state, current_input=format_number(state.memory),
                       overwrite=True)

    value = parse_number(state.current_input)
    if value is None:
        return state
    if op is MemoryOp.STORE:
        new_memory = value
    elif op is MemoryOp.ADD:
        new_memory = round10(state.memory + value)
    else:
        new_memory = round10(state.memory - value)
    if not math.isfinite(new_memory):
        return state
    return replace(state, memory=new_memory)


_HANDLERS = {
    EventKind.DIGIT: _on_digit,
    EventKind.DECIMAL: _on_decimal,
    EventKind.OPERATOR: _on_operator,
    EventKind.EQUALS: _on_equals,
    EventKind.CLEAR: _on_clear,
    EventKind.DELETE: _on_delete,
    EventKind.TOGGLE_SIGN: _on_toggle_sign,
    EventKind.PERCENT: _on_percent,
    EventKind.SQRT: _on_sqrt,
    EventKind.MEMORY: _on_memory,
}

# Events that still apply while the display shows the error sentinel
_ERROR_SAFE_KINDS = {EventKind.CLEAR, EventKind.SQRT}
_ERROR_SAFE_MEMORY = {MemoryOp.CLEAR, MemoryOp.RECALL}


def _allowed_in_error(event):
    if event.kind in _ERROR_SAFE_KINDS:
        return True
    return event.kind is EventKind.MEMORY and event.value in _ERROR_SAFE_MEMORY


def transition(state: CalculatorState, event: Event) -> CalculatorState:
    """Return the state that follows `state` after `event`."""
    if state.is_error and not _allowed_in_error(event):
        return state
    return _HANDLERS[event.kind](state, event.value)


def run(events, state: CalculatorState = INITIAL_STATE) -> CalculatorState:
    """Fold a sequence of events over a state"""
    for event in events:
        state = transition(state, event)
    return state


# ── Stateful wrapper ──────────────────────────────────────────────────────────

Listener = Callable[[CalculatorState, CalculatorState, Event], None]


class Calculator:
    """Holds the current state for an interactive front end.

    Events dispatched while listeners are being notified are queued and
    applied once the running transition has finished.
    """

    def __init__(self, state: CalculatorState = INITIAL_STATE):
        self._state = state
        self._listeners = []
        self._pending = deque()
        self._dispatching = False

    @property
    def state(self) -> CalculatorState:
        return self._state

    @property
    def display(self) -> Display:
        return project(self._state)

    @property
    def memory_value(self) -> float:
        return self._state.memory

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener):
        self._listeners.remove(listener)

    def dispatch(self, event: Event) -> Display:
        """Apply one event and return the resulting display"""
        self._pending.append(event)
        if self._dispatching:
            return self.display

        self._dispatching = True
        try:
            while self._pending:
                self._apply(self._pending.popleft())
        finally:
            self._dispatching = False
            self._pending.clear()
        return self.display

    def _apply(self, event):
        old = self._state
        new = transition(old, event)
        self._state = new
        if new is old:
            logger.debug("%s ignored in state %r", event, old.current_input)
            return
        logger.debug("%s: %r -> %r", event, old.current_input, new.current_input)
        if new.is_error and not old.is_error:
            logger.info("arithmetic error after %s", event)
        for listener in list(self._listeners):
            listener(old, new, event)

    def reset(self):
        """Return to the initial state, keeping memory"""
        self._state = replace(INITIAL_STATE, memory=self._state.memory)
        return self.display

    # Button-style helpers

    def add_digit(self, d):
        if d == ".":
            return self.dispatch(DECIMAL)
        return self.dispatch(digit(d))

    def add_operator(self, op):
        return self.dispatch(operator(op))

    def evaluate(self):
        return self.dispatch(EQUALS)

    def clear(self):
        return self.dispatch(CLEAR)

    def delete(self):
        return self.dispatch(DELETE)

    def toggle_sign(self):
        return self.dispatch(TOGGLE_SIGN)

    def percent(self):
        return self.dispatch(PERCENT)

    def square_root(self):
        return self.dispatch(SQRT)

    def memory(self, op):
        return self.dispatch(memory_event(op))

    def get_expression(self):
        """Get current display text"""
        return self._state.current_input
