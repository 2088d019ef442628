"""
Input Surface for PocketCal
Maps key presses, button captions and JSON payloads to engine events
"""
import calculator as calc
import config
from calculator import EventKind, MemoryOp, Operator


class InvalidEventError(ValueError):
    """Raised when an input cannot be mapped to a calculator event"""


# Button caption -> event
_BUTTONS = {
    ".": calc.DECIMAL,
    "=": calc.EQUALS,
    "AC": calc.CLEAR,
    "C": calc.CLEAR,
    "⌫": calc.DELETE,
    "+/-": calc.TOGGLE_SIGN,
    "±": calc.TOGGLE_SIGN,
    "%": calc.PERCENT,
    "√": calc.SQRT,
}
_BUTTONS.update({str(d): calc.digit(d) for d in range(10)})
_BUTTONS.update({op.symbol: calc.operator(op) for op in Operator})
_BUTTONS.update({op.value: calc.memory_event(op) for op in MemoryOp})

_MEMORY_ALIASES = {op.value.lower(): op for op in MemoryOp}
_MEMORY_ALIASES.update({op.name.lower(): op for op in MemoryOp})

_SIMPLE_KINDS = {
    "decimal": calc.DECIMAL,
    "equals": calc.EQUALS,
    "clear": calc.CLEAR,
    "delete": calc.DELETE,
    "toggle_sign": calc.TOGGLE_SIGN,
    "togglesign": calc.TOGGLE_SIGN,
    "percent": calc.PERCENT,
    "sqrt": calc.SQRT,
}


def event_for_button(label):
    """Return the event for a keypad caption, or None"""
    return _BUTTONS.get(label)


def event_for_key(char, keysym=None, bindings=None):
    """Map a keyboard press to an event.

    `char` is the printable character (may be empty), `keysym` the symbolic
    key name such as ``"BackSpace"``. Returns None for unbound keys.
    """
    bindings = config.KEY_BINDINGS if bindings is None else bindings
    for key in (char, keysym):
        if key and key in bindings:
            return event_for_button(bindings[key])
    return None


def parse_operator(value):
    try:
        return Operator.from_text(value)
    except ValueError as e:
        raise InvalidEventError(str(e)) from None


def parse_memory_op(value):
    try:
        return _MEMORY_ALIASES[str(value).strip().lower()]
    except KeyError:
        raise InvalidEventError(f"unknown memory operation: {value!r}") from None


def event_from_payload(payload):
    """Build an event from its JSON form.

    Accepted shapes::

        {"type": "digit", "value": "7"}
        {"type": "operator", "value": "*"}
        {"type": "memory", "value": "M+"}
        {"type": "equals"}
        {"key": "Enter"}
    """
    if not isinstance(payload, dict):
        raise InvalidEventError("event must be a JSON object")

    if "key" in payload:
        key = str(payload["key"])
        event = event_for_key(key if len(key) == 1 else "", key)
        if event is None:
            raise InvalidEventError(f"unbound key: {key!r}")
        return event

    kind = str(payload.get("type", "")).strip().lower()
    value = payload.get("value")
    if kind == EventKind.DIGIT.value:
        try:
            return calc.digit(value)
        except ValueError as e:
            raise InvalidEventError(str(e)) from None
    if kind == EventKind.OPERATOR.value:
        return calc.operator(parse_operator(value))
    if kind == EventKind.MEMORY.value:
        return calc.memory_event(parse_memory_op(value))
    if kind in _SIMPLE_KINDS:
        return _SIMPLE_KINDS[kind]
    raise InvalidEventError(f"unknown event type: {kind!r}")


def events_from_request(body):
    """Accept one payload or ``{"events": [...]}``"""
    if isinstance(body, dict) and "events" in body:
        items = body["events"]
        if not isinstance(items, list):
            raise InvalidEventError("'events' must be a list")
        return [event_from_payload(item) for item in items]
    return [event_from_payload(body)]
