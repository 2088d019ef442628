"""
History Manager for PocketCal
Keeps an in-memory tape of completed calculations
"""
from collections import deque
from datetime import datetime

import config
from calculator import EventKind


class HistoryManager:
    def __init__(self, max_items=config.MAX_HISTORY_ITEMS):
        self._entries = deque(maxlen=max_items)

    def attach(self, calculator):
        """Record every evaluation performed by `calculator`"""
        calculator.subscribe(self.on_transition)
        return self

    def on_transition(self, old, new, event):
        """Listener: log Equals and operator chaining results"""
        if new.is_error or not old.has_pending or old.overwrite:
            return
        if event.kind is EventKind.EQUALS:
            result = new.current_input
        elif event.kind is EventKind.OPERATOR:
            result = new.previous_value
        else:
            return
        expression = f"{old.previous_value} {old.operation.symbol} {old.current_input}"
        self.add_calculation(expression, result)

    def add_calculation(self, expression, result):
        """Add a calculation to history"""
        self._entries.append((expression, result, datetime.now().strftime("%Y-%m-%d %H:%M:%S")))

    def get_calculation_history(self, limit=50):
        """Get calculation history, newest first"""
        entries = list(reversed(self._entries))
        return entries[:limit]

    def clear_calculation_history(self):
        """Clear all calculation history"""
        self._entries.clear()

    def format_calculation_history(self, limit=50):
        """Format calculation history for display"""
        formatted = []

        for expr, result, timestamp in self.get_calculation_history(limit):
            formatted.append(f"{timestamp}: {expr} = {result}")

        return formatted

    def __len__(self):
        return len(self._entries)
