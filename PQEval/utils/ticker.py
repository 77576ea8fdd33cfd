"""
Logical clock used to detect stale cached results.
"""

import itertools

# one counter for the whole process so that tickers of different objects
# can be compared with each other
_global_clock = itertools.count(1)


class EventTicker:
    """Monotonic timestamp of the last configuration or value change."""

    def __init__(self, value: int = 0):
        self.value = value

    def click(self) -> "EventTicker":
        """Advance to a timestamp newer than any issued so far."""
        self.value = next(_global_clock)
        return self

    def copy(self) -> "EventTicker":
        return EventTicker(self.value)

    def __eq__(self, other):
        return self.value == _value(other)

    def __lt__(self, other):
        return self.value < _value(other)

    def __le__(self, other):
        return self.value <= _value(other)

    def __gt__(self, other):
        return self.value > _value(other)

    def __ge__(self, other):
        return self.value >= _value(other)

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f"EventTicker({self.value})"


def _value(other):
    return other.value if isinstance(other, EventTicker) else other
