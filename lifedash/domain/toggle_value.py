"""
Toggle values.

Flip  - implicit toggle, the new value is the opposite of the current one
        (habits; the server flips its own copy).
SetTo - explicit value chosen by the user (prayers).
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Flip:
    def resolve(self, current: bool) -> bool:
        return not current


@dataclass(frozen=True)
class SetTo:
    value: bool

    def resolve(self, current: bool) -> bool:
        return self.value


ToggleValue = Flip | SetTo
