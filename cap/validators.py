"""
Built-in validators: (sender, argument, value) -> bool.

A validator accepts a parsed value by returning a truthy result and rejects it
by returning a falsy one or by raising ValueError with the reason. Validators that
expose describe(sender, argument) let the binder attach a human-readable
constraint (e.g. "> 10") to the ValidationFailureError.

Bounds may be constants or callables (sender, argument) -> bound, resolved on every
validation so they can depend on who is asking.

Semantics
- minimum / maximum are exclusive: minimum(10) rejects 10 and accepts 11.
- between is inclusive on both ends.
"""


def _resolve(bound, sender, argument, /):
    return bound(sender, argument) if callable(bound) else bound


class Validator:
    """Base of the built-in validators."""

    symbol = "?"

    def __call__(self, sender, argument, value, /):
        raise NotImplementedError

    def describe(self, sender, argument, /):
        raise NotImplementedError


class Minimum(Validator):
    def __init__(self, bound, /):
        self._bound = bound

    def __call__(self, sender, argument, value, /):
        return value > _resolve(self._bound, sender, argument)

    def describe(self, sender, argument, /):
        return f"> {_resolve(self._bound, sender, argument)}"


class Maximum(Validator):
    def __init__(self, bound, /):
        self._bound = bound

    def __call__(self, sender, argument, value, /):
        return value < _resolve(self._bound, sender, argument)

    def describe(self, sender, argument, /):
        return f"< {_resolve(self._bound, sender, argument)}"


class Between(Validator):
    def __init__(self, lower, upper, /):
        self._lower = lower
        self._upper = upper

    def __call__(self, sender, argument, value, /):
        return _resolve(self._lower, sender, argument) <= value <= _resolve(self._upper, sender, argument)

    def describe(self, sender, argument, /):
        return f"between {_resolve(self._lower, sender, argument)} and {_resolve(self._upper, sender, argument)}"


class Choices(Validator):
    def __init__(self, choices, /):
        if not callable(choices):
            choices = tuple(choices)
            if not choices:
                raise ValueError("choices validator needs at least one choice")
        self._choices = choices

    def __call__(self, sender, argument, value, /):
        return value in _resolve(self._choices, sender, argument)

    def describe(self, sender, argument, /):
        return f"one of {", ".join(map(str, _resolve(self._choices, sender, argument)))}"


def minimum(bound, /):
    return Minimum(bound)


def maximum(bound, /):
    return Maximum(bound)


def between(lower, upper, /):
    return Between(lower, upper)


def choices(values, /):
    return Choices(values)


__all__ = (
    "Validator",
    "minimum",
    "maximum",
    "between",
    "choices",
)
