"""
Exceptions raised by exactly.

Parse failures derive from ParseError (a ValueError), arithmetic failures
from the matching builtin so callers can catch either the library's own
hierarchy or the standard exception type.
"""


class ExactlyError(Exception):
    """Base class for all errors raised by exactly."""


# ============================================================
# Parse Errors
# ============================================================

class ParseError(ExactlyError, ValueError):
    """Raised when text cannot be turned into an expression."""


class UnexpectedCharacter(ParseError):
    """A character did not fit the grammar at its position."""

    def __init__(self, char: str):
        self.char = char
        super().__init__(f"Unexpected character: {char!r}")

    def __eq__(self, other):
        if isinstance(other, UnexpectedCharacter):
            return self.char == other.char
        return NotImplemented

    def __hash__(self):
        return hash(("UnexpectedCharacter", self.char))


class UnexpectedEof(ParseError):
    """Input ended while a literal, bracket or operator was still open."""

    def __init__(self):
        super().__init__("Unexpected end of input")

    def __eq__(self, other):
        if isinstance(other, UnexpectedEof):
            return True
        return NotImplemented

    def __hash__(self):
        return hash("UnexpectedEof")


class NestingTooDeep(ParseError):
    """Brackets are nested deeper than the parser allows."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Brackets nested deeper than {limit} levels")


class LiteralTooLong(ParseError):
    """A numeric literal has more digits than the interpreter converts."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Numeric literal too long: {length} digits")


# ============================================================
# Arithmetic Errors
# ============================================================

class DivisionByZero(ExactlyError, ZeroDivisionError):
    """Division by a zero Number, or a denominator that evaluates to zero."""

    def __init__(self, message: str = "Cannot divide by zero"):
        super().__init__(message)


class ValueTooLarge(ExactlyError, OverflowError):
    """An exact value does not fit in a float or in decimal text."""

    def __init__(self, message: str = "Value too large to convert to float"):
        super().__init__(message)


class UnboundVariable(ExactlyError, ValueError):
    """An expression still containing a variable was evaluated."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot calculate a term with unbound variable '{name}'")
