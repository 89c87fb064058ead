"""
exactly - Exact arithmetic on canonical expression trees

Floating point arithmetic drifts (0.1 + 0.2 != 0.3). exactly keeps every
intermediate result as a reduced expression tree and only produces a float
when asked to.

Quick Start:
    from exactly import parse, variable, quotient

    parse("0.1 + 0.2")                 # => Division(Number(3), Number(10))
    parse("0.1 + 0.2").calc()          # => 0.3
    quotient(2, 6) == quotient(1, 3)   # => True

    x = variable("x")
    e = 7 - x
    e.with_var("x", 5)                 # => Number(2)

Expression Shapes:
    Number, Variable, Negation, Addition, Multiplication, Division

Parser Syntax:
    integers, decimals, + - * /, brackets,
    implicit multiplication 3(4 + 5), unary minus runs 8*--2
"""

__version__ = "0.1.0"

from .errors import (
    ExactlyError,
    ParseError,
    UnexpectedCharacter,
    UnexpectedEof,
    NestingTooDeep,
    LiteralTooLong,
    DivisionByZero,
    ValueTooLarge,
    UnboundVariable,
)

from .expression import (
    Expression,
    Number,
    Variable,
    Negation,
    Addition,
    Multiplication,
    Division,
    NumericType,
    BindingsType,
    add,
    sub,
    mul,
    div,
    neg,
    negate,
    gcd,
    number,
    variable,
    quotient,
    format_expr,
)

from .parser import (
    DEFAULT_MAX_DEPTH,
    StringParser,
    parse,
    process,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Errors
    "ExactlyError",
    "ParseError",
    "UnexpectedCharacter",
    "UnexpectedEof",
    "NestingTooDeep",
    "LiteralTooLong",
    "DivisionByZero",
    "ValueTooLarge",
    "UnboundVariable",
    # Expression shapes
    "Expression",
    "Number",
    "Variable",
    "Negation",
    "Addition",
    "Multiplication",
    "Division",
    # Types
    "NumericType",
    "BindingsType",
    # Operators
    "add",
    "sub",
    "mul",
    "div",
    "neg",
    "negate",
    "gcd",
    # Constructors
    "number",
    "variable",
    "quotient",
    # Text
    "format_expr",
    "DEFAULT_MAX_DEPTH",
    "StringParser",
    "parse",
    "process",
]
