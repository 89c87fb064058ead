"""
Text to expression parser.

Grammar (informal):
    expr     := term (('+' | '-' | '*' | '/') term)*
    term     := sign* (literal | '(' expr ')') ('(' expr ')')*
    sign     := '-' | '+'
    literal  := digits ['.' digits] | '.' digits

    - Juxtaposing a term and '(' multiplies:    3(8-8/2)  == 3 * (8-8/2)
    - A run of '-' before a term negates it by parity:  8*----2 == 16
    - '*' and '/' bind tighter than '+' and '-'.
    - ASCII whitespace separates tokens and ends numeric literals.

The parser is a single pass character state machine. Terms are folded into
the result with the algebra's own operators as soon as they complete, so
the returned expression is already canonical:

    parse("0.1 + 0.2")   # => Division(Number(3), Number(10))
    parse("3(8-8/2)")    # => Number(12)
"""

from functools import reduce
from typing import List, Optional

from .errors import LiteralTooLong, NestingTooDeep, UnexpectedCharacter, UnexpectedEof
from .expression import Expression, Number, add, div, mul, neg

# Maximum bracket nesting accepted by parse(). Each level recurses once.
DEFAULT_MAX_DEPTH = 64

DIGITS = "0123456789"
OPERATORS = "+-*/"
WHITESPACE = " \t\n\r\f\v"

# Parser states
START = "start"            # nothing read yet
AFTER_TERM = "after_term"  # a complete term was read; expects an operator or '('
TERM = "term"              # reading the term after an operator

# What has been read of the current term
EMPTY = "empty"
PRE_COMMA = "pre_comma"    # integer digits
POST_COMMA = "post_comma"  # fraction digits
BRACKETS = "brackets"      # raw text inside brackets

# How a completed term joins the result
ADD = "+"
MUL = "*"
DIV = "/"


class PendingTerm:
    """The term currently being read and the operator that will apply it."""

    __slots__ = ('operator', 'negated', 'value', 'digits', 'integer_part', 'depth', 'buffer')

    def __init__(self, operator: str = ADD, negated: bool = False):
        self.operator = operator
        self.negated = negated
        self.value = EMPTY
        self.digits = ""
        self.integer_part: Optional[int] = None
        self.depth = 0
        self.buffer: List[str] = []

    def __repr__(self) -> str:
        return (f"PendingTerm(operator={self.operator!r}, negated={self.negated}, "
                f"value={self.value!r})")


class StringParser:
    """
    Parses one level of an arithmetic string.

    Bracketed text is buffered and handed to a fresh StringParser one
    nesting level deeper when its closing bracket is read.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, nesting: int = 0):
        self.max_depth = max_depth
        self.nesting = nesting
        self.state = START
        self.term: Optional[PendingTerm] = PendingTerm()
        self.terms: List[Expression] = []

    def parse(self, text: str) -> Expression:
        """Parse a complete string."""
        for char in text:
            self.feed(char)
        return self.finish()

    def feed(self, char: str):
        """Advance the state machine by one character."""
        if self.state == AFTER_TERM:
            self._read_after_term(char)
        else:
            self._read_term(char)

    def finish(self) -> Expression:
        """Close the input and fold the collected terms."""
        if self.state != AFTER_TERM:
            if self.term.value in (PRE_COMMA, POST_COMMA):
                self._complete(self._literal())
            else:
                raise UnexpectedEof()
        return reduce(add, self.terms, Number(0))

    # ------------------------------------------------------------
    # States
    # ------------------------------------------------------------

    def _read_after_term(self, char: str):
        if char in OPERATORS:
            self._start_operator(char)
        elif char == '(':
            # implicit multiplication
            self.term = PendingTerm(MUL)
            self.state = TERM
            self._open_brackets()
        elif char in WHITESPACE:
            pass
        else:
            raise UnexpectedCharacter(char)

    def _read_term(self, char: str):
        term = self.term
        if term.value == BRACKETS:
            self._read_brackets(char)
            return

        if term.value == EMPTY:
            if char in DIGITS:
                term.value = PRE_COMMA
                term.digits = char
            elif char == '.':
                term.value = POST_COMMA
            elif char == '(':
                self._open_brackets()
            elif char == '-':
                term.negated = not term.negated
            elif char == '+' or char in WHITESPACE:
                pass
            else:
                raise UnexpectedCharacter(char)
            if char not in WHITESPACE:
                self.state = TERM
            return

        # Inside a numeric literal
        if char in DIGITS:
            term.digits += char
        elif char == '.' and term.value == PRE_COMMA:
            term.integer_part = _digits_value(term.digits)
            term.digits = ""
            term.value = POST_COMMA
        elif char == '(':
            self._complete(self._literal())
            self.term = PendingTerm(MUL)
            self.state = TERM
            self._open_brackets()
        elif char in OPERATORS:
            self._complete(self._literal())
            self._start_operator(char)
        elif char in WHITESPACE:
            self._complete(self._literal())
        else:
            raise UnexpectedCharacter(char)

    def _read_brackets(self, char: str):
        term = self.term
        if char == '(':
            term.depth += 1
            self._check_depth(term.depth)
            term.buffer.append(char)
        elif char == ')':
            term.depth -= 1
            if term.depth == 0:
                inner = StringParser(self.max_depth, self.nesting + 1)
                self._complete(inner.parse("".join(term.buffer)))
            else:
                term.buffer.append(char)
        else:
            term.buffer.append(char)

    # ------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------

    def _start_operator(self, char: str):
        if char == '-':
            self.term = PendingTerm(ADD, negated=True)
        elif char == '+':
            self.term = PendingTerm(ADD)
        elif char == '*':
            self.term = PendingTerm(MUL)
        else:
            self.term = PendingTerm(DIV)
        self.state = TERM

    def _open_brackets(self):
        self.term.value = BRACKETS
        self.term.depth = 1
        self._check_depth(1)

    def _check_depth(self, depth: int):
        if self.nesting + depth > self.max_depth:
            raise NestingTooDeep(self.max_depth)

    def _literal(self) -> Expression:
        """Build the expression for the numeric literal just read."""
        term = self.term
        if term.value == PRE_COMMA:
            return Number(_digits_value(term.digits))
        if term.integer_part is None and not term.digits:
            raise UnexpectedCharacter('.')
        whole = Number(term.integer_part or 0)
        if not term.digits:
            return whole
        # P.F == P + F / 10**len(F)
        fraction = div(Number(_digits_value(term.digits)), Number(10 ** len(term.digits)))
        return add(whole, fraction)

    def _complete(self, value: Expression):
        """Apply a finished term to the result according to its operator."""
        term = self.term
        if term.negated:
            value = neg(value)
        if term.operator == ADD:
            self.terms.append(value)
        elif term.operator == MUL:
            self.terms[-1] = mul(self.terms[-1], value)
        else:
            self.terms[-1] = div(self.terms[-1], value)
        self.term = None
        self.state = AFTER_TERM


def _digits_value(digits: str) -> int:
    try:
        return int(digits)
    except ValueError:
        # the interpreter caps int() on long digit strings
        raise LiteralTooLong(len(digits)) from None


def parse(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Expression:
    """
    Parse an arithmetic string into a canonical expression.

    Args:
        text: Arithmetic using integers, decimals, + - * / and brackets.
        max_depth: Maximum bracket nesting.

    Returns:
        The canonical expression.

    Raises:
        UnexpectedCharacter: a character does not fit the grammar
        UnexpectedEof: input ends inside a literal, bracket or after an operator
        NestingTooDeep: brackets are nested deeper than max_depth
        LiteralTooLong: a literal has more digits than int() accepts
        DivisionByZero: the text divides by a literal zero

    Examples:
        parse("5")          # => Number(5)
        parse("8 / 2")      # => Number(4)
        parse("8*-----2")   # => Negation(Number(16))
    """
    return StringParser(max_depth).parse(text)


def process(text: str) -> float:
    """Parse and evaluate in one step: process("0.1 + 0.2") == 0.3."""
    return parse(text).calc()
