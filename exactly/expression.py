"""
Expression algebra for exact arithmetic.

An expression is a tree built from six shapes:

    Number          one scalar value (never negative; sign lives in Negation)
    Variable        a name, replaced by set_vars()
    Negation        -(operand)
    Addition        flattened n-ary sum
    Multiplication  flattened n-ary product
    Division        numerator / denominator

Every operator (add, sub, mul, div, neg and the matching Python operators)
returns a tree that is already in canonical reduced form, so there is no
separate simplification pass:

    quotient(1, 10) + quotient(2, 10)   # => Division(Number(3), Number(10))
    number(8) / number(2)               # => Number(4)
    variable("x") - variable("x")       # => Number(0)

Evaluation to a float only happens on demand with calc().

Numeric backend:
    Number accepts any value supporting + - * // % < == and a zero value
    obtained by calling its type with no arguments (int, Fraction, ...).
    Plain Python ints are coerced automatically in operator expressions.
"""

from functools import reduce
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .errors import DivisionByZero, UnboundVariable, ValueTooLarge

# Type aliases
NumericType = Any  # anything honouring the numeric backend contract above
BindingsType = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


# ============================================================
# Numeric Helpers
# ============================================================

def is_zero_value(value: NumericType) -> bool:
    """True if value equals the zero of its own type."""
    return value == type(value)()


def gcd(a: NumericType, b: NumericType) -> NumericType:
    """
    Greatest common divisor using the Euclidean algorithm.

    Repeatedly replaces (smaller, bigger) with (bigger % smaller, smaller)
    until smaller is zero.

    Examples:
        gcd(12, 18)  # => 6
        gcd(7, 5)    # => 1
        gcd(0, 9)    # => 9
    """
    smaller, bigger = (a, b) if a < b else (b, a)
    while not is_zero_value(smaller):
        smaller, bigger = bigger % smaller, smaller
    return bigger


# ============================================================
# Expression Base Class
# ============================================================

class Expression:
    """
    Base class of the six expression shapes.

    Expressions are immutable: every operator builds a new tree. Python
    operators dispatch to add(), sub(), mul(), div() and neg(), and plain
    ints are accepted on either side:

        x = variable("x")
        e = 3 * x + 1
        e.with_var("x", 2).calc()  # => 7.0
    """

    __slots__ = ()

    def calc(self) -> float:
        """Evaluate the expression as a float."""
        raise NotImplementedError

    def children(self) -> Tuple["Expression", ...]:
        """Direct sub-expressions."""
        return ()

    def can_add_number_well(self) -> bool:
        """True if adding a bare Number to this term folds into it."""
        return False

    def variables(self) -> Set[str]:
        """Names of all variables occurring in the expression."""
        names: Set[str] = set()
        for child in self.children():
            names |= child.variables()
        return names

    # ------------------------------------------------------------
    # Substitution
    # ------------------------------------------------------------

    def set_vars(self, bindings: BindingsType) -> "Expression":
        """
        Replace variables by expressions and re-simplify.

        Args:
            bindings: A mapping of name -> value, or an iterable of
                      (name, value) pairs. Values may be expressions or ints.
                      With pairs, the first binding for a name wins.

        Returns:
            A new expression; the receiver is unchanged.

        Examples:
            (number(7) - variable("x")).set_vars({"x": 5})  # => Number(2)
        """
        return self._substitute(_binding_pairs(bindings))

    with_vars = set_vars

    def with_var(self, name: str, value: Any) -> "Expression":
        """Replace a single variable."""
        return self.set_vars([(name, value)])

    def use_vars(self, bindings: BindingsType) -> float:
        """Replace variables and evaluate."""
        return self.set_vars(bindings).calc()

    def use_var(self, name: str, value: Any) -> float:
        """Replace a single variable and evaluate."""
        return self.with_var(name, value).calc()

    def _substitute(self, pairs: List[Tuple[str, "Expression"]]) -> "Expression":
        raise NotImplementedError

    # ------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------

    def __add__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return add(self, other)

    def __radd__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return add(other, self)

    def __sub__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return sub(self, other)

    def __rsub__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return sub(other, self)

    def __mul__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return mul(self, other)

    def __rmul__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return mul(other, self)

    def __truediv__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return div(self, other)

    def __rtruediv__(self, other):
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return div(other, self)

    def __neg__(self):
        return neg(self)

    def __pos__(self):
        return self

    def __float__(self):
        return self.calc()

    def __str__(self) -> str:
        return format_expr(self)


# ============================================================
# Leaves
# ============================================================

class Number(Expression):
    """
    A scalar leaf.

    Values are kept non-negative; number() wraps negative host values in a
    Negation. Division of two Numbers reduces by their GCD.
    """

    __slots__ = ('value',)

    def __init__(self, value: NumericType):
        self.value = value

    def is_zero(self) -> bool:
        return is_zero_value(self.value)

    def is_one(self) -> bool:
        return self.value == type(self.value)(1)

    def calc(self) -> float:
        return _to_float(self.value)

    def can_add_number_well(self) -> bool:
        return True

    def _substitute(self, pairs):
        return self

    def plus(self, other: "Number") -> Expression:
        return Number(self.value + other.value)

    def minus(self, other: "Number") -> Expression:
        if self.value < other.value:
            return Number(other.value - self.value).negate()
        return Number(self.value - other.value)

    def times(self, other: "Number") -> Expression:
        return Number(self.value * other.value)

    def over(self, other: "Number") -> Expression:
        if other.is_zero():
            raise DivisionByZero()
        if is_zero_value(self.value % other.value):
            return Number(self.value // other.value)
        divisor = gcd(self.value, other.value)
        return Division(Number(self.value // divisor), Number(other.value // divisor))

    def negate(self) -> Expression:
        if self.is_zero():
            return self
        return Negation(self)

    def __eq__(self, other):
        if isinstance(other, Expression):
            return type(other) is Number and self.value == other.value
        return NotImplemented

    def __hash__(self):
        return hash(("Number", self.value))

    def __repr__(self) -> str:
        return f"Number({self.value!r})"


class Variable(Expression):
    """A named leaf. Only set_vars() ever replaces it."""

    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name = name

    def calc(self) -> float:
        raise UnboundVariable(self.name)

    def variables(self) -> Set[str]:
        return {self.name}

    def _substitute(self, pairs):
        for name, value in pairs:
            if name == self.name:
                return value
        return self

    def plus(self, other: "Variable") -> Expression:
        if self == other:
            return mul(Number(2), self)
        return Addition((self, other))

    def minus(self, other: "Variable") -> Expression:
        if self == other:
            return Number(0)
        return Addition((self, Negation(other)))

    def times(self, other: "Variable") -> Expression:
        return Multiplication((self, other))

    def over(self, other: "Variable") -> Expression:
        return Division(self, other)

    def negate(self) -> Expression:
        return Negation(self)

    def __eq__(self, other):
        if isinstance(other, Expression):
            return type(other) is Variable and self.name == other.name
        return NotImplemented

    def __hash__(self):
        return hash(("Variable", self.name))

    def __repr__(self) -> str:
        return f"Variable({self.name!r})"


# ============================================================
# Interior Nodes
# ============================================================

class Negation(Expression):
    """
    -(operand).

    The operand is never itself a Negation and never Number(0); neg()
    maintains both.
    """

    __slots__ = ('operand',)

    def __init__(self, operand: Expression):
        self.operand = operand

    def children(self):
        return (self.operand,)

    def calc(self) -> float:
        return -self.operand.calc()

    def can_add_number_well(self) -> bool:
        return self.operand.can_add_number_well()

    def _substitute(self, pairs):
        return neg(self.operand._substitute(pairs))

    def plus(self, other: "Negation") -> Expression:
        return neg(add(self.operand, other.operand))

    def minus(self, other: "Negation") -> Expression:
        return sub(other.operand, self.operand)

    def times(self, other: "Negation") -> Expression:
        return mul(self.operand, other.operand)

    def over(self, other: "Negation") -> Expression:
        return div(self.operand, other.operand)

    def negate(self) -> Expression:
        return self.operand

    def __eq__(self, other):
        if isinstance(other, Expression):
            return type(other) is Negation and self.operand == other.operand
        return NotImplemented

    def __hash__(self):
        return hash(("Negation", self.operand))

    def __repr__(self) -> str:
        return f"Negation({self.operand!r})"


class Addition(Expression):
    """
    Flattened n-ary sum.

    No term is itself an Addition and at most one term is a bare Number.
    Constants are folded into the first term that can absorb them rather
    than appended, so 3 + x + 2 stays {x, 5} instead of {3, x, 2}.
    """

    __slots__ = ('terms',)

    def __init__(self, terms: Iterable[Expression]):
        self.terms = tuple(terms)

    def children(self):
        return self.terms

    def calc(self) -> float:
        return sum(term.calc() for term in self.terms)

    def can_add_number_well(self) -> bool:
        return any(term.can_add_number_well() for term in self.terms)

    def _substitute(self, pairs):
        return reduce(add, (term._substitute(pairs) for term in self.terms), Number(0))

    def _fold_in(self, value: Expression,
                 combine: Callable[[Expression, Expression], Expression]) -> Optional[Expression]:
        """Combine value with the first term that absorbs numbers, or None."""
        for i, term in enumerate(self.terms):
            if term.can_add_number_well():
                rest = self.terms[:i] + self.terms[i + 1:]
                return _sum_of(rest + (combine(term, value),))
        return None

    def add_num(self, num: Number) -> Expression:
        """Add a Number, folding it into an existing constant-like term."""
        folded = self._fold_in(num, add)
        if folded is None:
            return Addition(self.terms + (num,))
        return folded

    def sub_num(self, num: Number) -> Expression:
        """Subtract a Number, folding it into an existing constant-like term."""
        folded = self._fold_in(num, sub)
        if folded is None:
            return Addition(self.terms + (neg(num),))
        return folded

    def add_term(self, term: Expression) -> Expression:
        """Add a term that is neither an Addition nor a Number."""
        if term.can_add_number_well():
            folded = self._fold_in(term, add)
            if folded is not None:
                return folded
        return _sum_of(self.terms + (term,))

    def plus(self, other: "Addition") -> Expression:
        return reduce(add, other.terms, self)

    def minus(self, other: "Addition") -> Expression:
        return reduce(sub, other.terms, self)

    def times(self, other: "Addition") -> Expression:
        return Multiplication((self, other))

    def over(self, other: "Addition") -> Expression:
        return Division(self, other)

    def negate(self) -> Expression:
        return Negation(self)

    def __eq__(self, other):
        if isinstance(other, Expression):
            return type(other) is Addition and self.terms == other.terms
        return NotImplemented

    def __hash__(self):
        return hash(("Addition", self.terms))

    def __repr__(self) -> str:
        return f"Addition({list(self.terms)!r})"


class Multiplication(Expression):
    """
    Flattened n-ary product.

    No factor is itself a Multiplication. Sums and differences of products
    pull shared factors out front: x*y + x*z becomes x*(y + z).
    """

    __slots__ = ('factors',)

    def __init__(self, factors: Iterable[Expression]):
        self.factors = tuple(factors)

    def children(self):
        return self.factors

    def calc(self) -> float:
        result = 1.0
        for factor in self.factors:
            result *= factor.calc()
        return result

    def _substitute(self, pairs):
        substituted = [factor._substitute(pairs) for factor in self.factors]
        return reduce(mul, substituted[1:], substituted[0])

    def mul_term(self, term: Expression) -> Expression:
        """Append a factor. Numbers merge into an existing Number factor or lead."""
        if isinstance(term, Number):
            for i, factor in enumerate(self.factors):
                if isinstance(factor, Number):
                    merged = mul(factor, term)
                    return _product_of(self.factors[:i] + (merged,) + self.factors[i + 1:])
            return Multiplication((term,) + self.factors)
        return Multiplication(self.factors + (term,))

    def plus(self, other: "Multiplication") -> Expression:
        return _factor_out(self, other, add)

    def minus(self, other: "Multiplication") -> Expression:
        return _factor_out(self, other, sub)

    def times(self, other: "Multiplication") -> Expression:
        return reduce(mul, other.factors, self)

    def over(self, other: "Multiplication") -> Expression:
        return _cancel(self.factors, other.factors)

    def negate(self) -> Expression:
        return Negation(self)

    def __eq__(self, other):
        if isinstance(other, Expression):
            return type(other) is Multiplication and self.factors == other.factors
        return NotImplemented

    def __hash__(self):
        return hash(("Multiplication", self.factors))

    def __repr__(self) -> str:
        return f"Multiplication({list(self.factors)!r})"


class Division(Expression):
    """
    numerator / denominator.

    The denominator is never Number(0). Two Number children are always
    coprime. Neither child is a Division or a Negation: those are lifted out
    by div() before a Division node is built.
    """

    __slots__ = ('numerator', 'denominator')

    def __init__(self, numerator: Expression, denominator: Expression):
        self.numerator = numerator
        self.denominator = denominator

    def children(self):
        return (self.numerator, self.denominator)

    def calc(self) -> float:
        if isinstance(self.numerator, Number) and isinstance(self.denominator, Number):
            if self.denominator.is_zero():
                raise DivisionByZero()
            # one rounding step for the exact quotient
            return _to_float(self.numerator.value, self.denominator.value)
        denominator = self.denominator.calc()
        if denominator == 0:
            raise DivisionByZero(f"Denominator {format_expr(self.denominator)} evaluates to zero")
        return self.numerator.calc() / denominator

    def can_add_number_well(self) -> bool:
        return isinstance(self.denominator, Number)

    def _substitute(self, pairs):
        return div(self.numerator._substitute(pairs), self.denominator._substitute(pairs))

    def plus(self, other: "Division") -> Expression:
        if self.denominator == other.denominator:
            return div(add(self.numerator, other.numerator), self.denominator)
        return div(
            add(mul(self.numerator, other.denominator), mul(other.numerator, self.denominator)),
            mul(self.denominator, other.denominator),
        )

    def minus(self, other: "Division") -> Expression:
        if self.denominator == other.denominator:
            return div(sub(self.numerator, other.numerator), self.denominator)
        return div(
            sub(mul(self.numerator, other.denominator), mul(other.numerator, self.denominator)),
            mul(self.denominator, other.denominator),
        )

    def times(self, other: "Division") -> Expression:
        return div(mul(self.numerator, other.numerator), mul(self.denominator, other.denominator))

    def over(self, other: "Division") -> Expression:
        # a/b / c/d == a/b * d/c
        return div(mul(self.numerator, other.denominator), mul(self.denominator, other.numerator))

    def negate(self) -> Expression:
        return Negation(self)

    def __eq__(self, other):
        if isinstance(other, Expression):
            return (type(other) is Division
                    and self.numerator == other.numerator
                    and self.denominator == other.denominator)
        return NotImplemented

    def __hash__(self):
        return hash(("Division", self.numerator, self.denominator))

    def __repr__(self) -> str:
        return f"Division({self.numerator!r}, {self.denominator!r})"


# ============================================================
# Construction Helpers
# ============================================================

def _to_float(value: NumericType, divisor: NumericType = 1) -> float:
    try:
        return float(value / divisor)
    except OverflowError:
        raise ValueTooLarge() from None


def _is_zero(expr: Expression) -> bool:
    return isinstance(expr, Number) and expr.is_zero()


def _is_one(expr: Expression) -> bool:
    return isinstance(expr, Number) and expr.is_one()


def _sum_of(terms: Iterable[Expression]) -> Expression:
    """Build a flattened sum, dropping zeros and collapsing short lists."""
    flat: List[Expression] = []
    for term in terms:
        if isinstance(term, Addition):
            flat.extend(term.terms)
        elif not _is_zero(term):
            flat.append(term)
    if not flat:
        return Number(0)
    if len(flat) == 1:
        return flat[0]
    return Addition(flat)


def _product_of(factors: Iterable[Expression]) -> Expression:
    """Build a flattened product, dropping ones and collapsing short lists."""
    flat: List[Expression] = []
    for factor in factors:
        if isinstance(factor, Multiplication):
            flat.extend(factor.factors)
        elif not _is_one(factor):
            flat.append(factor)
    if not flat:
        return Number(1)
    if len(flat) == 1:
        return flat[0]
    return Multiplication(flat)


def _factors(expr: Expression) -> Tuple[Expression, ...]:
    if isinstance(expr, Multiplication):
        return expr.factors
    return (expr,)


def _common_factors(lhs: Iterable[Expression], rhs: Iterable[Expression]):
    """
    Split two factor lists into (common, lhs_rest, rhs_rest).

    Scans lhs from the back; each lhs factor is matched against the first
    equal factor found scanning rhs from the back, and a matched pair is
    removed from both sides. Common factors keep their lhs order.
    """
    left = list(lhs)
    right = list(rhs)
    common: List[Expression] = []
    for i in range(len(left) - 1, -1, -1):
        for j in range(len(right) - 1, -1, -1):
            if left[i] == right[j]:
                common.insert(0, left.pop(i))
                del right[j]
                break
    return common, left, right


def _factor_out(lhs: Expression, rhs: Expression,
                combine: Callable[[Expression, Expression], Expression]) -> Expression:
    """lhs +/- rhs for products: a*b + a*c -> a*(b + c)."""
    common, left, right = _common_factors(_factors(lhs), _factors(rhs))
    if not common:
        if combine is add:
            return Addition((lhs, rhs))
        return Addition((lhs, neg(rhs)))
    return mul(_product_of(common), combine(_product_of(left), _product_of(right)))


def _cancel(numerator: Iterable[Expression], denominator: Iterable[Expression]) -> Expression:
    """Divide two factor lists, cancelling factors present on both sides."""
    common, left, right = _common_factors(numerator, denominator)
    if not common:
        return Division(_product_of(left), _product_of(right))
    return div(_product_of(left), _product_of(right))


def _coerce(value: Any):
    if isinstance(value, Expression):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return number(value)
    return NotImplemented


def _binding_pairs(bindings: BindingsType) -> List[Tuple[str, Expression]]:
    items = bindings.items() if isinstance(bindings, Mapping) else bindings
    pairs = []
    for name, value in items:
        expr = _coerce(value)
        if expr is NotImplemented:
            raise TypeError(f"Cannot bind '{name}' to {type(value).__name__}")
        pairs.append((name, expr))
    return pairs


# ============================================================
# Operator Dispatch
# ============================================================
#
# Each operator is one ordered list of rules over the operand shapes:
#   1. same shape          -> that shape's own rule
#   2. identity/absorbing  -> +0, -0, *0, *1, /1, 0/x
#   3. Number and Addition -> fold the constant into the sum
#   4. Negation operand    -> pull the sign outward
#   5. Division operand    -> cross-multiply / multiply by the reciprocal
#   6. absorption          -> append to an existing Addition/Multiplication
#   7. fallback            -> a fresh two-element node

def add(lhs: Expression, rhs: Expression) -> Expression:
    """
    lhs + rhs in canonical form.

    Examples:
        add(number(3), number(4))           # => Number(7)
        add(quotient(1, 2), quotient(1, 3)) # => Division(Number(5), Number(6))
        add(variable("x"), -variable("y"))  # => Addition([x, Negation(y)])
    """
    if type(lhs) is type(rhs):
        return lhs.plus(rhs)

    if _is_zero(lhs):
        return rhs
    if _is_zero(rhs):
        return lhs

    if isinstance(lhs, Number) and isinstance(rhs, Addition):
        return rhs.add_num(lhs)
    if isinstance(lhs, Addition) and isinstance(rhs, Number):
        return lhs.add_num(rhs)

    # (-a) + b == b - a
    if isinstance(lhs, Negation):
        return sub(rhs, lhs.operand)
    if isinstance(rhs, Negation):
        return sub(lhs, rhs.operand)

    if isinstance(lhs, Addition):
        return lhs.add_term(rhs)
    if isinstance(rhs, Addition):
        return rhs.add_term(lhs)

    # a/b + c == (c*b + a) / b
    if isinstance(lhs, Division):
        return div(add(mul(rhs, lhs.denominator), lhs.numerator), lhs.denominator)
    if isinstance(rhs, Division):
        return div(add(mul(lhs, rhs.denominator), rhs.numerator), rhs.denominator)

    if _is_product_and_variable(lhs, rhs):
        return _factor_out(lhs, rhs, add)

    return Addition((lhs, rhs))


def sub(lhs: Expression, rhs: Expression) -> Expression:
    """
    lhs - rhs in canonical form.

    Examples:
        sub(number(3), number(5))             # => Negation(Number(2))
        sub(variable("x"), variable("x"))     # => Number(0)
        sub(negate(variable("a")), negate(variable("b")))  # => b - a
    """
    if type(lhs) is type(rhs):
        return lhs.minus(rhs)

    if _is_zero(rhs):
        return lhs
    if _is_zero(lhs):
        return neg(rhs)

    if isinstance(lhs, Addition) and isinstance(rhs, Number):
        return lhs.sub_num(rhs)

    if isinstance(lhs, Negation):
        return neg(add(lhs.operand, rhs))
    if isinstance(rhs, Negation):
        return add(lhs, rhs.operand)

    if isinstance(lhs, Addition):
        return lhs.add_term(neg(rhs))
    if isinstance(rhs, Addition):
        return reduce(sub, rhs.terms, lhs)

    # a/b - c == (a - c*b) / b
    if isinstance(lhs, Division):
        return div(sub(lhs.numerator, mul(rhs, lhs.denominator)), lhs.denominator)
    # a - c/d == (a*d - c) / d
    if isinstance(rhs, Division):
        return div(sub(mul(lhs, rhs.denominator), rhs.numerator), rhs.denominator)

    if _is_product_and_variable(lhs, rhs):
        return _factor_out(lhs, rhs, sub)

    return Addition((lhs, neg(rhs)))


def mul(lhs: Expression, rhs: Expression) -> Expression:
    """
    lhs * rhs in canonical form.

    Examples:
        mul(number(3), number(4))              # => Number(12)
        mul(quotient(2, 3), number(3))         # => Number(2)
        mul(variable("x"), -variable("y"))     # => Negation(x*y)
    """
    if type(lhs) is type(rhs):
        return lhs.times(rhs)

    if _is_zero(lhs):
        return lhs
    if _is_zero(rhs):
        return rhs
    if _is_one(lhs):
        return rhs
    if _is_one(rhs):
        return lhs

    if isinstance(rhs, Negation):
        return neg(mul(lhs, rhs.operand))
    if isinstance(lhs, Negation):
        return neg(mul(lhs.operand, rhs))

    if isinstance(rhs, Division):
        return div(mul(lhs, rhs.numerator), rhs.denominator)
    if isinstance(lhs, Division):
        return div(mul(lhs.numerator, rhs), lhs.denominator)

    if isinstance(lhs, Multiplication):
        return lhs.mul_term(rhs)
    if isinstance(rhs, Multiplication):
        return rhs.mul_term(lhs)

    if isinstance(rhs, Number):
        return Multiplication((rhs, lhs))
    return Multiplication((lhs, rhs))


def div(lhs: Expression, rhs: Expression) -> Expression:
    """
    lhs / rhs in canonical form.

    Raises:
        DivisionByZero: if rhs is Number(0)

    Examples:
        div(number(6), number(4))              # => Division(Number(3), Number(2))
        div(number(8), number(2))              # => Number(4)
        div(quotient(1, 2), quotient(1, 4))    # => Number(2)
    """
    if _is_zero(rhs):
        raise DivisionByZero()

    if type(lhs) is type(rhs):
        return lhs.over(rhs)

    if _is_zero(lhs):
        return lhs
    if _is_one(rhs):
        return lhs

    if isinstance(lhs, Negation):
        return neg(div(lhs.operand, rhs))
    if isinstance(rhs, Negation):
        return neg(div(lhs, rhs.operand))

    # a / (c/d) == a*d / c
    if isinstance(rhs, Division):
        return div(mul(lhs, rhs.denominator), rhs.numerator)
    # (a/b) / c == a / (b*c)
    if isinstance(lhs, Division):
        return div(lhs.numerator, mul(lhs.denominator, rhs))

    if isinstance(lhs, Multiplication) or isinstance(rhs, Multiplication):
        return _cancel(_factors(lhs), _factors(rhs))

    return Division(lhs, rhs)


def neg(expr: Expression) -> Expression:
    """
    -expr in canonical form.

    Double negation collapses and zero is returned unchanged.
    """
    return expr.negate()


negate = neg


def _is_product_and_variable(lhs: Expression, rhs: Expression) -> bool:
    return ((isinstance(lhs, Multiplication) and isinstance(rhs, Variable))
            or (isinstance(lhs, Variable) and isinstance(rhs, Multiplication)))


# ============================================================
# Public Constructors
# ============================================================

def number(value: NumericType) -> Expression:
    """
    Canonical expression for a scalar.

    Negative values become Negation(Number(-value)).

    Examples:
        number(5)   # => Number(5)
        number(-5)  # => Negation(Number(5))
    """
    if value < type(value)():
        return Number(-value).negate()
    return Number(value)


def variable(name: str) -> Variable:
    """Create a named variable."""
    return Variable(name)


def quotient(dividend: NumericType, divisor: NumericType) -> Expression:
    """
    Canonical expression for dividend / divisor.

    Examples:
        quotient(2, 6)  # => Division(Number(1), Number(3))
        quotient(4, 2)  # => Number(2)
    """
    return div(number(dividend), number(divisor))


# ============================================================
# Formatting
# ============================================================

def _format_grouped(expr: Expression, bare: Tuple[type, ...]) -> str:
    text = format_expr(expr)
    if isinstance(expr, bare):
        return text
    return f"({text})"


def format_expr(expr: Expression) -> str:
    """
    Format an expression as infix text.

    Variable-free output parses back to an equal expression.

    Examples:
        Addition([Variable('x'), Negation(Number(3))])  -> "x - 3"
        Division(Number(3), Number(10))                 -> "3 / 10"
        Multiplication([Number(2), Addition([...])])    -> "2 * (x + 1)"
    """
    if isinstance(expr, Number):
        try:
            return str(expr.value)
        except ValueError:
            raise ValueTooLarge("Value has too many digits to format") from None
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Negation):
        return "-" + _format_grouped(expr.operand, (Number, Variable))
    if isinstance(expr, Addition):
        parts = [format_expr(expr.terms[0])]
        for term in expr.terms[1:]:
            if isinstance(term, Negation):
                parts.append("- " + _format_grouped(term.operand, (Number, Variable, Multiplication, Division)))
            else:
                parts.append("+ " + format_expr(term))
        return " ".join(parts)
    if isinstance(expr, Multiplication):
        return " * ".join(_format_grouped(factor, (Number, Variable)) for factor in expr.factors)
    if isinstance(expr, Division):
        numerator = _format_grouped(expr.numerator, (Number, Variable, Multiplication))
        denominator = _format_grouped(expr.denominator, (Number, Variable))
        return f"{numerator} / {denominator}"
    raise TypeError(f"Not an expression: {expr!r}")
