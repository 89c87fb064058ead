#!/usr/bin/env python3
"""
exactly Feature Demonstration

This script walks through the major features of the exactly library.
"""

from exactly import (
    parse, process, number, variable, quotient,
    ExactlyError,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_drift():
    """Show where floats drift and exact trees do not."""
    section("Floating Point Drift")

    examples = [
        ("0.1 + 0.2", 0.1 + 0.2),
        ("1.3 + 3.7", 1.3 + 3.7),
        ("0.7 * 3", 0.7 * 3),
    ]

    for expr_str, as_float in examples:
        expr = parse(expr_str)
        print(f"  {expr_str}")
        print(f"    float arithmetic: {as_float!r}")
        print(f"    exact:            {expr} = {expr.calc()!r}")


def demo_parsing():
    """Demonstrate the parser syntax."""
    section("Parser Syntax")

    examples = [
        ("3(8-8/2)", "implicit multiplication"),
        ("8*----2", "even run of minus signs"),
        ("8*-----2", "odd run of minus signs"),
        ("2 + 3 * 4", "precedence"),
        ("1/3 - 1/2", "negative result"),
    ]

    for expr_str, desc in examples:
        expr = parse(expr_str)
        print(f"  {expr_str} ({desc}) => {expr}   repr: {expr!r}")


def demo_quotients():
    """Demonstrate reduction of quotients."""
    section("Quotients")

    print(f"  quotient(2, 6)          => {quotient(2, 6)}")
    print(f"  quotient(4, 2)          => {quotient(4, 2)}")
    print(f"  2/3 + 1/6               => {quotient(2, 3) + quotient(1, 6)}")
    print(f"  (1/2) / (1/4)           => {quotient(1, 2) / quotient(1, 4)}")
    print(f"  number(3) - number(5)   => {number(3) - number(5)!r}")


def demo_variables():
    """Demonstrate symbolic terms and substitution."""
    section("Variables")

    x = variable("x")
    y = variable("y")
    z = variable("z")

    examples = [
        ("x + x", x + x),
        ("3 + x + 2", 3 + x + 2),
        ("x*y + x*z", x * y + x * z),
        ("x*y / x", x * y / x),
        ("x + 1/2", x + quotient(1, 2)),
    ]

    for desc, expr in examples:
        print(f"  {desc:12} => {expr}")

    expr = 7 - x
    print(f"\n  {expr} with x = 5  => {expr.with_var('x', 5)}")

    ratio = (x + 1) / (x - 1)
    print(f"  {ratio} with x = 3  => {ratio.with_var('x', 3)}")
    print(f"  variables of x*y + z  => {sorted((x * y + z).variables())}")


def demo_errors():
    """Demonstrate error reporting."""
    section("Errors")

    examples = [
        ("3 4", 64),
        ("1 +", 64),
        ("1 / 0", 64),
        ("((1))", 1),
    ]

    for expr_str, max_depth in examples:
        try:
            parse(expr_str, max_depth=max_depth)
        except ExactlyError as e:
            print(f"  {expr_str!r:10} => {type(e).__name__}: {e}")

    print(f"  process('0.1 + 0.2') => {process('0.1 + 0.2')!r}")

    try:
        (variable("x") + 1).calc()
    except ExactlyError as e:
        print(f"  {'x + 1':10} => {type(e).__name__}: {e}")


def main():
    """Run all demonstrations."""
    print("exactly - exact arithmetic without floating point drift")
    print("Feature Demonstration")

    demo_drift()
    demo_parsing()
    demo_quotients()
    demo_variables()
    demo_errors()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
