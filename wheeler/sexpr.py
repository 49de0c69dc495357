"""
S-expression reader, writer and expression builder.

WHEELER - pattern matching over commuting and non-commuting algebra

Syntax:
    (+ a b c)                   - Sum
    (* a b)                     - Product
    (^ a 2)                     - Power
    (tensor G lorentz mu nu)    - Tensor G in space "lorentz", indices mu nu
    (tensor G lorentz,spin)     - Tensor in two spaces (comma separated)
    (spinor psi dirac)          - Spinor psi in space "dirac"
    ?x                          - pattern variable x
    (? x dirac)                 - pattern variable x in space "dirac"
    42, -3, 3/4, 2.5            - constants (int, Fraction, float)
    a                           - plain symbol

Nested sums and products are flattened as they are built, so
"(+ a (+ b c))" reads as the three-term sum (+ a b c).

Within one parse, every ?x denotes the same PatternVar.
"""

from fractions import Fraction
from typing import Dict, List, Optional, Tuple, Union

from .expr import (
    Const, Expr, PatternVar, Power, Product, Spinor, Sum, Symbol, Tensor,
    as_expr, make_product, make_sum,
)

RawType = Union[str, List]


# ============================================================
# Reader
# ============================================================

def _read(s: str) -> RawType:
    """
    Split an s-expression string into nested lists of atom strings.

    Examples:
        "(+ x 1)" -> ["+", "x", "1"]
        "(* (^ x 2) y)" -> ["*", ["^", "x", "2"], "y"]
    """
    s = s.strip()
    if not s:
        raise ValueError("empty expression")

    if not s.startswith('('):
        if ')' in s or any(c in s for c in ' \t\n'):
            raise ValueError(f"unexpected text in atom: {s!r}")
        return s

    depth = 0
    parts = []
    current = ''
    i = 1  # Skip opening paren

    while i < len(s):
        c = s[i]
        if c == '(':
            depth += 1
            current += c
        elif c == ')':
            if depth == 0:
                if current.strip():
                    parts.append(_read(current.strip()))
                if s[i + 1:].strip():
                    raise ValueError(f"trailing text after expression: {s[i + 1:].strip()!r}")
                return parts
            depth -= 1
            current += c
        elif c in ' \t\n' and depth == 0:
            if current.strip():
                parts.append(_read(current.strip()))
            current = ''
        else:
            current += c
        i += 1

    raise ValueError(f"unbalanced parentheses in {s!r}")


def _number(atom: str) -> Optional[Union[int, float, Fraction]]:
    try:
        return int(atom)
    except ValueError:
        pass
    if '/' in atom:
        try:
            return Fraction(atom)
        except (ValueError, ZeroDivisionError):
            return None
    if not (atom[0].isdigit() or atom[0] in "+-."):
        return None
    try:
        return float(atom)
    except ValueError:
        return None


def _spaces(atom: RawType) -> Tuple[str, ...]:
    if not isinstance(atom, str):
        raise ValueError(f"expected a space name, got {atom!r}")
    return tuple(part for part in atom.split(',') if part)


def _name(atom: RawType, what: str) -> str:
    if not isinstance(atom, str) or atom.startswith('?'):
        raise ValueError(f"expected a {what} name, got {atom!r}")
    return atom


def _variable(name: str, spaces: Tuple[str, ...],
              variables: Dict[str, PatternVar]) -> PatternVar:
    var = variables.get(name)
    if var is None:
        var = variables[name] = PatternVar(name, spaces)
    elif spaces and var.spaces != spaces:
        raise ValueError(f"pattern variable ?{name} used with spaces "
                         f"{var.spaces!r} and {spaces!r}")
    return var


def _build(raw: RawType, variables: Dict[str, PatternVar]) -> Expr:
    if isinstance(raw, str):
        if raw.startswith('?'):
            if len(raw) == 1:
                raise ValueError("pattern variable needs a name")
            return _variable(raw[1:], (), variables)
        value = _number(raw)
        if value is not None:
            return Const(value)
        return Symbol(raw)

    if not raw:
        raise ValueError("empty list is not an expression")

    head, args = raw[0], raw[1:]
    if head == '+':
        return make_sum(*[_build(a, variables) for a in args])
    if head == '*':
        return make_product(*[_build(a, variables) for a in args])
    if head == '^':
        if len(args) != 2:
            raise ValueError(f"^ takes 2 arguments, got {len(args)}")
        return Power(_build(args[0], variables), _build(args[1], variables))
    if head == 'tensor':
        if len(args) < 2:
            raise ValueError("tensor needs a name and a space")
        indices = tuple(_name(a, "index") for a in args[2:])
        return Tensor(_name(args[0], "tensor"), _spaces(args[1]), indices)
    if head == 'spinor':
        if len(args) != 2:
            raise ValueError("spinor needs a name and a space")
        return Spinor(_name(args[0], "spinor"), _spaces(args[1]))
    if head == '?':
        if not args or len(args) > 2:
            raise ValueError("(? name [space]) takes one or two arguments")
        spaces = _spaces(args[1]) if len(args) == 2 else ()
        return _variable(_name(args[0], "variable"), spaces, variables)
    raise ValueError(f"unknown operator: {head!r}")


def parse_sexpr(s: str, variables: Optional[Dict[str, PatternVar]] = None) -> Expr:
    """
    Parse an s-expression string into an expression tree.

    Args:
        s: The text to parse
        variables: Optional name -> PatternVar table. Pass the same dict to
            several calls to make their ?x refer to one variable.

    Returns:
        The expression

    Raises:
        ValueError: On malformed input

    Examples:
        "(+ x 1)" -> Sum([Symbol('x'), Const(1)])
        "(* ?a (tensor G lorentz))" -> Product([PatternVar('a'), Tensor('G', ('lorentz',))])
    """
    if variables is None:
        variables = {}
    return _build(_read(s), variables)


# ============================================================
# Writer
# ============================================================

def _format_const(value) -> str:
    if isinstance(value, Fraction):
        if value.denominator == 1:
            return str(value.numerator)
        return f"{value.numerator}/{value.denominator}"
    return str(value)


def format_sexpr(expr: Expr) -> str:
    """
    Format an expression as an s-expression string.

    The output reads back with parse_sexpr() to an equivalent expression.

    Examples:
        Sum([Symbol('x'), Const(1)]) -> "(+ x 1)"
        PatternVar('x') -> "?x"
    """
    if isinstance(expr, Sum):
        return "(" + " ".join(["+"] + [format_sexpr(t) for t in expr.terms]) + ")"
    if isinstance(expr, Product):
        return "(" + " ".join(["*"] + [format_sexpr(f) for f in expr.factors]) + ")"
    if isinstance(expr, Power):
        return f"(^ {format_sexpr(expr.base)} {format_sexpr(expr.exponent)})"
    if isinstance(expr, Const):
        return _format_const(expr.value)
    if isinstance(expr, Tensor):
        parts = ["tensor", expr.name, ",".join(expr.spaces)] + list(expr.indices)
        return "(" + " ".join(parts) + ")"
    if isinstance(expr, Spinor):
        return f"(spinor {expr.name} {','.join(expr.spaces)})"
    if isinstance(expr, Symbol):
        return expr.name
    if isinstance(expr, PatternVar):
        if expr.spaces:
            return f"(? {expr.name} {','.join(expr.spaces)})"
        return f"?{expr.name}"
    return str(expr)


# ============================================================
# Expression Builder
# ============================================================

class _ExprBuilder:
    """
    Expression builder for WHEELER.

    Examples:
        from wheeler import E

        # Parse s-expression string
        expr = E("(+ x (* 2 y))")

        # Build programmatically
        x, y = E.syms("x", "y")
        expr = E.sum(x, E.product(2, y))

        # Non-commuting factors
        A = E.tensor("A", "lorentz")
        B = E.tensor("B", "lorentz")
        expr = E.product(2, A, B)

        # Pattern variables
        v = E.var("v")
        pattern = E.sum(v, 2)
    """

    def __call__(self, s: str) -> Expr:
        """Parse an s-expression string."""
        return parse_sexpr(s)

    def sum(self, *terms) -> Sum:
        """Build a flattened Sum; numbers and strings are coerced."""
        return make_sum(*terms)

    def product(self, *factors) -> Product:
        """Build a flattened Product; numbers and strings are coerced."""
        return make_product(*factors)

    def power(self, base, exponent) -> Power:
        return Power(as_expr(base), as_expr(exponent))

    def sym(self, name: str) -> Symbol:
        return Symbol(name)

    def syms(self, *names: str) -> Tuple[Symbol, ...]:
        """
        Create several symbols for unpacking.

        Example:
            a, b, c = E.syms("a", "b", "c")
        """
        return tuple(Symbol(n) for n in names)

    def tensor(self, name: str, *spaces: str, indices: Tuple[str, ...] = ()) -> Tensor:
        return Tensor(name, spaces, indices)

    def spinor(self, name: str, *spaces: str) -> Spinor:
        return Spinor(name, spaces)

    def const(self, value) -> Const:
        return Const(value)

    def var(self, name: str, *spaces: str) -> PatternVar:
        """Create a pattern variable, optionally inside representation spaces."""
        return PatternVar(name, spaces)

    def vars(self, *names: str) -> Tuple[PatternVar, ...]:
        return tuple(PatternVar(n) for n in names)

    def __repr__(self) -> str:
        return "E (expression builder)"


# Singleton instance
E = _ExprBuilder()
