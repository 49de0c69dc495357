"""
Expression tree model for symbolic matching.

WHEELER - pattern matching over commuting and non-commuting algebra

An expression is a tree built from a closed set of node types:

    Sum(terms)            - commutative, term order kept but not significant
    Product(factors)      - factors commute unless they share a
                            representation space
    Power(base, exponent)
    Symbol, Tensor, Spinor - named leaves
    Const(value)          - numeric leaf
    PatternVar(name)      - leaf usable only in patterns, matches anything

Sum and Product nodes are stored flattened: a Sum never holds a Sum
directly and a Product never holds a Product directly. The matcher relies
on this; use make_sum() and make_product() to build trees that respect it.
"""

from fractions import Fraction
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

NumericType = Union[int, float, Fraction]
SpacesType = Tuple[str, ...]


class MalformedExpression(ValueError):
    """Raised when a tree violates a structural precondition of the matcher."""


# ============================================================
# Node Types
# ============================================================

class Expr:
    """Base class for all expression nodes."""

    __slots__ = ()

    def __add__(self, other: "Expr") -> "Sum":
        return make_sum(self, other)

    def __radd__(self, other) -> "Sum":
        return make_sum(other, self)

    def __mul__(self, other: "Expr") -> "Product":
        return make_product(self, other)

    def __rmul__(self, other) -> "Product":
        return make_product(other, self)

    def __pow__(self, other: "Expr") -> "Power":
        return Power(self, as_expr(other))


class Sum(Expr):
    """A commutative sum of terms."""

    __slots__ = ('terms',)

    def __init__(self, terms: List[Expr]):
        self.terms = list(terms)

    def __eq__(self, other):
        return isinstance(other, Sum) and self.terms == other.terms

    def __hash__(self):
        return hash(('Sum', tuple(self.terms)))

    def __repr__(self) -> str:
        return f"Sum({self.terms!r})"


class Product(Expr):
    """A product of factors, commuting only outside representation spaces."""

    __slots__ = ('factors',)

    def __init__(self, factors: List[Expr]):
        self.factors = list(factors)

    def __eq__(self, other):
        return isinstance(other, Product) and self.factors == other.factors

    def __hash__(self):
        return hash(('Product', tuple(self.factors)))

    def __repr__(self) -> str:
        return f"Product({self.factors!r})"


class Power(Expr):
    """base ** exponent."""

    __slots__ = ('base', 'exponent')

    def __init__(self, base: Expr, exponent: Expr):
        self.base = base
        self.exponent = exponent

    def __eq__(self, other):
        return (isinstance(other, Power)
                and self.base == other.base
                and self.exponent == other.exponent)

    def __hash__(self):
        return hash(('Power', self.base, self.exponent))

    def __repr__(self) -> str:
        return f"Power({self.base!r}, {self.exponent!r})"


class Const(Expr):
    """A numeric constant, compared by value."""

    __slots__ = ('value',)

    def __init__(self, value: NumericType):
        self.value = value

    def leaf_matches(self, other: Expr) -> bool:
        return isinstance(other, Const) and self.value == other.value

    def __eq__(self, other):
        return isinstance(other, Const) and self.value == other.value

    def __hash__(self):
        return hash(('Const', self.value))

    def __repr__(self) -> str:
        return f"Const({self.value!r})"


class Symbol(Expr):
    """
    A plain, fully commuting symbol.

    Annotations hold display or bookkeeping data (a LaTeX form, a source
    position, ...). They take part in ==, but never in leaf_matches().
    """

    __slots__ = ('name', 'annotations')

    def __init__(self, name: str, annotations: Optional[Dict[str, Any]] = None):
        self.name = name
        self.annotations = annotations or {}

    @property
    def spaces(self) -> SpacesType:
        return ()

    def leaf_matches(self, other: Expr) -> bool:
        """Matchable capability: same kind and name, annotations ignored."""
        return type(other) is type(self) and self.name == other.name

    def __eq__(self, other):
        return self.leaf_matches(other) and self.annotations == other.annotations

    def __hash__(self):
        return hash((type(self).__name__, self.name))

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"


class Tensor(Symbol):
    """A tensor symbol living in one or more representation spaces."""

    __slots__ = ('_spaces', 'indices')

    def __init__(self, name: str, spaces: SpacesType, indices: Tuple[str, ...] = (),
                 annotations: Optional[Dict[str, Any]] = None):
        super().__init__(name, annotations)
        self._spaces = tuple(spaces)
        self.indices = tuple(indices)

    @property
    def spaces(self) -> SpacesType:
        return self._spaces

    def leaf_matches(self, other: Expr) -> bool:
        return (type(other) is type(self)
                and self.name == other.name
                and self.spaces == other.spaces
                and self.indices == other.indices)

    def __hash__(self):
        return hash(('Tensor', self.name, self._spaces, self.indices))

    def __repr__(self) -> str:
        if self.indices:
            return f"Tensor({self.name!r}, {self._spaces!r}, {self.indices!r})"
        return f"Tensor({self.name!r}, {self._spaces!r})"


class Spinor(Symbol):
    """A Dirac spinor symbol; never commutes with others in its space."""

    __slots__ = ('_spaces',)

    def __init__(self, name: str, spaces: SpacesType,
                 annotations: Optional[Dict[str, Any]] = None):
        super().__init__(name, annotations)
        self._spaces = tuple(spaces)

    @property
    def spaces(self) -> SpacesType:
        return self._spaces

    def leaf_matches(self, other: Expr) -> bool:
        return (type(other) is type(self)
                and self.name == other.name
                and self.spaces == other.spaces)

    def __hash__(self):
        return hash(('Spinor', self.name, self._spaces))

    def __repr__(self) -> str:
        return f"Spinor({self.name!r}, {self._spaces!r})"


class PatternVar(Expr):
    """
    A pattern variable.

    Equality is identity: two PatternVar objects are distinct variables
    even when they share a name. The optional spaces place the variable
    in a representation space so it can stand for a non-commuting factor.
    """

    __slots__ = ('name', 'spaces')

    def __init__(self, name: str, spaces: SpacesType = ()):
        self.name = name
        self.spaces = tuple(spaces)

    def __repr__(self) -> str:
        if self.spaces:
            return f"PatternVar({self.name!r}, {self.spaces!r})"
        return f"PatternVar({self.name!r})"


LEAF_TYPES = (Symbol, Const)


# ============================================================
# Construction
# ============================================================

def as_expr(e) -> Expr:
    """Return e as an expression; numbers become Const and strings Symbol."""
    if isinstance(e, Expr):
        return e
    if isinstance(e, (int, float, Fraction)) and not isinstance(e, bool):
        return Const(e)
    if isinstance(e, str):
        return Symbol(e)
    raise TypeError(f"cannot convert {type(e).__name__} to an expression")


def make_sum(*items) -> Sum:
    """
    Build a Sum, splicing in the terms of any nested Sum.

    Numbers and strings are accepted as shorthand for Const and Symbol.
    """
    flat = []
    for item in items:
        item = as_expr(item)
        if isinstance(item, Sum):
            flat.extend(item.terms)
        else:
            flat.append(item)
    return Sum(flat)


def make_product(*items) -> Product:
    """Build a Product, splicing in the factors of any nested Product."""
    flat = []
    for item in items:
        item = as_expr(item)
        if isinstance(item, Product):
            flat.extend(item.factors)
        else:
            flat.append(item)
    return Product(flat)


# ============================================================
# Helpers
# ============================================================

def terms(e: Expr) -> List[Expr]:
    """The terms of a Sum, or [e] for anything else."""
    if isinstance(e, Sum):
        return list(e.terms)
    return [e]


def factors(e: Expr) -> List[Expr]:
    """The factors of a Product, or [e] for anything else."""
    if isinstance(e, Product):
        return list(e.factors)
    return [e]


def partition_sum(pred: Callable[[Expr], bool], e: Expr) -> Tuple[Expr, Expr]:
    """
    Split the terms of a Sum into those satisfying pred and the rest.

    A non-Sum expression is returned as (Const(0), e).
    """
    if not isinstance(e, Sum):
        return Const(0), e
    yes = [t for t in e.terms if pred(t)]
    no = [t for t in e.terms if not pred(t)]
    return Sum(yes), Sum(no)


def partition_product(pred: Callable[[Expr], bool], e: Expr) -> Tuple[Expr, Expr]:
    """Like partition_sum, for factors; a non-Product gives (Const(1), e)."""
    if not isinstance(e, Product):
        return Const(1), e
    yes = [f for f in e.factors if pred(f)]
    no = [f for f in e.factors if not pred(f)]
    return Product(yes), Product(no)


def children(e: Expr) -> List[Expr]:
    if isinstance(e, Sum):
        return e.terms
    if isinstance(e, Product):
        return e.factors
    if isinstance(e, Power):
        return [e.base, e.exponent]
    return []


def contains_pattern(e: Expr) -> bool:
    """Check whether a pattern variable occurs anywhere in e."""
    if isinstance(e, PatternVar):
        return True
    return any(contains_pattern(c) for c in children(e))


def pattern_vars(e: Expr) -> List[PatternVar]:
    """Distinct pattern variables of e, in first-occurrence order."""
    found = []

    def walk(x):
        if isinstance(x, PatternVar):
            if not any(v is x for v in found):
                found.append(x)
            return
        for c in children(x):
            walk(c)

    walk(e)
    return found


def equivalent(a: Expr, b: Expr) -> bool:
    """
    Order-sensitive structural equality using leaf_matches() at the leaves.

    Unlike ==, leaf annotations are ignored.
    """
    if isinstance(a, PatternVar) or isinstance(b, PatternVar):
        return a is b
    if isinstance(a, LEAF_TYPES):
        return a.leaf_matches(b)
    if type(a) is not type(b):
        return False
    ca, cb = children(a), children(b)
    if len(ca) != len(cb):
        return False
    return all(equivalent(x, y) for x, y in zip(ca, cb))


def check_flattened(e: Expr) -> None:
    """
    Raise MalformedExpression if a Sum holds a Sum or a Product holds a
    Product anywhere in e.
    """
    if isinstance(e, Sum):
        for t in e.terms:
            if isinstance(t, Sum):
                raise MalformedExpression(f"Sum nested directly inside Sum: {e!r}")
    elif isinstance(e, Product):
        for f in e.factors:
            if isinstance(f, Product):
                raise MalformedExpression(f"Product nested directly inside Product: {e!r}")
    for c in children(e):
        check_flattened(c)


# ============================================================
# Representation Spaces
# ============================================================

def rep_space(e: Expr) -> SpacesType:
    """
    Default representation-space tag of an expression.

    Symbols and constants are fully commuting (empty tag). Tensors,
    spinors and pattern variables carry their declared spaces. A Power
    takes the tag of its base; a Sum or Product takes the sorted union of
    its children's tags.
    """
    if isinstance(e, (Symbol, PatternVar)):
        return e.spaces
    if isinstance(e, Const):
        return ()
    if isinstance(e, Power):
        return rep_space(e.base)
    if isinstance(e, (Sum, Product)):
        spaces = set()
        for c in children(e):
            spaces.update(rep_space(c))
        return tuple(sorted(spaces))
    raise MalformedExpression(f"no representation space for {type(e).__name__}")
