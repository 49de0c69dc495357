"""
Breadcrumb paths into expression trees.

A Path addresses a node by the sequence of child selectors leading to it
from the root: "term i of a Sum" or "factor i of a Product". Indices are
zero-based. The empty path is the root.

Paths are persistent: append() returns a new path that shares its prefix
with the original, so many match attempts can extend the same prefix
without copying or mutating it.

String form:
    /           - the root
    /+0         - term 0 of the root Sum
    /+1/*2      - factor 2 of term 1 of the root Sum
"""

from typing import Iterator, Optional, Tuple

from .expr import Expr, MalformedExpression, Product, Sum

SUM = "+"
PRODUCT = "*"


class Selector:
    """One step of a path: a node kind (SUM or PRODUCT) and a child index."""

    __slots__ = ('kind', 'index')

    def __init__(self, kind: str, index: int):
        if kind not in (SUM, PRODUCT):
            raise ValueError(f"unknown selector kind: {kind!r}")
        self.kind = kind
        self.index = index

    def __eq__(self, other):
        return (isinstance(other, Selector)
                and self.kind == other.kind
                and self.index == other.index)

    def __hash__(self):
        return hash((self.kind, self.index))

    def __repr__(self) -> str:
        return f"{self.kind}{self.index}"


class Path:
    """An immutable, structurally shared sequence of selectors."""

    __slots__ = ('_parent', '_selector', '_depth', '_hash')

    def __init__(self, parent: Optional['Path'] = None, selector: Optional[Selector] = None):
        self._parent = parent
        self._selector = selector
        self._depth = 0 if parent is None else parent._depth + 1
        self._hash = None

    def append(self, selector: Selector) -> 'Path':
        """Return this path extended by one selector. self is not modified."""
        return Path(self, selector)

    def sum_term(self, index: int) -> 'Path':
        return Path(self, Selector(SUM, index))

    def product_factor(self, index: int) -> 'Path':
        return Path(self, Selector(PRODUCT, index))

    @property
    def parent(self) -> Optional['Path']:
        """The path one step up, or None at the root."""
        return self._parent

    @property
    def last(self) -> Optional[Selector]:
        return self._selector

    @property
    def selectors(self) -> Tuple[Selector, ...]:
        """The selectors from the root outward."""
        steps = []
        node = self
        while node._parent is not None:
            steps.append(node._selector)
            node = node._parent
        steps.reverse()
        return tuple(steps)

    def is_root(self) -> bool:
        return self._depth == 0

    def is_prefix_of(self, other: 'Path') -> bool:
        """True if other is this path or lies beneath it."""
        if other._depth < self._depth:
            return False
        node = other
        while node._depth > self._depth:
            node = node._parent
        return node == self

    def __len__(self) -> int:
        return self._depth

    def __iter__(self) -> Iterator[Selector]:
        return iter(self.selectors)

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, Path) or self._depth != other._depth:
            return False
        return self.selectors == other.selectors

    def __hash__(self):
        if self._hash is None:
            self._hash = hash(self.selectors)
        return self._hash

    def __str__(self) -> str:
        if self._depth == 0:
            return "/"
        return "".join(f"/{s.kind}{s.index}" for s in self.selectors)

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"

    @classmethod
    def parse(cls, text: str) -> 'Path':
        """
        Parse the string form produced by str(path).

        Raises:
            ValueError: If the text is not a well-formed path
        """
        text = text.strip()
        if not text.startswith("/"):
            raise ValueError(f"path must start with '/': {text!r}")
        path = ROOT
        for part in text[1:].split("/"):
            if not part:
                continue
            kind, digits = part[0], part[1:]
            if kind not in (SUM, PRODUCT) or not digits.isdigit():
                raise ValueError(f"bad path step {part!r} in {text!r}")
            path = path.append(Selector(kind, int(digits)))
        return path


ROOT = Path()


# ============================================================
# Traversal
# ============================================================

def subexpressions(expr: Expr, path: Path = ROOT) -> Iterator[Tuple[Path, Expr]]:
    """
    Yield every Sum/Product node and leaf of expr with its path, in pre-order.

    Power nodes are yielded but not descended into; their children have no
    selector. The walk is lazy so callers can stop early.

    Raises:
        MalformedExpression: On a Sum directly inside a Sum or a Product
            directly inside a Product
    """
    yield path, expr
    if isinstance(expr, Sum):
        for i, t in enumerate(expr.terms):
            if isinstance(t, Sum):
                raise MalformedExpression(f"Sum nested directly inside Sum at {path}")
            yield from subexpressions(t, path.sum_term(i))
    elif isinstance(expr, Product):
        for i, f in enumerate(expr.factors):
            if isinstance(f, Product):
                raise MalformedExpression(f"Product nested directly inside Product at {path}")
            yield from subexpressions(f, path.product_factor(i))


def _step(expr: Expr, sel: Selector) -> Expr:
    if sel.kind == SUM and isinstance(expr, Sum):
        return expr.terms[sel.index]
    if sel.kind == PRODUCT and isinstance(expr, Product):
        return expr.factors[sel.index]
    raise ValueError(f"selector {sel!r} does not apply to {type(expr).__name__}")


def resolve(expr: Expr, path: Path) -> Expr:
    """
    Return the sub-tree of expr at path.

    Raises:
        ValueError: If a selector does not fit the node it is applied to
        IndexError: If a selector index is out of range
    """
    for sel in path:
        expr = _step(expr, sel)
    return expr


def replace_at(expr: Expr, path: Path, new: Expr) -> Expr:
    """
    Return a copy of expr with the sub-tree at path replaced by new.

    Only the nodes along the path are rebuilt; everything else is shared.
    The result is not re-flattened.
    """
    return _replace(expr, path.selectors, new)


def _replace(expr: Expr, steps: Tuple[Selector, ...], new: Expr) -> Expr:
    if not steps:
        return new
    sel, rest = steps[0], steps[1:]
    child = _step(expr, sel)
    replaced = _replace(child, rest, new)
    if sel.kind == SUM:
        items = list(expr.terms)
        items[sel.index] = replaced
        return Sum(items)
    items = list(expr.factors)
    items[sel.index] = replaced
    return Product(items)
