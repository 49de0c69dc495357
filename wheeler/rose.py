"""
Predicate-tree matcher for simple containment queries.

A pattern expression is compiled to a rose tree whose nodes hold
predicates. Sums match their children as an unordered sub-multiset,
products as an ordered (but not necessarily contiguous) subsequence, and
every other node by equivalent(). There are no pattern variables and no
representation spaces; use wheeler.matcher for those.
"""

from typing import Callable, List

from .expr import Expr, Product, Sum, equivalent
from .paths import ROOT, Path

Pred = Callable[[Expr], bool]


class Rose:
    """A rose tree node: a predicate and its child patterns."""

    __slots__ = ('pred', 'children')

    def __init__(self, pred: Pred, children: List['Rose']):
        self.pred = pred
        self.children = children

    def __repr__(self) -> str:
        return f"Rose({getattr(self.pred, '__name__', 'pred')}, {len(self.children)} children)"


def is_sum(e: Expr) -> bool:
    return isinstance(e, Sum)


def is_product(e: Expr) -> bool:
    return isinstance(e, Product)


def equivalent_to(target: Expr) -> Pred:
    def pred(e: Expr) -> bool:
        return equivalent(target, e)
    pred.__name__ = "equivalent_to"
    return pred


def compile_pattern(expr: Expr) -> Rose:
    """Turn an expression into a predicate tree."""
    if isinstance(expr, Sum):
        return Rose(is_sum, [compile_pattern(t) for t in expr.terms])
    if isinstance(expr, Product):
        return Rose(is_product, [compile_pattern(f) for f in expr.factors])
    return Rose(equivalent_to(expr), [])


def one_match(pattern: Rose, expr: Expr) -> bool:
    """Check whether pattern matches with its root at expr."""
    if not pattern.pred(expr):
        return False
    if isinstance(expr, Sum):
        return _unordered(pattern.children, expr.terms)
    if isinstance(expr, Product):
        return _ordered(pattern.children, expr.factors)
    return True


def _unordered(pats: List[Rose], items: List[Expr]) -> bool:
    # Each pattern consumes the item it matches, so duplicates need as
    # many occurrences in the subject.
    if not pats:
        return True
    for k, item in enumerate(items):
        if one_match(pats[0], item) and _unordered(pats[1:], items[:k] + items[k + 1:]):
            return True
    return False


def _ordered(pats: List[Rose], items: List[Expr]) -> bool:
    pos = 0
    for pat in pats:
        while pos < len(items) and not one_match(pat, items[pos]):
            pos += 1
        if pos == len(items):
            return False
        pos += 1
    return True


def contains(pattern: Rose, expr: Expr) -> bool:
    """Check whether pattern matches anywhere in expr."""
    if one_match(pattern, expr):
        return True
    if isinstance(expr, Sum):
        return any(contains(pattern, t) for t in expr.terms)
    if isinstance(expr, Product):
        return any(contains(pattern, f) for f in expr.factors)
    return False


def match_paths(pattern: Rose, expr: Expr, path: Path = ROOT) -> List[Path]:
    """Paths of every node of expr where pattern matches, in pre-order."""
    found = [path] if one_match(pattern, expr) else []
    if isinstance(expr, Sum):
        for i, t in enumerate(expr.terms):
            found.extend(match_paths(pattern, t, path.sum_term(i)))
    elif isinstance(expr, Product):
        for i, f in enumerate(expr.factors):
            found.extend(match_paths(pattern, f, path.product_factor(i)))
    return found
