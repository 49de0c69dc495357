"""
Pattern matching engine.

WHEELER - pattern matching over commuting and non-commuting algebra

This module finds every place a pattern expression matches inside a
subject expression. Matching respects the algebra:

    Sums      - terms match in any order; the pattern's terms need only be a
                sub-multiset of the subject's terms.
    Products  - factors are grouped by representation space. Factors with
                the empty tag commute and match like sum terms. Factors
                sharing a non-empty tag keep their order and must match a
                contiguous run of the subject's factors in that space.
    Powers    - base and exponent match pairwise.
    Leaves    - compared with leaf_matches(), so annotations are ignored.
    PatternVar - matches any sub-expression and binds it. A variable that
                occurs twice must bind equivalent values.

Usage:
    from wheeler import E, find_all_matches

    x = E.var("x")
    for report in find_all_matches(x + 2, E("(+ 2 3 (* a b))")):
        print(report.anchor, report.bindings[x])

Each matching step is a generator over the ways it can succeed, so a
conflict found late in the search (a repeated variable, say) can go back
and take another way through an earlier step.
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from .bindings import Bindings, MatchContext, NoMatch, _NoMatch
from .expr import (
    Const, Expr, MalformedExpression, PatternVar, Power, Product, SpacesType,
    Sum, Symbol, check_flattened, contains_pattern,
)
from .expr import rep_space as default_rep_space
from .paths import ROOT, Path, subexpressions
from .sexpr import format_sexpr

logger = logging.getLogger(__name__)

RepSpaceFunc = Callable[[Expr], SpacesType]
Located = Tuple[Optional[Path], Expr]


# ============================================================
# Match Report
# ============================================================

class MatchReport:
    """
    The outcome of one successful match attempt.

    Attributes:
        anchor: Path of the subject node the pattern root matched
        matched_paths: Paths of every subject node that took part
        bindings: Bindings of the pattern variables
    """

    __slots__ = ('anchor', 'matched_paths', 'bindings')

    def __init__(self, anchor: Path, matched_paths: frozenset, bindings: Bindings):
        self.anchor = anchor
        self.matched_paths = matched_paths
        self.bindings = bindings

    def __bool__(self) -> bool:
        return True

    def __eq__(self, other):
        if not isinstance(other, MatchReport):
            return False
        return (self.anchor == other.anchor
                and self.matched_paths == other.matched_paths
                and self.bindings == other.bindings)

    def __hash__(self):
        return hash((self.anchor, self.matched_paths))

    def __repr__(self) -> str:
        return f"MatchReport(anchor={self.anchor}, bindings={self.bindings!r})"

    def sorted_paths(self) -> List[Path]:
        """matched_paths in tree order (outer before inner, left to right)."""
        return sorted(self.matched_paths, key=_path_key)

    def format(self) -> str:
        """One-line summary: anchor, then bindings."""
        parts = [str(self.anchor)]
        for var, value in self.bindings.items():
            parts.append(f"?{var.name} = {format_sexpr(value)}")
        return "  ".join(parts)

    def to_dict(self) -> Dict:
        """Convert the report to a JSON-serialisable dictionary."""
        return {
            "anchor": str(self.anchor),
            "matched_paths": [str(p) for p in self.sorted_paths()],
            "bindings": {
                var.name: format_sexpr(value)
                for var, value in self.bindings.items()
            },
        }


def _path_key(path: Path):
    return tuple((s.kind, s.index) for s in path)


def _explicit_first(patterns: List[Expr]) -> List[Expr]:
    """
    Order patterns with variable-free ones ahead of those holding variables.

    Explicit patterns must claim their subject terms before a variable can
    capture one of them.
    """
    explicit = [p for p in patterns if not contains_pattern(p)]
    variable = [p for p in patterns if contains_pattern(p)]
    return explicit + variable


# ============================================================
# Matcher
# ============================================================

class Matcher:
    """
    Matches patterns against subject expressions.

    The representation-space function decides which product factors
    commute: it maps an expression to a tuple of space names, where the
    empty tuple means "commutes with everything". It must be total over
    every factor it is given.

    Example:
        matcher = Matcher()
        if report := matcher.first_match(pattern, subject):
            print(report.anchor, dict(report.bindings.by_name()))

        # Custom spaces: treat every symbol starting with "M" as a matrix
        matcher = Matcher().with_rep_space(
            lambda e: ("matrix",) if getattr(e, "name", "").startswith("M") else ()
        )
    """

    def __init__(self, rep_space: Optional[RepSpaceFunc] = None):
        """
        Initialize a Matcher.

        Args:
            rep_space: Representation-space tag function for product
                factors. Default: wheeler.expr.rep_space.
        """
        self._rep_space: RepSpaceFunc = rep_space or default_rep_space

    def with_rep_space(self, rep_space: RepSpaceFunc) -> 'Matcher':
        """Set the representation-space function. Returns self for chaining."""
        self._rep_space = rep_space
        return self

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def match_at(self, pattern: Expr, subject: Expr,
                 path: Path = ROOT) -> Union[MatchReport, _NoMatch]:
        """
        Attempt a single match with the pattern root at subject.

        Args:
            pattern: Pattern expression
            subject: The subject node to anchor at
            path: Path of subject within its enclosing tree, used for the
                paths recorded in the report

        Returns:
            MatchReport on success, NoMatch (falsy) otherwise
        """
        ctx = MatchContext()
        for _ in self._matches(pattern, subject, path, ctx):
            return MatchReport(path, frozenset(ctx.paths), ctx.to_bindings())
        return NoMatch

    def iter_matches(self, pattern: Expr, subject: Expr) -> Iterator[MatchReport]:
        """
        Lazily yield a report for every anchor in subject where pattern matches.

        Anchors are tried in pre-order, each with a fresh context. Both
        trees are checked for flattening before the first anchor is tried.

        Raises:
            MalformedExpression: If pattern or subject is not flattened, or
                the representation-space function fails on a factor
        """
        check_flattened(pattern)
        check_flattened(subject)
        for path, candidate in subexpressions(subject):
            report = self.match_at(pattern, candidate, path)
            if report:
                logger.debug("match anchored at %s", path)
                yield report

    def find_all(self, pattern: Expr, subject: Expr) -> List[MatchReport]:
        """Return the reports for every matching anchor; empty if none."""
        reports = list(self.iter_matches(pattern, subject))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%d match(es) of %s in %s",
                         len(reports), format_sexpr(pattern), format_sexpr(subject))
        return reports

    def first_match(self, pattern: Expr, subject: Expr) -> Union[MatchReport, _NoMatch]:
        """Return the first report in pre-order, or NoMatch."""
        return next(self.iter_matches(pattern, subject), NoMatch)

    def has_match(self, pattern: Expr, subject: Expr) -> bool:
        """True if pattern matches anywhere in subject. Stops at the first hit."""
        return bool(self.first_match(pattern, subject))

    # ------------------------------------------------------------
    # Core algorithm
    # ------------------------------------------------------------
    #
    # Every step below is a generator that yields once per way the
    # pattern can match. At each yield ctx holds that way's bindings and
    # paths. When resumed, a step puts ctx back the way it found it before
    # trying its next alternative, and it leaves ctx unchanged once it is
    # exhausted. A conflict found late in the search can therefore resume
    # an earlier step and get a different binding out of it.

    def try_match(self, pattern: Expr, subject: Expr, at: Path, ctx: MatchContext) -> bool:
        """
        Match pattern against subject, which sits at path `at`.

        On success ctx holds the bindings and visited paths of the first
        way found. On failure ctx is left as it was.
        """
        for _ in self._matches(pattern, subject, at, ctx):
            return True
        return False

    def _matches(self, pattern: Expr, subject: Expr, at: Path,
                 ctx: MatchContext) -> Iterator[bool]:
        if isinstance(pattern, PatternVar):
            saved = ctx.snapshot()
            if ctx.bind(pattern, subject):
                ctx.visit(at)
                yield True
            ctx.restore(saved)
            return

        if isinstance(pattern, Sum):
            if isinstance(subject, Sum):
                yield from self._match_sum(pattern.terms, subject.terms, at, ctx)
            return

        if isinstance(pattern, Product):
            if isinstance(subject, Product):
                yield from self._match_product(pattern.factors, subject.factors, at, ctx)
            return

        if isinstance(pattern, Power):
            if isinstance(subject, Power):
                yield from self._match_power(pattern, subject, at, ctx)
            return

        if isinstance(pattern, (Symbol, Const)):
            if pattern.leaf_matches(subject):
                saved = ctx.snapshot()
                ctx.visit(at)
                yield True
                ctx.restore(saved)
            return

        raise MalformedExpression(f"cannot match against {type(pattern).__name__}")

    def _match_sum(self, pats: List[Expr], subjs: List[Expr],
                   at: Path, ctx: MatchContext) -> Iterator[bool]:
        for term in subjs:
            if isinstance(term, Sum):
                raise MalformedExpression(f"Sum nested directly inside Sum at {at}")
        if pats and not subjs:
            return
        saved = ctx.snapshot()
        ctx.visit(at)
        located = [(at.sum_term(i), s) for i, s in enumerate(subjs)]
        yield from self._match_unordered(_explicit_first(pats), located, ctx)
        ctx.restore(saved)

    def _match_unordered(self, pats: List[Expr], located: List[Located],
                         ctx: MatchContext) -> Iterator[bool]:
        """
        Match each pattern against some distinct subject, in any order.

        The first pattern tries the subjects left to right; for each way it
        matches one, the remaining patterns are matched against the
        remaining subjects.
        """
        if not pats:
            yield True
            return
        pat, rest = pats[0], pats[1:]
        for k, (path, subj) in enumerate(located):
            for _ in self._matches(pat, subj, path, ctx):
                yield from self._match_unordered(rest, located[:k] + located[k + 1:], ctx)

    def _match_product(self, pats: List[Expr], subjs: List[Expr],
                       at: Path, ctx: MatchContext) -> Iterator[bool]:
        pat_groups = self._group_by_space([(None, p) for p in pats])
        subj_groups = self._group_by_space(
            [(at.product_factor(i), f) for i, f in enumerate(subjs)])

        commuting_pats = _explicit_first([p for _, p in pat_groups.pop((), [])])
        commuting_subjs = subj_groups.pop((), [])
        if commuting_pats and not commuting_subjs:
            return
        if any(space not in subj_groups for space in pat_groups):
            return

        runs = [([p for _, p in group], subj_groups[space])
                for space, group in pat_groups.items()]
        saved = ctx.snapshot()
        ctx.visit(at)
        for _ in self._match_unordered(commuting_pats, commuting_subjs, ctx):
            yield from self._match_runs(runs, ctx)
        ctx.restore(saved)

    def _match_runs(self, runs: List[Tuple[List[Expr], List[Located]]],
                    ctx: MatchContext) -> Iterator[bool]:
        """Match each (needle, haystack) space group in turn."""
        if not runs:
            yield True
            return
        (needle, haystack), rest = runs[0], runs[1:]
        for _ in self._match_infix(needle, haystack, ctx):
            yield from self._match_runs(rest, ctx)

    def _match_infix(self, needle: List[Expr], haystack: List[Located],
                     ctx: MatchContext) -> Iterator[bool]:
        """
        Match needle, in order, against a contiguous run of haystack.

        Windows are tried left to right, so the leftmost match comes first.
        """
        width = len(needle)
        for offset in range(len(haystack) - width + 1):
            yield from self._match_prefix(needle, haystack[offset:offset + width], ctx)

    def _match_prefix(self, needle: List[Expr], window: List[Located],
                      ctx: MatchContext) -> Iterator[bool]:
        if not needle:
            yield True
            return
        path, subj = window[0]
        for _ in self._matches(needle[0], subj, path, ctx):
            yield from self._match_prefix(needle[1:], window[1:], ctx)

    def _match_power(self, pattern: Power, subject: Power,
                     at: Path, ctx: MatchContext) -> Iterator[bool]:
        # Power children are never enumerated; check them here.
        check_flattened(subject)
        # Children of a Power have no path of their own; only the Power is recorded.
        paths = ctx.paths
        for _ in self._matches(pattern.base, subject.base, at, ctx):
            for _ in self._matches(pattern.exponent, subject.exponent, at, ctx):
                inner = ctx.snapshot()
                ctx.paths = paths
                ctx.visit(at)
                yield True
                ctx.restore(inner)

    def _group_by_space(self, located: List[Located]) -> Dict[SpacesType, List[Located]]:
        """Group factors by representation space, keeping first-seen order."""
        groups: Dict[SpacesType, List[Located]] = {}
        for path, factor in located:
            if isinstance(factor, Product):
                raise MalformedExpression(f"Product nested directly inside Product: {factor!r}")
            groups.setdefault(self._space_of(factor), []).append((path, factor))
        return groups

    def _space_of(self, factor: Expr) -> SpacesType:
        try:
            space = self._rep_space(factor)
        except MalformedExpression:
            raise
        except (LookupError, TypeError, AttributeError, ValueError) as e:
            raise MalformedExpression(
                f"representation space undefined for {factor!r}: {e}") from e
        if not isinstance(space, tuple):
            raise MalformedExpression(
                f"representation space of {factor!r} must be a tuple, got {space!r}")
        return space

    def __repr__(self) -> str:
        name = getattr(self._rep_space, '__name__', repr(self._rep_space))
        return f"Matcher(rep_space={name})"


# ============================================================
# Module-level convenience API
# ============================================================

_default_matcher = Matcher()


def find_all_matches(pattern: Expr, subject: Expr) -> List[MatchReport]:
    """
    Find every anchor in subject where pattern matches.

    Returns:
        Reports in pre-order of their anchors; an empty list means no match.
    """
    return _default_matcher.find_all(pattern, subject)


def first_match(pattern: Expr, subject: Expr) -> Union[MatchReport, _NoMatch]:
    """Return the first match report in pre-order, or NoMatch."""
    return _default_matcher.first_match(pattern, subject)


def has_match(pattern: Expr, subject: Expr) -> bool:
    """True if pattern matches anywhere in subject."""
    return _default_matcher.has_match(pattern, subject)
