"""
WHEELER - pattern matching over commuting and non-commuting algebra

Finds every place a pattern expression matches inside a subject
expression. Sums match in any order, products respect representation
spaces (factors in the same space keep their order), and pattern
variables bind the sub-expressions they match.

Quick Start:
    from wheeler import E, find_all_matches

    pattern = E("(+ ?x 2)")
    for report in find_all_matches(pattern, E("(* a (+ 2 3))")):
        print(report.anchor, report.bindings["x"])   # /*1 Const(3)

Expression Syntax:
    (+ a b)                   - sum
    (* a b)                   - product
    (^ a 2)                   - power
    (tensor G lorentz mu nu)  - tensor in the "lorentz" space
    (spinor psi dirac)        - spinor in the "dirac" space
    ?x                        - pattern variable
    (? x dirac)               - pattern variable in the "dirac" space

Match Reports:
    report.anchor         - path of the subject node the pattern root matched
    report.matched_paths  - paths of every subject node in the match
    report.bindings       - dict-like pattern variable bindings
"""

__version__ = "0.1.0"

# Expression model
from .expr import (
    Expr,
    Sum,
    Product,
    Power,
    Const,
    Symbol,
    Tensor,
    Spinor,
    PatternVar,
    MalformedExpression,
    make_sum,
    make_product,
    terms,
    factors,
    partition_sum,
    partition_product,
    contains_pattern,
    pattern_vars,
    equivalent,
    check_flattened,
    rep_space,
)

# Paths
from .paths import (
    Path,
    Selector,
    ROOT,
    SUM,
    PRODUCT,
    subexpressions,
    resolve,
    replace_at,
)

# Bindings and match state
from .bindings import (
    Bindings,
    NoMatch,
    MatchContext,
)

# Matching engine
from .matcher import (
    Matcher,
    MatchReport,
    find_all_matches,
    first_match,
    has_match,
)

# Predicate-tree matcher
from .rose import (
    Rose,
    compile_pattern,
    contains,
    match_paths,
)

# Builder and s-expressions
from .sexpr import (
    E,
    parse_sexpr,
    format_sexpr,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Expressions
    "Expr",
    "Sum",
    "Product",
    "Power",
    "Const",
    "Symbol",
    "Tensor",
    "Spinor",
    "PatternVar",
    "MalformedExpression",
    "make_sum",
    "make_product",
    "terms",
    "factors",
    "partition_sum",
    "partition_product",
    "contains_pattern",
    "pattern_vars",
    "equivalent",
    "check_flattened",
    "rep_space",
    # Paths
    "Path",
    "Selector",
    "ROOT",
    "SUM",
    "PRODUCT",
    "subexpressions",
    "resolve",
    "replace_at",
    # Bindings
    "Bindings",
    "NoMatch",
    "MatchContext",
    # Matching
    "Matcher",
    "MatchReport",
    "find_all_matches",
    "first_match",
    "has_match",
    # Predicate trees
    "Rose",
    "compile_pattern",
    "contains",
    "match_paths",
    # Builder
    "E",
    "parse_sexpr",
    "format_sexpr",
]
