"""
Bindings and per-attempt match state.

WHEELER - pattern matching over commuting and non-commuting algebra

MatchContext is the state threaded through one match attempt: the pattern
variable bindings made so far and the subject paths confirmed as part of
the match. Both are held in tuples that are replaced, never mutated, so a
snapshot is just a pair of references and restoring it undoes everything
a failed branch added.

Bindings is the read-only, dict-like view of the final bindings handed to
callers. NoMatch is its falsy counterpart for failed matches.
"""

from typing import Dict, Iterator, Optional, Tuple, Union

from .expr import Expr, PatternVar, equivalent
from .paths import Path

BindingPairs = Tuple[Tuple[PatternVar, Expr], ...]


# ============================================================
# Bindings Class - Dict-like interface for match results
# ============================================================

class Bindings:
    """
    Dict-like wrapper for the variable bindings of a successful match.

    Keys are PatternVar objects. For convenience a variable can also be
    looked up by name; when several variables share a name, the first
    bound wins.

        report = first_match(pattern, subject)
        report.bindings[x]        # by variable
        report.bindings["x"]      # by name
        dict(report.bindings.by_name())

    Bindings objects are truthy even when empty.
    """

    __slots__ = ('_pairs', '_dict')

    def __init__(self, pairs: BindingPairs = ()):
        self._pairs = tuple(pairs)
        self._dict = {var: value for var, value in self._pairs}

    def __bool__(self) -> bool:
        return True

    def _key(self, key: Union[PatternVar, str]) -> PatternVar:
        if isinstance(key, str):
            for var, _ in self._pairs:
                if var.name == key:
                    return var
            raise KeyError(key)
        return key

    def __getitem__(self, key: Union[PatternVar, str]) -> Expr:
        return self._dict[self._key(key)]

    def get(self, key: Union[PatternVar, str], default=None):
        try:
            return self[key]
        except KeyError:
            return default

    def __contains__(self, key) -> bool:
        try:
            return self._key(key) in self._dict
        except KeyError:
            return False

    def keys(self):
        return self._dict.keys()

    def values(self):
        return self._dict.values()

    def items(self):
        return self._dict.items()

    def __iter__(self) -> Iterator[PatternVar]:
        return iter(self._dict)

    def __len__(self) -> int:
        return len(self._dict)

    def __repr__(self) -> str:
        inner = ", ".join(f"{var.name}: {value!r}" for var, value in self._pairs)
        return f"Bindings({{{inner}}})"

    def __eq__(self, other):
        if isinstance(other, Bindings):
            return self._dict == other._dict
        return False

    def by_name(self) -> Dict[str, Expr]:
        """Map variable names to bound values."""
        out = {}
        for var, value in self._pairs:
            out.setdefault(var.name, value)
        return out


class _NoMatch:
    """
    Singleton representing a failed match attempt.

    NoMatch is falsy, allowing natural use in conditionals:

        if report := matcher.match_at(pattern, subject):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoMatch"

    def __getitem__(self, key):
        raise KeyError(f"NoMatch has no binding for {key!r}")

    def get(self, key, default=None):
        return default

    def __contains__(self, key) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self):
        return iter([])


# Singleton instance
NoMatch = _NoMatch()


# ============================================================
# Match Context
# ============================================================

Snapshot = Tuple[BindingPairs, Tuple[Path, ...]]


class MatchContext:
    """
    Mutable state for a single match attempt.

    Every update rebinds an attribute to a new tuple, so snapshot() is
    O(1) and a restored snapshot is unaffected by later updates.
    """

    __slots__ = ('bindings', 'paths')

    def __init__(self):
        self.bindings: BindingPairs = ()
        self.paths: Tuple[Path, ...] = ()

    def snapshot(self) -> Snapshot:
        return self.bindings, self.paths

    def restore(self, saved: Snapshot) -> None:
        self.bindings, self.paths = saved

    def visit(self, path: Path) -> None:
        """Record a subject node as part of the match."""
        self.paths = self.paths + (path,)

    def lookup(self, var: PatternVar) -> Optional[Expr]:
        """Return the value bound to var, or None if it is unbound."""
        for bound, value in self.bindings:
            if bound is var:
                return value
        return None

    def bind(self, var: PatternVar, value: Expr) -> bool:
        """
        Bind var to value.

        A variable that is already bound only accepts a value equivalent to
        its existing binding; anything else is a conflict and returns False
        with the context unchanged.
        """
        existing = self.lookup(var)
        if existing is not None:
            return equivalent(existing, value)
        self.bindings = self.bindings + ((var, value),)
        return True

    def to_bindings(self) -> Bindings:
        return Bindings(self.bindings)

    def __repr__(self) -> str:
        return f"MatchContext(bindings={len(self.bindings)}, paths={len(self.paths)})"

