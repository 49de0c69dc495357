"""Tests for the Bindings class, NoMatch singleton and MatchContext."""

import pytest
from wheeler import E
from wheeler.bindings import Bindings, MatchContext, NoMatch
from wheeler.expr import Const, PatternVar, Symbol
from wheeler.paths import ROOT


class TestBindings:
    """Tests for Bindings class."""

    def setup_method(self):
        self.x = PatternVar("x")
        self.y = PatternVar("y")
        self.bindings = Bindings([(self.x, Const(1)), (self.y, Symbol("a"))])

    def test_getitem_by_variable(self):
        """Bindings are keyed by pattern variable."""
        assert self.bindings[self.x] == Const(1)
        assert self.bindings[self.y] == Symbol("a")

    def test_getitem_by_name(self):
        """A variable can also be looked up by its name."""
        assert self.bindings["x"] == Const(1)
        assert self.bindings["y"] == Symbol("a")

    def test_getitem_missing_raises(self):
        """Accessing an unbound variable raises KeyError."""
        with pytest.raises(KeyError):
            _ = self.bindings["z"]
        with pytest.raises(KeyError):
            _ = self.bindings[PatternVar("x")]

    def test_get_with_default(self):
        assert self.bindings.get("x") == Const(1)
        assert self.bindings.get("z") is None
        assert self.bindings.get("z", default=42) == 42

    def test_contains(self):
        assert self.x in self.bindings
        assert "y" in self.bindings
        assert "z" not in self.bindings
        assert PatternVar("x") not in self.bindings

    def test_len_and_iter(self):
        assert len(self.bindings) == 2
        assert list(self.bindings) == [self.x, self.y]

    def test_bool_always_true(self):
        """Bindings are always truthy (even if empty)."""
        assert bool(Bindings())
        assert bool(self.bindings)

    def test_by_name(self):
        assert self.bindings.by_name() == {"x": Const(1), "y": Symbol("a")}

    def test_equality(self):
        same = Bindings([(self.x, Const(1)), (self.y, Symbol("a"))])
        fewer = Bindings([(self.x, Const(1))])
        assert self.bindings == same
        assert self.bindings != fewer

    def test_repr(self):
        assert "Bindings" in repr(self.bindings)
        assert "x" in repr(self.bindings)


class TestNoMatch:
    """Tests for NoMatch singleton."""

    def test_singleton(self):
        from wheeler.bindings import _NoMatch
        assert _NoMatch() is NoMatch

    def test_bool_false(self):
        assert not NoMatch
        assert bool(NoMatch) is False

    def test_empty_interface(self):
        """NoMatch behaves like an empty mapping."""
        assert len(NoMatch) == 0
        assert list(NoMatch) == []
        assert "x" not in NoMatch
        assert NoMatch.get("x", 5) == 5
        with pytest.raises(KeyError):
            _ = NoMatch["x"]

    def test_repr(self):
        assert repr(NoMatch) == "NoMatch"


class TestMatchContext:
    """Tests for snapshot/restore and binding rules."""

    def test_starts_empty(self):
        ctx = MatchContext()
        assert ctx.bindings == ()
        assert ctx.paths == ()

    def test_bind_and_lookup(self):
        x = PatternVar("x")
        ctx = MatchContext()
        assert ctx.lookup(x) is None
        assert ctx.bind(x, Symbol("a"))
        assert ctx.lookup(x) == Symbol("a")

    def test_rebind_equivalent_value(self):
        """A repeated variable accepts an equivalent value."""
        x = PatternVar("x")
        ctx = MatchContext()
        ctx.bind(x, E("(+ a b)"))
        assert ctx.bind(x, E("(+ a b)"))
        assert len(ctx.bindings) == 1

    def test_rebind_conflict(self):
        """A repeated variable rejects a different value and keeps the first."""
        x = PatternVar("x")
        ctx = MatchContext()
        ctx.bind(x, Symbol("a"))
        assert not ctx.bind(x, Symbol("b"))
        assert ctx.lookup(x) == Symbol("a")

    def test_same_name_different_variables(self):
        """Distinct variables with one name are bound independently."""
        x1, x2 = PatternVar("x"), PatternVar("x")
        ctx = MatchContext()
        assert ctx.bind(x1, Symbol("a"))
        assert ctx.bind(x2, Symbol("b"))
        assert ctx.lookup(x1) == Symbol("a")
        assert ctx.lookup(x2) == Symbol("b")

    def test_snapshot_restore(self):
        """Restoring a snapshot discards later bindings and paths."""
        x, y = PatternVar("x"), PatternVar("y")
        ctx = MatchContext()
        ctx.bind(x, Const(1))
        ctx.visit(ROOT)
        saved = ctx.snapshot()

        ctx.bind(y, Const(2))
        ctx.visit(ROOT.sum_term(0))
        assert len(ctx.bindings) == 2

        ctx.restore(saved)
        assert ctx.lookup(y) is None
        assert ctx.lookup(x) == Const(1)
        assert ctx.paths == (ROOT,)

    def test_snapshot_unaffected_by_later_updates(self):
        """A snapshot taken earlier never sees later changes."""
        ctx = MatchContext()
        saved = ctx.snapshot()
        ctx.visit(ROOT)
        assert saved == ((), ())

    def test_to_bindings(self):
        x = PatternVar("x")
        ctx = MatchContext()
        ctx.bind(x, Const(3))
        assert ctx.to_bindings() == Bindings([(x, Const(3))])
