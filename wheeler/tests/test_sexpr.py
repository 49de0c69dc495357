"""Tests for the s-expression reader, writer and the E builder."""

from fractions import Fraction

import pytest
from wheeler import E
from wheeler.expr import Const, PatternVar, Power, Product, Spinor, Sum, Symbol, Tensor
from wheeler.sexpr import format_sexpr, parse_sexpr


class TestParse:
    """Tests for parse_sexpr."""

    def test_atoms(self):
        assert parse_sexpr("x") == Symbol("x")
        assert parse_sexpr("42") == Const(42)
        assert parse_sexpr("-3") == Const(-3)
        assert parse_sexpr("3/4") == Const(Fraction(3, 4))
        assert parse_sexpr("2.5") == Const(2.5)

    def test_float_names_stay_symbols(self):
        """Words that float() would accept are still symbols."""
        assert parse_sexpr("nan") == Symbol("nan")
        assert parse_sexpr("inf") == Symbol("inf")

    def test_compound(self):
        expr = parse_sexpr("(+ x (* 2 y) (^ z 3))")
        assert expr == Sum([
            Symbol("x"),
            Product([Const(2), Symbol("y")]),
            Power(Symbol("z"), Const(3)),
        ])

    def test_flattens_while_reading(self):
        assert parse_sexpr("(+ a (+ b c))") == parse_sexpr("(+ a b c)")
        assert parse_sexpr("(* (* a b) c)") == parse_sexpr("(* a b c)")

    def test_tensor(self):
        assert parse_sexpr("(tensor G lorentz mu nu)") == Tensor("G", ("lorentz",), ("mu", "nu"))
        assert parse_sexpr("(tensor G lorentz,spin)").spaces == ("lorentz", "spin")

    def test_spinor(self):
        assert parse_sexpr("(spinor psi dirac)") == Spinor("psi", ("dirac",))

    def test_pattern_variables_shared(self):
        """Every ?x in one parse is the same variable."""
        expr = parse_sexpr("(+ ?x (* 2 ?x))")
        x = expr.terms[0]
        assert isinstance(x, PatternVar)
        assert expr.terms[1].factors[1] is x

    def test_variable_table_across_calls(self):
        table = {}
        first = parse_sexpr("?x", table)
        second = parse_sexpr("(+ ?x 1)", table)
        assert second.terms[0] is first
        assert set(table) == {"x"}

    def test_variable_with_space(self):
        var = parse_sexpr("(? s dirac)")
        assert var.spaces == ("dirac",)

    def test_conflicting_variable_spaces(self):
        with pytest.raises(ValueError):
            parse_sexpr("(* (? s dirac) (? s lorentz))")

    @pytest.mark.parametrize("bad", [
        "",
        "(+ a b",
        "(+ a b))",
        "(^ a)",
        "(foo a b)",
        "()",
        "?",
        "(tensor G)",
        "(spinor psi)",
        "(? )",
    ])
    def test_errors(self, bad):
        with pytest.raises(ValueError):
            parse_sexpr(bad)


class TestFormat:
    """Tests for format_sexpr."""

    def test_basic(self):
        x = Symbol("x")
        assert format_sexpr(Sum([x, Const(1)])) == "(+ x 1)"
        assert format_sexpr(Product([Const(2), x])) == "(* 2 x)"
        assert format_sexpr(Power(x, Const(2))) == "(^ x 2)"

    def test_fraction(self):
        assert format_sexpr(Const(Fraction(3, 4))) == "3/4"
        assert format_sexpr(Const(Fraction(4, 2))) == "2"

    def test_leaves_with_spaces(self):
        assert format_sexpr(Tensor("G", ("lorentz",), ("mu",))) == "(tensor G lorentz mu)"
        assert format_sexpr(Spinor("psi", ("dirac",))) == "(spinor psi dirac)"
        assert format_sexpr(PatternVar("x")) == "?x"
        assert format_sexpr(PatternVar("s", ("dirac",))) == "(? s dirac)"

    @pytest.mark.parametrize("text", [
        "(+ a (* 2 (^ b 3/4)) -1)",
        "(* (spinor pb D) (tensor g D,L mu) (spinor p D))",
        "(+ ?x (* (? y L) (tensor A L)))",
    ])
    def test_reads_back(self, text):
        """Formatted text parses to the same text again."""
        assert format_sexpr(parse_sexpr(text)) == text


class TestBuilder:
    """Tests for the E builder."""

    def test_call_parses(self):
        assert E("(+ x 1)") == Sum([Symbol("x"), Const(1)])

    def test_sum_and_product_coerce(self):
        assert E.sum("x", 2) == Sum([Symbol("x"), Const(2)])
        assert E.product(2, "y") == Product([Const(2), Symbol("y")])

    def test_power(self):
        assert E.power("x", 2) == Power(Symbol("x"), Const(2))

    def test_syms_and_vars(self):
        a, b = E.syms("a", "b")
        assert (a, b) == (Symbol("a"), Symbol("b"))
        x, y = E.vars("x", "y")
        assert x.name == "x" and y.name == "y"
        assert x is not E.var("x")

    def test_tensor_and_spinor(self):
        assert E.tensor("G", "lorentz", indices=("mu",)) == Tensor("G", ("lorentz",), ("mu",))
        assert E.spinor("psi", "dirac") == Spinor("psi", ("dirac",))
        assert E.var("s", "dirac").spaces == ("dirac",)

    def test_const(self):
        assert E.const(Fraction(1, 3)) == Const(Fraction(1, 3))
