#!/usr/bin/env python3
"""
WHEELER Feature Demonstration

This script walks through the main features of the WHEELER matcher.
"""

from wheeler import (
    E, Matcher, Symbol,
    compile_pattern, find_all_matches, first_match, format_sexpr, match_paths,
    replace_at,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def show(pattern, subject, matcher=None):
    matcher = matcher or Matcher()
    reports = matcher.find_all(pattern, subject)
    print(f"  {format_sexpr(pattern)}  in  {format_sexpr(subject)}")
    if not reports:
        print("    no match")
    for report in reports:
        print(f"    {report.format()}")


def demo_sums():
    """Sum terms match in any order."""
    section("Sums")

    show(E("(+ b a)"), E("(+ a b c)"))
    show(E("(+ ?x 2)"), E("(* y (+ 2 3))"))
    show(E("(+ a a)"), E("(+ a b)"))


def demo_products():
    """Products respect representation spaces."""
    section("Products and Representation Spaces")

    A = E.tensor("A", "lorentz")
    B = E.tensor("B", "lorentz")
    print("  A and B live in the lorentz space; 2 and x commute with both.")
    show(A * B, E.product(2, A, "x", B))
    show(A * B, E.product(2, B, A))

    print("\n  A spinor sandwich keeps its order in the dirac space:")
    show(E("(* (spinor pb dirac) (? g dirac) (spinor p dirac))"),
         E("(* 4 (spinor pb dirac) (tensor gamma dirac mu) (spinor p dirac) m)"))


def demo_variables():
    """Pattern variables and repeated variables."""
    section("Pattern Variables")

    show(E("(^ ?x 2)"), E("(+ (^ a 2) (^ b 3) (^ (+ a b) 2))"))
    show(E("(+ ?x ?x)"), E("(+ a b a)"))
    show(E("(+ ?x ?x)"), E("(+ a b)"))


def demo_custom_spaces():
    """A custom representation-space function."""
    section("Custom Representation Spaces")

    def matrices(e):
        if isinstance(e, Symbol) and e.name.isupper():
            return ("matrix",)
        return ()

    pattern, subject = E("(* M N)"), E("(* 3 N M)")
    print("  Default: upper-case symbols commute")
    show(pattern, subject)
    print("  With matrices(): upper-case symbols keep their order")
    show(pattern, subject, Matcher(rep_space=matrices))


def demo_paths():
    """Using match paths to edit the subject."""
    section("Paths")

    subject = E("(+ (* 2 a) (* 3 b) c)")
    report = first_match(E("(* 3 ?y)"), subject)
    print(f"  subject: {format_sexpr(subject)}")
    print(f"  anchor:  {report.anchor}")
    print(f"  paths:   {', '.join(str(p) for p in report.sorted_paths())}")
    edited = replace_at(subject, report.anchor, E("(* 3 z)"))
    print(f"  edited:  {format_sexpr(edited)}")


def demo_rose():
    """The predicate-tree matcher."""
    section("Predicate Trees")

    pattern = compile_pattern(E("(* a c)"))
    subject = E("(+ (* a b c) (* c a))")
    found = match_paths(pattern, subject)
    print(f"  (* a c) as an ordered subsequence in {format_sexpr(subject)}:")
    print(f"    {', '.join(str(p) for p in found)}")


def main():
    """Run all demonstrations."""
    print("WHEELER - pattern matching over commuting and non-commuting algebra")
    print("Feature Demonstration")

    demo_sums()
    demo_products()
    demo_variables()
    demo_custom_spaces()
    demo_paths()
    demo_rose()

    print(f"\n  {len(find_all_matches(E('?x'), E('(+ a (* b c))')))} nodes in (+ a (* b c))")

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
