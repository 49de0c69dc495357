"""Tests for the command-line interface."""

import io
import json

import pytest
from wheeler.cli import EXIT_ERROR, EXIT_MATCH, EXIT_NO_MATCH, MatchRunner, main
from wheeler.sexpr import parse_sexpr


class TestMain:
    """Tests for main() with a subject argument."""

    def test_match(self, capsys):
        code = main(["(+ ?x 2)", "(* a (+ 2 3))"])
        assert code == EXIT_MATCH
        assert capsys.readouterr().out == "/*1  ?x = 3\n"

    def test_no_match(self, capsys):
        code = main(["(+ ?x 7)", "(* a (+ 2 3))"])
        assert code == EXIT_NO_MATCH
        assert capsys.readouterr().out == ""

    def test_bad_subject(self, capsys):
        code = main(["a", "(+ a b"])
        assert code == EXIT_ERROR
        assert "Error" in capsys.readouterr().err

    def test_bad_pattern(self, capsys):
        code = main(["(^ a)", "a"])
        assert code == EXIT_ERROR
        assert "Error in pattern" in capsys.readouterr().err

    def test_json(self, capsys):
        code = main(["--json", "?x", "(+ a b)"])
        assert code == EXIT_MATCH
        lines = capsys.readouterr().out.splitlines()
        records = [json.loads(line) for line in lines]
        assert [r["anchor"] for r in records] == ["/", "/+0", "/+1"]
        assert records[0] == {
            "subject": "(+ a b)",
            "anchor": "/",
            "matched_paths": ["/"],
            "bindings": {"x": "(+ a b)"},
        }

    def test_count(self, capsys):
        main(["--count", "a", "(+ a (* a b))"])
        assert capsys.readouterr().out == "2\n"

    def test_first(self, capsys):
        main(["--first", "?x", "(+ a b)"])
        assert capsys.readouterr().out == "/  ?x = (+ a b)\n"

    def test_quiet(self, capsys):
        code = main(["-q", "a", "(+ a b)"])
        assert code == EXIT_MATCH
        assert capsys.readouterr().out == ""

    def test_json_and_count_exclusive(self):
        with pytest.raises(SystemExit) as exc:
            main(["--json", "--count", "a", "a"])
        assert exc.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "wheeler" in capsys.readouterr().out


class TestStdin:
    """Tests for filter mode."""

    def test_lines(self, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(
            "(+ 2 3)\n"
            "\n"
            "# a comment\n"
            "(* a b)\n"
            "(+ 4 2)\n"
        ))
        code = main(["(+ ?x 2)"])
        assert code == EXIT_MATCH
        assert capsys.readouterr().out == "1: /  ?x = 3\n5: /  ?x = 4\n"

    def test_nothing_matches(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("a\nb\n"))
        assert main(["c"]) == EXIT_NO_MATCH

    def test_error_stops(self, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("a\n(+ a\na\n"))
        code = main(["a"])
        assert code == EXIT_ERROR
        captured = capsys.readouterr()
        assert captured.out == "1: /\n"
        assert captured.err.startswith("2: Error")


class TestMatchRunner:
    """Tests for MatchRunner used directly."""

    def test_custom_stream(self):
        out = io.StringIO()
        runner = MatchRunner(parse_sexpr("(* ?x b)"), out=out)
        assert runner.run_subject("(+ (* a b) (* c b))") == EXIT_MATCH
        assert out.getvalue() == "/+0  ?x = a\n/+1  ?x = c\n"
        assert runner.total == 2

    def test_stdin_counts(self):
        out = io.StringIO()
        runner = MatchRunner(parse_sexpr("a"), count=True, out=out)
        assert runner.run_stdin(io.StringIO("(+ a a)\nb\n")) == EXIT_MATCH
        assert out.getvalue() == "1: 2\n2: 0\n"
