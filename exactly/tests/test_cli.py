"""Tests for CLI module."""

import subprocess
import sys
from pathlib import Path
import pytest

from exactly import parse
from exactly.cli import (
    ExactlyREPL, ExactlyCompleter, ScriptRunner, MODES, DEFAULT_MODE,
    count_parens, format_result,
)

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestFormatResult:
    """Tests for output modes."""

    def test_modes(self):
        """All expected modes exist."""
        assert MODES == ["exact", "float", "both"]
        assert DEFAULT_MODE == "both"

    def test_exact(self):
        """Exact mode prints the canonical form."""
        assert format_result(parse("0.1 + 0.2"), "exact") == "3 / 10"

    def test_float(self):
        """Float mode prints the evaluated value."""
        assert format_result(parse("0.1 + 0.2"), "float") == "0.3"

    def test_both(self):
        """Both mode prints form and value."""
        assert format_result(parse("3(8-8/2)"), "both") == "12 = 12.0"


class TestREPLCommands:
    """Tests for REPL command handling."""

    def test_help_command(self):
        """Help command returns help text."""
        repl = ExactlyREPL()
        result = repl.handle_command(":help")
        assert "help" in result.lower()
        assert "mode" in result.lower()

    def test_mode_command(self):
        """Mode command sets the output mode."""
        repl = ExactlyREPL()
        result = repl.handle_command(":mode exact")
        assert repl.mode == "exact"
        assert "exact" in result

    def test_mode_show(self):
        """Mode command without arg shows the current mode."""
        repl = ExactlyREPL()
        result = repl.handle_command(":mode")
        assert "both" in result
        assert "float" in result

    def test_unknown_mode(self):
        """Unknown mode returns error."""
        repl = ExactlyREPL()
        result = repl.handle_command(":mode fancy")
        assert result.startswith("Error")
        assert "unknown mode" in result
        assert repl.mode == DEFAULT_MODE

    def test_depth_command(self):
        """Depth command sets the nesting limit."""
        repl = ExactlyREPL()
        result = repl.handle_command(":depth 3")
        assert repl.max_depth == 3
        assert "3" in result

    def test_depth_show(self):
        """Depth command without arg shows the limit."""
        repl = ExactlyREPL()
        assert str(repl.max_depth) in repl.handle_command(":depth")

    def test_invalid_depth(self):
        """Depth must be a non-negative integer."""
        repl = ExactlyREPL()
        before = repl.max_depth
        assert repl.handle_command(":depth deep").startswith("Error")
        assert repl.handle_command(":depth -1").startswith("Error")
        assert repl.max_depth == before

    def test_quit_command(self):
        """Quit command stops the REPL."""
        repl = ExactlyREPL()
        assert repl.running == True
        result = repl.handle_command(":quit")
        assert result is None
        assert repl.running == False

    def test_unknown_command(self):
        """Unknown command returns error."""
        repl = ExactlyREPL()
        assert "unknown command" in repl.handle_command(":frobnicate")
        assert repl.handle_command(":").startswith("Error")

    def test_tree_command(self):
        """Tree command shows the structure of the last result."""
        repl = ExactlyREPL()
        assert repl.handle_command(":tree") == "No result yet"
        repl.process_line("0.1 + 0.2")
        assert repl.handle_command(":tree") == "Division(Number(3), Number(10))"

    def test_constructor_settings(self):
        """Mode and depth can be given up front."""
        repl = ExactlyREPL(mode="float", max_depth=2)
        assert repl.process_line("1 / 4") == "0.25"
        assert repl.process_line("(((1)))").startswith("Error")


class TestProcessLine:
    """Tests for line processing."""

    def test_empty_line(self):
        """Empty line returns None."""
        repl = ExactlyREPL()
        assert repl.process_line("") is None
        assert repl.process_line("   ") is None

    def test_comment_line(self):
        """Comment line returns None."""
        repl = ExactlyREPL()
        assert repl.process_line("# 1 + 1") is None

    def test_expression_evaluation(self):
        """Expressions are evaluated in the current mode."""
        repl = ExactlyREPL()
        assert repl.process_line("0.1 + 0.2") == "3 / 10 = 0.3"
        repl.process_line(":mode exact")
        assert repl.process_line("0.1 + 0.2") == "3 / 10"

    def test_parse_error(self):
        """Parse errors are reported, not raised."""
        repl = ExactlyREPL()
        result = repl.process_line("1 +")
        assert result.startswith("Error")
        assert "end of input" in result

    def test_division_by_zero(self):
        """Arithmetic errors are reported, not raised."""
        repl = ExactlyREPL()
        assert repl.process_line("1 / 0") == "Error: Cannot divide by zero"

    def test_depth_limit_applies(self):
        """The REPL's nesting limit is passed to the parser."""
        repl = ExactlyREPL()
        repl.process_line(":depth 1")
        assert repl.process_line("(1)") == "1 = 1.0"
        assert repl.process_line("((1))").startswith("Error")

    def test_long_decimal(self):
        """Decimals with hundreds of digits still evaluate."""
        repl = ExactlyREPL()
        result = repl.process_line("0." + "1" * 400)
        assert result.endswith(" = " + str(1 / 9))

    def test_value_too_large_for_float(self):
        """Values beyond float range are reported, not raised."""
        repl = ExactlyREPL()
        result = repl.process_line("1" * 400)
        assert result == "Error: Value too large to convert to float"
        repl.process_line(":mode exact")
        assert repl.process_line("1" * 400) == "1" * 400


class TestScriptRunner:
    """Tests for script, expression and stdin modes."""

    def test_run_script(self, tmp_path, capsys):
        """Scripts print one result per expression line."""
        script = tmp_path / "sums.calc"
        script.write_text("#!/usr/bin/env exactly\n:mode exact\n\n0.1 + 0.2\n# twelve\n3(8 - 8/2)\n")
        assert ScriptRunner().run_script(script) == 0
        assert capsys.readouterr().out == "3 / 10\n12\n"

    def test_run_script_error(self, tmp_path, capsys):
        """A failing line stops the script with its location."""
        script = tmp_path / "bad.calc"
        script.write_text("1 + 1\n1 / 0\n2 + 2\n")
        assert ScriptRunner().run_script(script) == 1
        captured = capsys.readouterr()
        assert captured.out == "2 = 2.0\n"
        assert "bad.calc:2:" in captured.err

    def test_run_script_bad_command(self, tmp_path, capsys):
        """An invalid command stops the script."""
        script = tmp_path / "mode.calc"
        script.write_text(":mode loud\n1\n")
        assert ScriptRunner().run_script(script) == 1
        assert "mode.calc:1:" in capsys.readouterr().err

    def test_run_missing_script(self, tmp_path, capsys):
        """A missing script is an error."""
        assert ScriptRunner().run_script(tmp_path / "missing.calc") == 1
        assert "Error reading" in capsys.readouterr().err

    def test_run_lines(self, capsys):
        """Commands apply silently and results print in order."""
        runner = ScriptRunner()
        assert runner.run_lines([":mode float", "1/4", "  ", "# note", "3 * 0.5"], "<test>") == 0
        assert capsys.readouterr().out == "0.25\n1.5\n"

    def test_run_lines_reports_source(self, capsys):
        """Errors name the source and line number."""
        assert ScriptRunner().run_lines(["1", "", "x"], "<test>") == 1
        assert "<test>:3: Error: Unexpected character: 'x'" in capsys.readouterr().err

    def test_runner_settings(self, capsys):
        """Mode and depth are passed to the REPL."""
        runner = ScriptRunner(mode="exact", max_depth=0)
        assert runner.run_expression("1/3") == 0
        assert runner.run_expression("(1)") == 1
        assert capsys.readouterr().out == "1 / 3\n"

    def test_run_expression(self, capsys):
        """Run expression prints the result."""
        runner = ScriptRunner()
        assert runner.run_expression("2.5 * 4") == 0
        assert capsys.readouterr().out == "10 = 10.0\n"

    def test_run_expression_error(self, capsys):
        """Run expression reports errors on stderr."""
        assert ScriptRunner().run_expression("2 +") == 1
        assert "Error" in capsys.readouterr().err


class TestCLIIntegration:
    """Integration tests using subprocess."""

    def run_cli(self, *args, input=None):
        return subprocess.run(
            [sys.executable, "-m", "exactly.cli", *args],
            input=input, capture_output=True, text=True, cwd=REPO_ROOT
        )

    def test_help_flag(self):
        """--help flag works."""
        result = self.run_cli("--help")
        assert result.returncode == 0
        assert "exactly" in result.stdout

    def test_version_flag(self):
        """--version flag works."""
        result = self.run_cli("--version")
        assert result.returncode == 0
        assert "0.1.0" in result.stdout

    def test_expression_mode(self):
        """Expression mode evaluates expression."""
        result = self.run_cli("-e", "0.1 + 0.2")
        assert result.returncode == 0
        assert result.stdout == "3 / 10 = 0.3\n"

    def test_expression_with_mode(self):
        """The mode flag selects the output."""
        result = self.run_cli("-m", "exact", "-e", "1/3 - 1/2")
        assert result.returncode == 0
        assert result.stdout == "-(1 / 6)\n"

    def test_expression_error(self):
        """Errors exit non-zero."""
        result = self.run_cli("-e", "3 4")
        assert result.returncode == 1
        assert "Unexpected character" in result.stderr

    def test_pipe_mode(self):
        """Pipe mode processes stdin."""
        result = self.run_cli(input="3 + 4\n1/2\n")
        assert result.returncode == 0
        assert result.stdout == "7 = 7.0\n1 / 2 = 0.5\n"

    def test_pipe_mode_error(self):
        """Pipe mode stops at the first error."""
        result = self.run_cli(input="1\n(\n2\n")
        assert result.returncode == 1
        assert result.stdout == "1 = 1.0\n"
        assert "<stdin>:2: Error" in result.stderr

    def test_negative_max_depth(self):
        """A negative nesting limit is rejected."""
        result = self.run_cli("-d", "-1", "-e", "1")
        assert result.returncode == 2


class TestREPLHelpers:
    """Tests for paren counting and completion."""

    def test_count_parens_balanced(self):
        """Balanced parens return 0."""
        assert count_parens("3(8 - 8/2)") == 0

    def test_count_parens_unbalanced_open(self):
        """More open parens return positive."""
        assert count_parens("((1 + 2") == 2

    def test_count_parens_unbalanced_close(self):
        """More close parens return negative."""
        assert count_parens("1)") == -1

    def test_completer_commands(self):
        """Completer suggests commands."""
        completer = ExactlyCompleter(ExactlyREPL())
        assert completer._get_matches(":mo", ":mo") == [":mode"]
        assert ":quit" in completer._get_matches(":", ":")

    def test_completer_mode_names(self):
        """Completer suggests mode names after :mode."""
        completer = ExactlyCompleter(ExactlyREPL())
        assert completer._get_matches("fl", ":mode fl") == ["float"]
        assert completer._get_matches("", ":mode ") == MODES

    def test_completer_expressions(self):
        """Completer offers nothing inside expressions."""
        completer = ExactlyCompleter(ExactlyREPL())
        assert completer._get_matches("3", "1 + 3") == []


class TestInteractive:
    """Tests for the read loop, driven through a fake input()."""

    @staticmethod
    def feed(monkeypatch, lines):
        pending = iter(lines)
        prompts = []

        def fake_input(prompt=""):
            prompts.append(prompt)
            try:
                return next(pending)
            except StopIteration:
                raise EOFError

        monkeypatch.setattr("builtins.input", fake_input)
        monkeypatch.setattr("exactly.cli.HAS_READLINE", False)
        return prompts

    def test_read_statement_joins_open_brackets(self, monkeypatch):
        """Lines are joined until brackets close."""
        prompts = self.feed(monkeypatch, ["3(8 -", "8/2)"])
        assert ExactlyREPL().read_statement() == "3(8 - 8/2)"
        assert prompts == ["exactly> ", "...... "]

    def test_read_statement_end_of_input(self, monkeypatch):
        """End of input returns None."""
        self.feed(monkeypatch, [])
        assert ExactlyREPL().read_statement() is None

    def test_run(self, monkeypatch, capsys):
        """The loop prints results until :quit."""
        self.feed(monkeypatch, ["0.1 + 0.2", "(1", "+ 2))", ":tree", ":quit", "9"])
        repl = ExactlyREPL()
        repl.run()
        out = capsys.readouterr().out
        assert "3 / 10 = 0.3" in out
        assert "Error: Unexpected character: ')'" in out
        assert "Division(Number(3), Number(10))" in out
        assert "9 = 9.0" not in out
        assert repl.running == False
