#!/usr/bin/env python3
"""
exactly Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    exactly                         # Start REPL
    exactly script.calc             # Run script
    exactly -e "0.1 + 0.2"          # Evaluate expression
    exactly -m float -e "1/3"       # Only print the float value
    echo "3(8-8/2)" | exactly       # Filter mode

Script Format:
    #!/usr/bin/env exactly
    :mode exact

    0.1 + 0.2
    3(8 - 8/2)

REPL Commands:
    :help              Show help
    :mode NAME         Output mode (exact, float, both)
    :depth N           Maximum bracket nesting
    :tree              Show the structure of the last result
    :quit              Exit
"""

import argparse
import sys
from pathlib import Path
from typing import Iterable, Optional

from . import __version__
from .errors import ExactlyError
from .expression import Expression
from .parser import DEFAULT_MAX_DEPTH, parse

try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False

# Output modes
MODES = ["exact", "float", "both"]
DEFAULT_MODE = "both"

PROMPT = "exactly> "
CONTINUATION_PROMPT = "...... "
HISTORY_FILE = Path.home() / ".exactly_history"


def format_result(expr: Expression, mode: str) -> str:
    """Render an expression according to the output mode."""
    if mode == "exact":
        return str(expr)
    value = expr.calc()
    if mode == "float":
        return str(value)
    return f"{expr} = {value}"


def count_parens(text: str) -> int:
    """Count unbalanced parentheses. Returns >0 if more open than close."""
    return text.count("(") - text.count(")")


class ExactlyCompleter:
    """Tab completer for the exactly REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":mode", ":depth", ":tree",
    ]

    def __init__(self, repl: 'ExactlyREPL'):
        self.repl = repl
        self.matches: list = []

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)
        if state < len(self.matches):
            return self.matches[state]
        return None

    def _get_matches(self, text: str, line: str) -> list:
        """Get list of matches for the current input."""
        line = line.lstrip()
        if line.startswith(":mode "):
            return [m for m in MODES if m.startswith(text)]
        if line.startswith(":") and " " not in line:
            return [c for c in self.COMMANDS if c.startswith(text)]
        return []


def enable_readline(repl: 'ExactlyREPL') -> bool:
    """Load REPL history and install tab completion. False without readline."""
    if not HAS_READLINE:
        return False
    if HISTORY_FILE.exists():
        try:
            readline.read_history_file(HISTORY_FILE)
        except OSError as e:
            print(f"Warning: could not read {HISTORY_FILE}: {e}", file=sys.stderr)
    readline.set_history_length(1000)
    readline.set_completer(ExactlyCompleter(repl).complete)
    readline.set_completer_delims(" \t\n")
    readline.parse_and_bind("tab: complete")
    return True


class ExactlyREPL:
    """Interactive REPL for exactly."""

    def __init__(self, mode: str = DEFAULT_MODE, max_depth: int = DEFAULT_MAX_DEPTH):
        self.mode = mode
        self.max_depth = max_depth
        self.last: Optional[Expression] = None
        self.running = True

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None. Failures start with "Error:".
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Error: empty command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "mode":
            if not arg:
                return f"Mode: {self.mode}\nAvailable: {', '.join(MODES)}"
            if arg.lower() not in MODES:
                return f"Error: unknown mode {arg!r}. Options: {', '.join(MODES)}"
            self.mode = arg.lower()
            return f"Mode set to: {self.mode}"

        elif cmd == "depth":
            if not arg:
                return f"Maximum nesting depth: {self.max_depth}"
            if not arg.isdigit():
                return f"Error: depth must be a non-negative integer, got {arg!r}"
            self.max_depth = int(arg)
            return f"Maximum nesting depth set to: {self.max_depth}"

        elif cmd == "tree":
            if self.last is None:
                return "No result yet"
            return repr(self.last)

        else:
            return f"Error: unknown command {cmd!r}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """exactly REPL Commands:
  :help              Show this help
  :mode NAME         Output mode (exact, float, both)
  :depth N           Maximum bracket nesting
  :tree              Show the structure of the last result
  :quit              Exit

Syntax:
  3 + 4              Integers and + - * /
  0.1 + 0.2          Decimals are exact: prints 3 / 10
  3(8 - 8/2)         Brackets; a bracket after a term multiplies
  8 * ---2           Runs of '-' negate by parity

Input with unclosed brackets continues on the next line.
"""

    def evaluate(self, text: str) -> str:
        """Parse and render one expression. Raises ExactlyError."""
        expr = parse(text, max_depth=self.max_depth)
        self.last = expr
        return format_result(expr, self.mode)

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        if line.startswith(":"):
            return self.handle_command(line)
        try:
            return self.evaluate(line)
        except ExactlyError as e:
            return f"Error: {e}"

    def read_statement(self) -> Optional[str]:
        """
        Read one statement from the terminal.

        Lines are joined while brackets stay open. Returns None at end of
        input.
        """
        lines = []
        while True:
            try:
                lines.append(input(CONTINUATION_PROMPT if lines else PROMPT))
            except EOFError:
                return None
            text = " ".join(lines)
            if count_parens(text) <= 0:
                return text

    def run(self):
        """Run the REPL loop."""
        print("exactly - exact arithmetic without floating point drift")
        print("Type :help for help, :quit to exit")
        print()

        history = enable_readline(self)
        try:
            while self.running:
                try:
                    text = self.read_statement()
                except KeyboardInterrupt:
                    print("\nInput cancelled")
                    continue
                if text is None:
                    print()
                    break
                result = self.process_line(text)
                if result:
                    print(result)
        finally:
            if history:
                try:
                    readline.write_history_file(HISTORY_FILE)
                except OSError as e:
                    print(f"Warning: could not write {HISTORY_FILE}: {e}", file=sys.stderr)


class ScriptRunner:
    """Runs exactly scripts, single expressions and stdin."""

    def __init__(self, mode: str = DEFAULT_MODE, max_depth: int = DEFAULT_MAX_DEPTH):
        self.repl = ExactlyREPL(mode, max_depth)

    def run_lines(self, lines: Iterable[str], source: str) -> int:
        """
        Evaluate statements one per line, printing each result.

        Commands are applied silently. The first failing line is reported
        on stderr as source:lineno and stops the run.

        Returns:
            Exit code (0 for success)
        """
        for lineno, line in enumerate(lines, 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith(":"):
                result = self.repl.handle_command(line)
                if result and result.startswith("Error"):
                    print(f"{source}:{lineno}: {result}", file=sys.stderr)
                    return 1
                continue

            try:
                print(self.repl.evaluate(line))
            except ExactlyError as e:
                print(f"{source}:{lineno}: Error: {e}", file=sys.stderr)
                return 1

        return 0

    def run_script(self, path: Path) -> int:
        """
        Run a script file.

        Args:
            path: Path to the script

        Returns:
            Exit code (0 for success)
        """
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1
        return self.run_lines(lines, str(path))

    def run_expression(self, expr_str: str) -> int:
        """
        Evaluate a single expression.

        Returns:
            Exit code (0 for success)
        """
        try:
            print(self.repl.evaluate(expr_str))
        except ExactlyError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0

    def run_stdin(self) -> int:
        """Evaluate expressions read from stdin, one per line."""
        return self.run_lines(sys.stdin, "<stdin>")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="exactly",
        description="exactly - exact arithmetic without floating point drift",
        epilog="Examples:\n"
               "  exactly                        Start REPL\n"
               "  exactly script.calc            Run script\n"
               "  exactly -e '0.1 + 0.2'         Evaluate expression\n"
               "  echo '3(8-8/2)' | exactly      Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run (one expression per line)"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Evaluate a single expression"
    )

    parser.add_argument(
        "-m", "--mode",
        default=DEFAULT_MODE,
        choices=MODES,
        help="Output mode: exact form, float value, or both"
    )

    parser.add_argument(
        "-d", "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help="Maximum bracket nesting depth"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args()
    if args.max_depth < 0:
        parser.error("--max-depth must not be negative")

    runner = ScriptRunner(args.mode, args.max_depth)

    if args.script:
        sys.exit(runner.run_script(Path(args.script)))
    elif args.expr:
        sys.exit(runner.run_expression(args.expr))
    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())
    else:
        runner.repl.run()


if __name__ == "__main__":
    main()
