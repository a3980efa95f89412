"""Console narration for an inventory run.

Progress goes to stdout as ANSI-colored lines that degrade to plain text when
stdout is not a TTY (CI logs, redirects).  Errors go to stderr.
"""

import sys

_verbose = False


def set_verbose(enabled: bool):
    """Turn ``debug()`` output on or off for the rest of the process."""
    global _verbose
    _verbose = enabled


def _colorize(text: str, color: str, stream=None) -> str:
    """Apply ANSI color codes.  Returns plain text when the stream is not a TTY."""
    colors = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "cyan": "\033[96m",
        "bold": "\033[1m",
        "dim": "\033[2m",
        "reset": "\033[0m",
    }
    stream = stream or sys.stdout
    if not stream.isatty():
        return text
    return f"{colors.get(color, '')}{text}{colors['reset']}"


def info(message: str):
    print(message)


def heading(message: str):
    print(_colorize(message, "bold"))


def success(message: str):
    print(_colorize(message, "green"))


def warn(message: str):
    print(_colorize(f"  ! {message}", "yellow"))


def error(message: str):
    print(_colorize(f"Error: {message}", "red", sys.stderr), file=sys.stderr)


def debug(message: str):
    if _verbose:
        print(_colorize(f"    {message}", "dim"))
