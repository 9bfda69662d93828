import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TextIO

from ambiguity_pass.errors import InputError

NO_INPUT = "No input provided. Pass text as an argument, use --file <path>, or pipe via stdin."


def normalize_text(s: str) -> str:
    """Normalize Windows line endings; content otherwise unchanged."""
    return s.replace("\r\n", "\n")


def read_text_file(path: str) -> str:
    """Read a UTF-8 text file. Undecodable content is an InputError; OS errors propagate."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise InputError(f"{path} is not valid UTF-8 text: {e}") from e


def read_representation(arg_text: str = "", file: Optional[str] = None, stdin: Optional[TextIO] = None) -> str:
    """
    Resolve the representation text: --file wins, then positional text, then stdin.
    "--file -" reads stdin explicitly.
    """
    stdin = stdin or sys.stdin
    if file and file != "-":
        return normalize_text(read_text_file(file))

    if arg_text and arg_text.strip():
        return normalize_text(arg_text)

    if file != "-" and stdin.isatty():
        raise InputError(NO_INPUT)

    try:
        data = stdin.read()
    except UnicodeDecodeError as e:
        raise InputError(f"stdin is not valid text: {e}") from e
    if not data.strip():
        raise InputError("No input provided on stdin. Pass text as an argument, use --file <path>, or pipe via stdin.")
    return normalize_text(data)


def write_output(path: str, content: str, append: bool = False) -> None:
    """Write (or append, with a timestamped separator) rendered output to a file."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    if append:
        stamp = datetime.now(timezone.utc).isoformat()
        with target.open("a", encoding="utf-8") as f:
            f.write(f"\n\n===== ambiguity-pass @ {stamp} =====\n{content}\n")
    else:
        target.write_text(content if content.endswith("\n") else content + "\n", encoding="utf-8")
