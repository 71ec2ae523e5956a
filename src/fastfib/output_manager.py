# output_manager.py

import os
from pathlib import Path

from fastfib.fmt import strip_ansi
from fastfib.workspace import workspace_dir


def resolve_output_path(path: str, base: str | Path) -> str:
    """
    Resolve user-provided output path.

    Rules:
    - '~' expanded to user home
    - Absolute paths unchanged
    - Relative paths are relative to base
    """
    if not path:
        raise ValueError("Output path is empty")

    path = os.path.expanduser(path)

    if os.path.isabs(path):
        return os.path.normpath(path)

    return os.path.normpath(os.path.join(str(base), path))


def result_filename(n: int) -> str:
    return f"Fibonacci_{n}.txt"


def save_result(n: int, digits: str, directory: str | Path | None = None) -> Path:
    """
    Write 'F(n) = <digits>' to Fibonacci_<n>.txt in `directory`
    (current directory when empty). OSError propagates to the caller.
    """
    target_dir = resolve_output_path(str(directory), os.getcwd()) if directory else os.getcwd()
    os.makedirs(target_dir, exist_ok=True)
    path = Path(target_dir) / result_filename(n)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(f"F({n}) = {digits}\n")
    return path


class OutputManager:
    """
    Handles all report printing, to screen and/or an appended log file.

    Usage:
        om = OutputManager(output_file="runs.txt")
        om.write("Hello")   # prints and appends (ANSI stripped)
        om.close()
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False):
        """
        Parameters:
            output_file:
                None or ""       => screen only
                path/to/file.txt => append every run to this file
                                    (relative paths live in the workspace)
            quiet: if True, no output to screen (only to file)
        """
        self.quiet = quiet
        self.output_file = output_file or ""
        self._buffer: list[str] = []
        self._path: str | None = None

        if self.output_file:
            path = resolve_output_path(self.output_file, workspace_dir())
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._path = path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        """Write to screen and file (if configured)."""
        text = sep.join(str(a) for a in args) + end
        self._buffer.append(text)

        if not self.quiet:
            print(text, end="", flush=True)

        if self._path:
            with open(self._path, "a", encoding="utf-8") as fh:
                fh.write(strip_ansi(text))

    def close(self) -> None:
        """Separate runs in the log file with one empty line."""
        if self._path and self._buffer:
            with open(self._path, "a", encoding="utf-8") as fh:
                fh.write("\n")
            self._buffer.clear()

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()
