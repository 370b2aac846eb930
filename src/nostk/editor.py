"""Open store files in the user's $EDITOR."""

import os
import shlex
import subprocess
from pathlib import Path

from .errors import EditorError


def open_in_editor(path: Path, editor: str | None = None) -> None:
    """Run $EDITOR on path in the foreground, attached to the terminal.

    CONTRACT:
      Inputs:
        - path: existing file to edit
        - editor: editor command (defaults to $EDITOR; may include arguments)

      Invariants:
        - The editor inherits stdin, stdout and stderr
        - The file must exist before the editor is started

      Raises:
        - EditorError: $EDITOR unset, file missing, editor not startable, or non-zero exit
    """
    editor = editor if editor is not None else os.environ.get("EDITOR", "")
    if not editor.strip():
        raise EditorError("Not set EDITOR environmental variable")

    if not path.exists():
        raise EditorError(f"File not found: {path}. Use 'nostk init'")

    cmd = [*shlex.split(editor), str(path)]
    try:
        completed = subprocess.run(cmd, check=False)
    except FileNotFoundError:
        raise EditorError(f"Editor not found: {cmd[0]}") from None
    except OSError as e:
        raise EditorError(f"Failed to start editor: {e}") from None

    if completed.returncode != 0:
        raise EditorError(f"Editor exited with code {completed.returncode}")
