from __future__ import annotations

import os
from pathlib import Path
from typing import Dict


def _parse_dotenv(text: str) -> Dict[str, str]:
    """Parse KEY=VALUE lines, skipping blanks, comments and malformed lines."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key] = value
    return values


def load_dotenv_if_present(path: str | Path | None = None) -> Dict[str, str]:
    """
    Lightweight .env loader used for local runs.

    - Reads KEY=VALUE pairs from the given file (default: ".env" in CWD).
    - Ignores empty lines and comments starting with "#"; an optional
      leading "export " and surrounding quotes are stripped.
    - Does *not* overwrite variables that are already present in os.environ.

    Returns the variables that were actually set. A missing or unreadable
    file is not an error: the pipeline falls back to its built-in defaults.
    """
    env_path = Path(path or ".env")
    if not env_path.exists():
        return {}

    try:
        text = env_path.read_text(encoding="utf-8")
    except OSError:
        return {}

    applied: Dict[str, str] = {}
    for key, value in _parse_dotenv(text).items():
        # Values already in the environment win over the file.
        if key not in os.environ:
            os.environ[key] = value
            applied[key] = value
    return applied


__all__ = ["load_dotenv_if_present"]
