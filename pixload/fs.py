"""File system path helpers."""

from __future__ import annotations

import os

_DIR_MODE = 0o770
_FILE_MODE = 0o640


def write_file(path: str, data: bytes) -> None:
    """Write ``data`` to ``path``, creating missing parent directories.

    Raises :class:`OSError` if a directory or the file cannot be created.
    """
    delim = path.find("/", 1)
    while delim != -1:
        try:
            os.mkdir(path[:delim], _DIR_MODE)
        except FileExistsError:
            pass
        delim = path.find("/", delim + 1)

    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, _FILE_MODE)
    with os.fdopen(fd, "wb") as stream:
        stream.write(data)


def append_path(path: str, file: str | None = None) -> str:
    """Append a sub-directory or file name to ``path``.

    A slash is inserted between the parts when needed; leading slashes of
    ``file`` are dropped. With no ``file`` the result just ends with a slash.
    """
    if not path.endswith("/"):
        path += "/"
    if file:
        path += file.lstrip("/")
    return path


def abspath(relative: str, cwd: str | None = None) -> str:
    """Make an absolute, normalised path from ``relative``.

    Relative paths are resolved against ``cwd`` (the current directory by
    default). ``.`` and ``..`` components are removed; a trailing slash is kept.
    """
    if relative.startswith("/"):
        full = relative
    else:
        base = os.getcwd() if cwd is None else cwd
        full = base + "/" + relative

    parts: list[str | None] = list(full.split("/"))
    for index, part in enumerate(parts):
        if part == ".":
            parts[index] = None
        elif part == "..":
            parts[index] = None
            for back in range(index - 1, -1, -1):
                if parts[back]:
                    parts[back] = None
                    break

    last = len(parts) - 1
    result = ["/"]
    for index, part in enumerate(parts):
        if part:
            result.append(part)
            if index < last:
                result.append("/")
    return "".join(result)


def name(path: str) -> str:
    """Return the file name part of ``path``."""
    return path.rsplit("/", 1)[-1]


def parent(path: str) -> str | None:
    """Return the name of the directory that holds the file, or None."""
    end = path.rfind("/")
    if end <= 0:
        return None
    start = path.rfind("/", 0, end)
    return path[start + 1 : end]


def envpath(env_name: str | None, postfix: str) -> str | None:
    """Build a path from an environment variable prefix and a fixed postfix.

    If the variable holds a colon-separated list only its first entry is used.
    Returns None when the variable is unset or empty.
    """
    prefix = ""
    if env_name:
        value = os.environ.get(env_name)
        if not value:
            return None
        prefix = value.split(":", 1)[0]
    return prefix + postfix