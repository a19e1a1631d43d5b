"""
Path helpers for the virtual project tree.

All functions here are pure and total: they never touch storage and accept
any string. Malformed input just produces a path that won't resolve to a
stored record.
"""

from typing import List, Optional

ROOT = '/'
SEP = '/'


def basename(path: str) -> str:
    """Return the last segment of a path ('/' for the root)."""
    if path == ROOT:
        return ROOT
    return path.rstrip(SEP).rsplit(SEP, 1)[-1]


def parent_of(path: str) -> Optional[str]:
    """Return the containing directory of a path, or None for the root."""
    if path == ROOT:
        return None
    stripped = path.rstrip(SEP)
    if SEP not in stripped:
        return ROOT
    return stripped.rsplit(SEP, 1)[0] or ROOT


def join(cwd: str, token: str) -> str:
    """Combine a working directory and a shell operand.

    Absolute tokens are returned unchanged, '..' steps up one level
    (staying at the root), anything else is appended with one separator.
    """
    if token.startswith(SEP):
        return token
    if token == '..':
        return parent_of(cwd) or ROOT
    if cwd == ROOT:
        return ROOT + token
    return cwd + SEP + token


def normalize(path: str) -> str:
    """Collapse '//', '.', '..' and trailing slashes into a canonical path."""
    parts: List[str] = []
    for part in path.split(SEP):
        if part in ('', '.'):
            continue
        if part == '..':
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return ROOT + SEP.join(parts)


def resolve(cwd: str, token: str) -> str:
    """Resolve a shell operand against cwd the way a POSIX shell would."""
    return normalize(join(cwd, token))


def is_within(path: str, ancestor: str) -> bool:
    """True if path is a strict descendant of ancestor."""
    if ancestor == ROOT:
        return path != ROOT and path.startswith(ROOT)
    return path.startswith(ancestor + SEP)


def rebase(path: str, old: str, new: str) -> str:
    """Swap the leading `old` component of path for `new`.

    The substitution is anchored: '/x/a/a' is left alone when rebasing
    '/a' onto '/c', only '/a' itself and paths under '/a/' move.
    """
    if path == old:
        return new
    if is_within(path, old):
        return new + path[len(old):]
    return path
