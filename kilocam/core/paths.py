"""
Path helpers for the device's slash-delimited storage tree.

Paths handed around by the gallery are always absolute; the root is "/"
and no other path carries a trailing separator.
"""

SEP = "/"


def is_root(path: str) -> bool:
    return path in ("", SEP)


def normalize_path(path: str) -> str:
    """Make ``path`` absolute, collapse duplicate separators, drop a trailing one."""
    segments = [s for s in (path or "").split(SEP) if s]
    return SEP + SEP.join(segments)


def join_path(parent: str, name: str) -> str:
    """Full path of entry ``name`` listed under ``parent``."""
    if not parent.endswith(SEP):
        parent += SEP
    return parent + name


def parent_path(path: str) -> str:
    """Directory containing ``path``; the root is its own parent."""
    if is_root(path):
        return SEP

    if path.endswith(SEP) and len(path) > 1:
        path = path[:-1]

    idx = path.rfind(SEP)
    parent = path[:idx] if idx > 0 else ""
    return parent or SEP


def basename(path: str) -> str:
    return normalize_path(path).rsplit(SEP, 1)[-1]
