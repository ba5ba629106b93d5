from typing import Iterable, List

_UNITS = ("B", "KB", "MB", "GB")


def format_size(size: int) -> str:
    """Human readable byte count (``1.5 MB``)."""
    value = float(size)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def size_label(entry) -> str:
    # Sizes reported for directories are meaningless
    return "-" if entry.is_dir else format_size(entry.size)


def sort_entries(entries: Iterable) -> List:
    """Directories before files; server order is kept inside each group."""
    return sorted(entries, key=lambda e: not e.is_dir)


def status_summary(status) -> str:
    return f"Device: {status.name} | Storage: {status.storage_summary}"
