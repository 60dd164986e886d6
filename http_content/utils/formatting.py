"""
Small string helpers shared by the CLI.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(num_bytes: float) -> str:
    """'0 B', '512 B', '1.5 KB', ... using 1024-based units."""
    if num_bytes < 1024:
        return f"{max(int(num_bytes), 0)} B"
    for unit in _SIZE_UNITS[1:]:
        num_bytes /= 1024
        if num_bytes < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{num_bytes:.1f} {unit}"


def format_duration(seconds: float) -> str:
    """Sub-second durations in ms, short ones in seconds, long ones as '3m 05s'."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.2f} s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"


def parse_header(raw: str) -> tuple[str, str]:
    """Splits a 'Name: value' string as given on the command line."""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"Header '{raw}' must look like 'Name: value'.")
    return name.strip(), value.strip()
