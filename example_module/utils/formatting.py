"""Human-readable formatting helpers used by the admin views."""


def format_file_size(num_bytes: int) -> str:
    """Format a byte count, e.g. 5242880 -> '5 MB'."""
    if num_bytes <= 0:
        return "0 Bytes"

    sizes = ["Bytes", "KB", "MB", "GB"]
    i = 0
    while num_bytes >= 1024 ** (i + 1) and i < len(sizes) - 1:
        i += 1
    value = round(num_bytes / 1024**i, 2)
    if value == int(value):
        value = int(value)
    return f"{value} {sizes[i]}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" + ("" if count == 1 else "s")


def format_duration(seconds: int) -> str:
    """Format a duration in seconds, e.g. 3660 -> '1 hour 1 minute'."""
    if seconds < 60:
        return f"{seconds} seconds"
    if seconds < 3600:
        return _plural(seconds // 60, "minute")

    hours = seconds // 3600
    remaining_minutes = (seconds % 3600) // 60
    result = _plural(hours, "hour")
    if remaining_minutes > 0:
        result += " " + _plural(remaining_minutes, "minute")
    return result
