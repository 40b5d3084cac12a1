"""Internal constants shared across the library."""

LIST_ENDPOINT = "/list"
DEFAULT_BRIDGE_PORT = 8080

#: Seconds between two polls of the lock list.
DEFAULT_POLL_INTERVAL: float = 60.0

#: Total timeout for one bridge request. The bridge answers from its local
#: cache, so anything slower than this is a hung connection.
DEFAULT_REQUEST_TIMEOUT: float = 10.0

# Characters that would create extra levels in a dotted state path.
PATH_SEPARATORS: tuple[str, ...] = (".", ":")


def sanitize_path_segment(value: str) -> str:
    """Replace path separators so *value* stays a single state-tree level."""
    result = value.strip()
    for sep in PATH_SEPARATORS:
        result = result.replace(sep, "_")
    return result
