from threading import Lock

_current_id: int = 0
_id_lock = Lock()


def get_next_id() -> int:
    """Generate next unique request ID in thread-safe manner.

    Returns:
        int: A sequential ID, unique across all threads of this process.
    """
    global _current_id
    with _id_lock:
        _current_id += 1
        return _current_id
