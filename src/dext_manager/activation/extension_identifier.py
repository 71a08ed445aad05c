DEFAULT_DRIVER_SUFFIX = ".Driver"


def make_extension_identifier(host_bundle_identifier: str, suffix: str = DEFAULT_DRIVER_SUFFIX) -> str:
    """Derive the driver extension identifier from the host application's bundle identifier.

    The driver is embedded in the host application and is identified by the host's
    identifier followed by a fixed label, e.g. "com.example.SimpleAudio" + ".Driver".

    Args:
        host_bundle_identifier (str): Bundle identifier of the host application.
        suffix (str): Label appended to the host identifier. Must start with '.'.

    Returns:
        str: The extension identifier.

    Raises:
        ValueError: If $host_bundle_identifier is empty or $suffix is not a '.'-prefixed label.
    """
    if not host_bundle_identifier:
        raise ValueError(f"$host_bundle_identifier cannot be empty, but provided value is: '{host_bundle_identifier}'")
    if not suffix.startswith(".") or len(suffix) < 2:
        raise ValueError(f"$suffix must start with '.' and contain a label, but provided value is: '{suffix}'")
    if host_bundle_identifier.endswith("."):
        raise ValueError(f"$host_bundle_identifier cannot end with '.', but provided value is: '{host_bundle_identifier}'")

    return host_bundle_identifier + suffix
