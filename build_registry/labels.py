"""
Label merging for build metadata.
"""


def merge_labels(base: dict | None, overlay: dict | None) -> dict:
    """
    Merge two label mappings into a new dictionary.

    The result holds the key union of both mappings. Where a key appears in
    both, the value from ``overlay`` wins. Neither argument is modified.

    Argument order encodes precedence at each call site:
        - explicit updates: merge_labels(current, overrides)
        - reconciliation: merge_labels(remote_labels, bucket_defaults)

    Example:
        >>> merge_labels({"version": "packer.version", "arch": "386"}, {"version": "1.7.3"})
        {'version': '1.7.3', 'arch': '386'}
    """
    merged = dict(base or {})
    merged.update(overlay or {})
    return merged
