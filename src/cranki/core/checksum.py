"""Sort-field checksum used by Anki for duplicate detection."""

import hashlib


def field_checksum(sort_field: str) -> int:
    """Return the ``csum`` value for a note's sort field.

    The checksum is the first four bytes of the SHA-1 digest of the UTF-8
    encoded field, read as a big-endian unsigned 32-bit integer.
    """
    digest = hashlib.sha1(sort_field.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")
