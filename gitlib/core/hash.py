"""Hash utilities for content-addressing backends."""

import hashlib
from typing import Iterable


def object_digest(obj_type: str, chunks: Iterable[bytes]) -> bytes:
    """
    Compute the SHA-1 digest of a loose git object.

    Objects are hashed with a header containing the type and size.
    Format: <type> <size>\\0<content>

    Args:
        obj_type: Object type ('blob', 'tree', 'commit', 'tag')
        chunks: Object payload, possibly in several pieces

    Returns:
        bytes: 20-byte digest
    """
    data = b''.join(chunks)
    header = f"{obj_type} {len(data)}\0".encode()
    return hashlib.sha1(header + data).digest()


def _git_sort_key(entries):
    # git compares a subtree's name as if it ended in '/'
    return lambda name: name + '/' if entries[name].type == 'tree' else name


def tree_payload(entries) -> bytes:
    """
    Serialize tree entries to git's tree format.

    Format: <mode> <name>\\0<20-byte hash>, entries in git's order, where a
    subtree sorts as its name followed by '/' (so 'a.txt' precedes 'a').

    Args:
        entries: Mapping of name to TreeEntry whose oids wrap HexOid values

    Returns:
        bytes: Serialized tree data
    """
    result = b''
    for name in sorted(entries, key=_git_sort_key(entries)):
        entry = entries[name]
        mode_name = f"{entry.mode.lstrip('0')} {name}".encode()
        result += mode_name + b'\0' + entry.oid.untag().raw
    return result
