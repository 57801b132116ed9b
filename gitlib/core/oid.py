"""Object identifiers for gitlib.

An Oid is opaque to everything except the backend that produced it: the core
only compares, hashes, renders and parses them. A TaggedOid pairs an Oid with
the kind of object it names, so a blob id cannot be handed to an operation
that wants a tree.
"""

from abc import ABC, abstractmethod
from functools import total_ordering
from typing import Type, TypeVar

from .errors import OidCopyFailed, OidParseFailed


class Oid(ABC):
    """
    Base class for backend identifiers.

    Subclasses must be immutable, hashable and totally ordered, and
    render() must round-trip through the owning repository's parse_oid().
    """

    @abstractmethod
    def render(self) -> str:
        """
        Render identifier as text.

        Returns:
            str: Stable textual form of the identifier
        """

    def __str__(self) -> str:
        return self.render()


@total_ordering
class HexOid(Oid):
    """
    Identifier backed by raw digest bytes, rendered as lowercase hex.

    This is what SHA-1 based backends use: 20 bytes, 40 hex characters.
    """

    __slots__ = ('_raw',)

    def __init__(self, raw: bytes):
        """
        Initialize identifier.

        Args:
            raw: Digest bytes
        """
        self._raw = bytes(raw)

    @classmethod
    def parse(cls, text: str, size: int = 20) -> 'HexOid':
        """
        Parse hex text into an identifier.

        Args:
            text: Hex string, 2 * size characters
            size: Digest size in bytes

        Returns:
            HexOid: Parsed identifier

        Raises:
            OidParseFailed: If text is not exactly size bytes of hex
        """
        if not isinstance(text, str) or len(text) != size * 2:
            raise OidParseFailed(str(text))
        try:
            return cls(bytes.fromhex(text))
        except ValueError as e:
            raise OidParseFailed(text) from e

    @property
    def raw(self) -> bytes:
        return self._raw

    def render(self) -> str:
        return self._raw.hex()

    def __eq__(self, other) -> bool:
        if not isinstance(other, HexOid):
            return NotImplemented
        return self._raw == other._raw

    def __lt__(self, other) -> bool:
        if not isinstance(other, HexOid):
            return NotImplemented
        return self._raw < other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        return f"HexOid({self.render()[:7]})"


T = TypeVar('T', bound='TaggedOid')


@total_ordering
class TaggedOid:
    """
    An Oid annotated with the kind of object it names.

    Tagged ids of different kinds never compare equal, even when they wrap
    the same underlying Oid.
    """

    __slots__ = ('_oid',)

    kind = 'object'

    def __init__(self, oid: Oid):
        if isinstance(oid, TaggedOid):
            raise TypeError(f"{type(self).__name__} cannot wrap an already tagged {oid.kind} id")
        self._oid = oid

    def untag(self) -> Oid:
        """Return the plain identifier."""
        return self._oid

    def render(self) -> str:
        return self._oid.render()

    def __str__(self) -> str:
        return self.render()

    def __eq__(self, other) -> bool:
        if not isinstance(other, TaggedOid):
            return NotImplemented
        return type(self) is type(other) and self._oid == other._oid

    def __lt__(self, other) -> bool:
        if not isinstance(other, TaggedOid):
            return NotImplemented
        if type(self) is not type(other):
            return self.kind < other.kind
        return self._oid < other._oid

    def __hash__(self) -> int:
        return hash((self.kind, self._oid))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.render()[:7]})"


class BlobOid(TaggedOid):
    __slots__ = ()
    kind = 'blob'


class TreeOid(TaggedOid):
    __slots__ = ()
    kind = 'tree'


class CommitOid(TaggedOid):
    __slots__ = ()
    kind = 'commit'


class TagOid(TaggedOid):
    __slots__ = ()
    kind = 'tag'


def require_kind(tagged: TaggedOid, cls: Type[T]) -> T:
    """
    Check that a tagged id names the expected kind of object.

    Args:
        tagged: Tagged identifier
        cls: Expected TaggedOid subclass

    Returns:
        The same identifier

    Raises:
        TypeError: If the identifier is untagged or of another kind
    """
    if not isinstance(tagged, cls):
        got = getattr(tagged, 'kind', type(tagged).__name__)
        raise TypeError(f"Expected a {cls.kind} id, got {got}")
    return tagged


def copy_oid(oid: Oid, dest) -> Oid:
    """
    Transplant an identifier into another repository.

    The only sanctioned route between backends is the text round-trip:
    render in the source, parse in the destination.

    Args:
        oid: Identifier from the source repository
        dest: Destination repository

    Returns:
        Oid: Identifier in the destination's scheme

    Raises:
        OidCopyFailed: If the destination cannot parse the rendered text
    """
    text = oid.render()
    try:
        return dest.parse_oid(text)
    except OidParseFailed as e:
        raise OidCopyFailed(text) from e


def copy_tagged_oid(tagged: T, dest) -> T:
    """Transplant a tagged identifier, keeping its kind."""
    return type(tagged)(copy_oid(tagged.untag(), dest))


def copy_commit_oid(coid: CommitOid, dest) -> CommitOid:
    return copy_tagged_oid(require_kind(coid, CommitOid), dest)
