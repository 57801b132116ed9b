"""Object model for gitlib.

Blobs, trees, commits and tags as seen by callers of a Repository, plus the
ObjRef type that lets an object be referred to lazily (by id) or eagerly
(already in memory).
"""

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, List, Mapping

from .oid import BlobOid, CommitOid, TaggedOid, TagOid, TreeOid, Oid


# Object references

class ObjRef:
    """Reference to an object, either unresolved or already materialized."""

    __slots__ = ()

    @property
    def oid(self) -> TaggedOid:
        raise NotImplementedError

    def resolve(self, repo):
        raise NotImplementedError


class ByOid(ObjRef):
    """
    Reference by identifier; the object has not been fetched.

    Resolving performs exactly one lookup on the repository, chosen by the
    kind of the tagged id. The result is not cached.
    """

    __slots__ = ('_oid',)

    def __init__(self, oid: TaggedOid):
        if not isinstance(oid, TaggedOid):
            raise TypeError("ByOid requires a tagged object id")
        self._oid = oid

    @property
    def oid(self) -> TaggedOid:
        return self._oid

    def resolve(self, repo):
        if isinstance(self._oid, BlobOid):
            return repo.lookup_blob(self._oid)
        if isinstance(self._oid, TreeOid):
            return repo.lookup_tree(self._oid)
        if isinstance(self._oid, CommitOid):
            return repo.lookup_commit(self._oid)
        if isinstance(self._oid, TagOid):
            return repo.lookup_tag(self._oid)
        raise TypeError(f"Cannot resolve a {self._oid.kind} id")

    def __eq__(self, other) -> bool:
        if not isinstance(other, ByOid):
            return NotImplemented
        return self._oid == other._oid

    def __hash__(self) -> int:
        return hash(('ByOid', self._oid))

    def __repr__(self) -> str:
        return f"ByOid({self._oid!r})"


class Known(ObjRef):
    """Reference to an object that is already in memory."""

    __slots__ = ('obj',)

    def __init__(self, obj):
        self.obj = obj

    @property
    def oid(self) -> TaggedOid:
        return self.obj.oid

    def resolve(self, repo):
        return self.obj

    def __repr__(self) -> str:
        return f"Known({self.obj!r})"


def _expect_ref_kind(ref: ObjRef, kind: type) -> ObjRef:
    if not isinstance(ref, ObjRef):
        raise TypeError(f"Expected an object reference, got {type(ref).__name__}")
    if not isinstance(ref.oid, kind):
        raise TypeError(f"Expected a {kind.kind} reference, got {ref.oid.kind}")
    return ref


def blob_ref_oid(ref: ObjRef) -> BlobOid:
    return _expect_ref_kind(ref, BlobOid).oid


def tree_ref_oid(ref: ObjRef) -> TreeOid:
    return _expect_ref_kind(ref, TreeOid).oid


def commit_ref_oid(ref: ObjRef) -> CommitOid:
    return _expect_ref_kind(ref, CommitOid).oid


def tag_ref_oid(ref: ObjRef) -> TagOid:
    return _expect_ref_kind(ref, TagOid).oid


def resolve_blob_ref(repo, ref: ObjRef) -> 'Blob':
    return _expect_ref_kind(ref, BlobOid).resolve(repo)


def resolve_tree_ref(repo, ref: ObjRef) -> 'Tree':
    return _expect_ref_kind(ref, TreeOid).resolve(repo)


def resolve_commit_ref(repo, ref: ObjRef) -> 'Commit':
    return _expect_ref_kind(ref, CommitOid).resolve(repo)


def resolve_tag_ref(repo, ref: ObjRef) -> 'Tag':
    return _expect_ref_kind(ref, TagOid).resolve(repo)


# Blobs

ByteSource = Callable[[], Iterable[bytes]]


class BlobContents:
    """
    Contents of a blob.

    Three variants: an in-memory buffer (BlobString), a lazily produced
    stream of chunks (BlobStream), and a stream with a declared total
    length (BlobSizedStream). Streams are pulled, never buffered unless
    read() is called.
    """

    __slots__ = ()

    def chunks(self) -> Iterator[bytes]:
        raise NotImplementedError

    def read(self) -> bytes:
        """Drain the contents into a single bytes value."""
        return b''.join(self.chunks())

    def __eq__(self, other) -> bool:
        # Streams are never compared by value
        return False

    __hash__ = None


class BlobString(BlobContents):
    __slots__ = ('data',)

    def __init__(self, data: bytes):
        self.data = bytes(data)

    def chunks(self) -> Iterator[bytes]:
        yield self.data

    def read(self) -> bytes:
        return self.data

    def __eq__(self, other) -> bool:
        if isinstance(other, BlobString):
            return self.data == other.data
        return False

    __hash__ = None

    def __repr__(self) -> str:
        return f"BlobString(size={len(self.data)})"


class BlobStream(BlobContents):
    """Contents produced by a source callable returning an iterable of chunks."""

    __slots__ = ('source',)

    def __init__(self, source: ByteSource):
        self.source = source

    def chunks(self) -> Iterator[bytes]:
        for chunk in self.source():
            yield chunk

    def __repr__(self) -> str:
        return "BlobStream()"


class BlobSizedStream(BlobStream):
    __slots__ = ('size',)

    def __init__(self, source: ByteSource, size: int):
        super().__init__(source)
        self.size = size

    def __repr__(self) -> str:
        return f"BlobSizedStream(size={self.size})"


class BlobKind(Enum):
    PLAIN = 'plain'
    EXECUTABLE = 'executable'
    SYMLINK = 'symlink'
    UNKNOWN = 'unknown'


class Blob:
    """File content together with its identifier."""

    def __init__(self, oid: BlobOid, contents: BlobContents):
        self.oid = oid
        self.contents = contents

    def __repr__(self) -> str:
        return f"Blob(oid={self.oid.render()[:7]})"


# Trees

_BLOB_MODES = {
    BlobKind.PLAIN: '100644',
    BlobKind.EXECUTABLE: '100755',
    BlobKind.SYMLINK: '120000',
    BlobKind.UNKNOWN: '100644',
}


class TreeEntry:
    """
    Represents a single entry in a tree.

    Each entry carries the tagged id of the object it points at, a
    git file mode and an object type name. Concrete kinds are BlobEntry,
    SubtreeEntry and CommitEntry (a submodule-style link).
    """

    __slots__ = ('oid',)

    type = ''

    def __init__(self, oid: TaggedOid):
        self.oid = oid

    @property
    def mode(self) -> str:
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeEntry):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._key()))

    def _key(self):
        return self.oid

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.mode} {self.oid.render()[:7]})"


class BlobEntry(TreeEntry):
    __slots__ = ('kind',)

    type = 'blob'

    def __init__(self, oid: BlobOid, kind: BlobKind = BlobKind.PLAIN):
        if not isinstance(oid, BlobOid):
            raise TypeError("BlobEntry requires a blob id")
        super().__init__(oid)
        self.kind = kind

    @property
    def mode(self) -> str:
        return _BLOB_MODES[self.kind]

    def _key(self):
        return (self.oid, self.kind)


class SubtreeEntry(TreeEntry):
    __slots__ = ()

    type = 'tree'

    def __init__(self, oid: TreeOid):
        if not isinstance(oid, TreeOid):
            raise TypeError("SubtreeEntry requires a tree id")
        super().__init__(oid)

    @property
    def mode(self) -> str:
        return '040000'


class CommitEntry(TreeEntry):
    __slots__ = ()

    type = 'commit'

    def __init__(self, oid: CommitOid):
        if not isinstance(oid, CommitOid):
            raise TypeError("CommitEntry requires a commit id")
        super().__init__(oid)

    @property
    def mode(self) -> str:
        return '160000'


def blob_entry(oid: BlobOid, kind: BlobKind = BlobKind.PLAIN) -> BlobEntry:
    return BlobEntry(oid, kind)


def tree_entry(tree: 'Tree') -> SubtreeEntry:
    return SubtreeEntry(tree.oid)


def commit_entry(commit: 'Commit') -> CommitEntry:
    return CommitEntry(commit.oid)


def get_tree_entry_oid(entry: TreeEntry) -> Oid:
    return entry.oid.untag()


class Tree:
    """
    Represents directory structure.

    An immutable mapping of path segments to entries. Iteration is in
    lexicographic name order, which is also the persisted order.
    """

    def __init__(self, oid: TreeOid, entries: Mapping[str, TreeEntry]):
        """
        Initialize tree.

        Args:
            oid: Identifier of the persisted tree
            entries: Immediate children by name
        """
        self.oid = oid
        self._entries = MappingProxyType(dict(sorted(entries.items())))

    @property
    def entries(self) -> Mapping[str, TreeEntry]:
        return self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __repr__(self) -> str:
        return f"Tree(oid={self.oid.render()[:7]}, entries={len(self._entries)})"


def tree_ref(tree: Tree) -> Known:
    return Known(tree)


# Commits

class Signature:
    """Author or committer identity with a timezone-aware timestamp."""

    __slots__ = ('name', 'email', 'when')

    def __init__(self, name: str, email: str, when: datetime):
        if when.tzinfo is None or when.utcoffset() is None:
            raise ValueError("Signature time must be timezone-aware")
        self.name = name
        self.email = email
        self.when = when

    @classmethod
    def default(cls) -> 'Signature':
        """Empty identity at the Unix epoch, UTC."""
        return cls('', '', datetime(1970, 1, 1, tzinfo=timezone.utc))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Signature):
            return NotImplemented
        return (self.name, self.email, self.when) == (other.name, other.email, other.when)

    def __hash__(self) -> int:
        return hash((self.name, self.email, self.when))

    def __repr__(self) -> str:
        return f"Signature({self.name} <{self.email}> {self.when.isoformat()})"


class Commit:
    """
    Represents a commit with metadata.

    A commit captures:
    - Snapshot of project (tree reference)
    - Parent commit references, first parent first
    - Author and committer signatures
    - Log message and its declared encoding
    """

    def __init__(
        self,
        oid: CommitOid,
        parents: List[ObjRef],
        tree: ObjRef,
        author: Signature,
        committer: Signature,
        log: str,
        encoding: str = 'utf-8'
    ):
        self.oid = oid
        self.parents = list(parents)
        self.tree = tree
        self.author = author
        self.committer = committer
        self.log = log
        self.encoding = encoding

    def __repr__(self) -> str:
        parent_info = f", parents={len(self.parents)}" if self.parents else ""
        msg_preview = self.log.split('\n')[0][:50]
        return f"Commit(oid={self.oid.render()[:7]}{parent_info}, log='{msg_preview}')"


def commit_ref(commit: Commit) -> Known:
    return Known(commit)


# Tags

class Tag:
    def __init__(self, oid: TagOid, commit: ObjRef):
        self.oid = oid
        self.commit = commit

    def __repr__(self) -> str:
        return f"Tag(oid={self.oid.render()[:7]})"


# Generic objects

class Object:
    """Any object in the graph, wrapping a reference of the matching kind."""

    __slots__ = ('ref',)

    kind = TaggedOid

    def __init__(self, ref: ObjRef):
        self.ref = _expect_ref_kind(ref, self.kind)

    @property
    def oid(self) -> TaggedOid:
        return self.ref.oid

    def __eq__(self, other) -> bool:
        if not isinstance(other, Object):
            return NotImplemented
        return self.oid == other.oid

    def __hash__(self) -> int:
        return hash(self.oid)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.oid.render()[:7]})"


class BlobObj(Object):
    __slots__ = ()
    kind = BlobOid


class TreeObj(Object):
    __slots__ = ()
    kind = TreeOid


class CommitObj(Object):
    __slots__ = ()
    kind = CommitOid


class TagObj(Object):
    __slots__ = ()
    kind = TagOid


def object_oid(obj: Object) -> Oid:
    return obj.oid.untag()


def object_for(oid: TaggedOid) -> Object:
    """Wrap a tagged id in the Object variant of its kind."""
    for kind, cls in ((BlobOid, BlobObj), (TreeOid, TreeObj), (CommitOid, CommitObj), (TagOid, TagObj)):
        if isinstance(oid, kind):
            return cls(ByOid(oid))
    raise TypeError(f"No object variant for a {oid.kind} id")
