"""References and commit names for gitlib.

A Reference is a named pointer whose target is either a commit reference
or, symbolically, the name of another reference. A CommitName lets callers
designate a commit by id, by reference name or by an already looked-up
reference, deferring resolution until it is needed.
"""

from typing import Optional, Set

from .errors import ReferenceLookupFailed
from .objects import ByOid, Commit, Known, ObjRef
from .oid import CommitOid, copy_commit_oid, require_kind


class RefTarget:
    __slots__ = ()


class RefObj(RefTarget):
    """Target pointing directly at a commit."""

    __slots__ = ('ref',)

    def __init__(self, ref: ObjRef):
        self.ref = ref

    def __eq__(self, other) -> bool:
        if not isinstance(other, RefObj):
            return NotImplemented
        return self.ref.oid == other.ref.oid

    def __hash__(self) -> int:
        return hash(self.ref.oid)

    def __repr__(self) -> str:
        return f"RefObj({self.ref.oid.render()[:7]})"


class RefSymbolic(RefTarget):
    """Target naming another reference."""

    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other) -> bool:
        if not isinstance(other, RefSymbolic):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"RefSymbolic({self.name})"


class Reference:
    """
    A named pointer into the commit graph.

    The name is fixed at creation; the target may be reassigned through
    Repository.update_reference.
    """

    __slots__ = ('name', 'target')

    def __init__(self, name: str, target: RefTarget):
        self.name = name
        self.target = target

    @property
    def is_symbolic(self) -> bool:
        return isinstance(self.target, RefSymbolic)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Reference):
            return NotImplemented
        return self.name == other.name and self.target == other.target

    def __hash__(self) -> int:
        return hash((self.name, self.target))

    def __repr__(self) -> str:
        return f"Reference({self.name} -> {self.target!r})"


def commit_ref_target(commit: Commit) -> RefObj:
    return RefObj(Known(commit))


# Commit names

class CommitName:
    __slots__ = ()


class CommitObjectId(CommitName):
    __slots__ = ('oid',)

    def __init__(self, oid: CommitOid):
        self.oid = require_kind(oid, CommitOid)

    def __str__(self) -> str:
        return self.oid.render()

    def __repr__(self) -> str:
        return f"CommitObjectId({self.oid.render()[:7]})"


class CommitRefName(CommitName):
    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name = name

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"CommitRefName({self.name!r})"


class CommitReference(CommitName):
    __slots__ = ('reference',)

    def __init__(self, reference: Reference):
        self.reference = reference

    def __str__(self) -> str:
        return self.reference.name

    def __repr__(self) -> str:
        return f"CommitReference({self.reference.name!r})"


def name_of_commit(commit: Commit) -> CommitObjectId:
    return CommitObjectId(commit.oid)


def render_commit_name(name: CommitName) -> str:
    """
    Render a commit name as text.

    Returns:
        str: The rendered id, or the reference name
    """
    return str(name)


def reference_to_ref(repo, name: Optional[str], reference: Optional[Reference],
                     _seen: Optional[Set[str]] = None) -> Optional[ObjRef]:
    """
    Turn a looked-up reference into a commit reference.

    Symbolic targets are dereferenced by looking up the name they point
    at, following chains until a direct target is reached.

    Args:
        repo: Repository the reference belongs to
        name: Name the reference was looked up under, if any
        reference: Result of a lookup, or None when absent
        _seen: Names already visited while following a symbolic chain

    Returns:
        Commit reference, or None when the reference (or a link in the
        chain) does not exist

    Raises:
        ReferenceLookupFailed: If the chain of symbolic references loops
    """
    if reference is None:
        return None
    if isinstance(reference.target, RefObj):
        return reference.target.ref

    seen = set() if _seen is None else _seen
    seen.add(name if name is not None else reference.name)
    seen.add(reference.name)
    target_name = reference.target.name
    if target_name in seen:
        raise ReferenceLookupFailed(reference.name)
    return reference_to_ref(repo, target_name, repo.lookup_reference(target_name), seen)


def commit_name_to_ref(repo, name: CommitName) -> Optional[ObjRef]:
    """
    Resolve a commit name to a commit reference.

    Args:
        repo: Repository to resolve against
        name: Commit name

    Returns:
        Commit reference, or None if a named reference does not exist
    """
    if isinstance(name, CommitObjectId):
        return ByOid(name.oid)
    if isinstance(name, CommitRefName):
        return repo.resolve_reference(name.name)
    if isinstance(name, CommitReference):
        return reference_to_ref(repo, None, name.reference)
    raise TypeError(f"Not a commit name: {name!r}")


def copy_commit_name(name: CommitName, dest) -> Optional[CommitName]:
    """
    Transplant a commit name into another repository.

    Ids go through the text round-trip, reference names are kept as they
    are, and already looked-up references are looked up again by name in
    the destination.

    Returns:
        Commit name valid in dest, or None if the reference is absent there
    """
    if isinstance(name, CommitObjectId):
        return CommitObjectId(copy_commit_oid(name.oid, dest))
    if isinstance(name, CommitRefName):
        return CommitRefName(name.name)
    if isinstance(name, CommitReference):
        reference = dest.lookup_reference(name.reference.name)
        return CommitReference(reference) if reference is not None else None
    raise TypeError(f"Not a commit name: {name!r}")
