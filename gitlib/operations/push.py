"""Pushing commits between repositories.

push_commit copies everything the destination is missing to make a commit
reachable there, then moves a destination reference to it. Both sides only
need to implement the Repository interface; ids cross over through the
text round-trip, so the two backends must share an id scheme.
"""

import logging
from typing import Dict, Optional

from gitlib.core.errors import (OidCopyFailed, PushNotFastForward,
                                ReferenceLookupFailed, TranslationException)
from gitlib.core.objects import (BlobEntry, BlobObj, BlobString, ByOid,
                                 CommitEntry, CommitObj, Object, ObjRef,
                                 SubtreeEntry, TreeEntry, TreeObj)
from gitlib.core.oid import (BlobOid, CommitOid, TaggedOid, TreeOid,
                             copy_tagged_oid)
from gitlib.core.refs import (CommitName, CommitObjectId, RefObj,
                              commit_name_to_ref)
from gitlib.operations.tree import create_tree

logger = logging.getLogger(__name__)

# Encodings a recreated commit implicitly carries
_COMMIT_ENCODINGS = {'utf-8', 'utf8'}


def _check_same(source_oid: TaggedOid, dest_oid: TaggedOid) -> None:
    if source_oid.render() != dest_oid.render():
        raise TranslationException(
            f"{source_oid.kind} {source_oid.render()} became {dest_oid.render()} in destination")


def _copy_entry(entry: TreeEntry, dest) -> TreeEntry:
    if isinstance(entry, BlobEntry):
        return BlobEntry(copy_tagged_oid(entry.oid, dest), entry.kind)
    if isinstance(entry, SubtreeEntry):
        return SubtreeEntry(copy_tagged_oid(entry.oid, dest))
    if isinstance(entry, CommitEntry):
        return CommitEntry(copy_tagged_oid(entry.oid, dest))
    raise TypeError(f"Unknown tree entry: {entry!r}")


class _Copier:
    """
    Copies objects from source to dest one at a time.

    Callers feed objects dependencies first, so whatever a tree or commit
    points at is already in dest by the time it is copied.
    """

    def __init__(self, source, dest):
        self.source = source
        self.dest = dest
        self.copied: Dict[TaggedOid, TaggedOid] = {}

    def copy(self, obj: Object) -> TaggedOid:
        if obj.oid in self.copied:
            return self.copied[obj.oid]
        if isinstance(obj, CommitObj):
            new_oid = self.commit(obj.oid)
        elif isinstance(obj, TreeObj):
            new_oid = self.tree(obj.oid)
        elif isinstance(obj, BlobObj):
            new_oid = self.blob(obj.oid)
        else:
            raise TypeError(f"Cannot push {obj!r}")
        _check_same(obj.oid, new_oid)
        self.copied[obj.oid] = new_oid
        return new_oid

    def blob(self, boid: BlobOid) -> BlobOid:
        blob = self.source.lookup_blob(boid)
        return self.dest.create_blob(BlobString(blob.contents.read()))

    def tree(self, toid: TreeOid) -> TreeOid:
        tree = self.source.lookup_tree(toid)

        def fill(scope):
            for name, entry in tree.entries.items():
                scope.put_entry(name, _copy_entry(entry, self.dest))

        return create_tree(self.dest, fill).oid

    def commit(self, coid: CommitOid) -> CommitOid:
        commit = self.source.lookup_commit(coid)
        if commit.encoding.lower().replace('_', '-') not in _COMMIT_ENCODINGS:
            raise TranslationException(
                f"commit {coid.render()} declares encoding {commit.encoding}, which cannot be pushed")
        parents = [ByOid(copy_tagged_oid(parent.oid, self.dest)) for parent in commit.parents]
        tree = ByOid(copy_tagged_oid(commit.tree.oid, self.dest))
        return self.dest.create_commit(parents, tree, commit.author, commit.committer, commit.log).oid


def push_commit(source, dest, name: CommitName, ref_name: str,
                remote_ref_name: Optional[str] = None) -> ObjRef:
    """
    Make a commit from source reachable in dest under ref_name.

    Objects are recreated in dest through its own create_* primitives, which
    have no way to declare a commit encoding. A commit whose log is declared
    in anything other than UTF-8 is therefore refused instead of being
    rewritten under a different id.

    Args:
        source: Repository holding the commit
        dest: Repository to push into
        name: Commit to push, named in source
        ref_name: Destination reference to move to the pushed commit
        remote_ref_name: Destination reference describing what dest already
            has; defaults to ref_name

    Returns:
        Reference to the pushed commit in dest

    Raises:
        ReferenceLookupFailed: If name does not resolve in source
        PushNotFastForward: If the destination reference points at a commit
            that is not an ancestor of the pushed one
        TranslationException: If a commit declares a non-UTF-8 encoding, or
            an object hashes differently in dest
    """
    want = commit_name_to_ref(source, name)
    if want is None:
        raise ReferenceLookupFailed(str(name))

    have: Optional[CommitName] = None
    dest_head = dest.resolve_reference(remote_ref_name or ref_name)
    if dest_head is not None:
        try:
            known = copy_tagged_oid(dest_head.oid, source)
        except OidCopyFailed as e:
            raise PushNotFastForward(ref_name) from e
        if not source.exists_object(known.untag()):
            raise PushNotFastForward(ref_name)
        if not any(commit.oid == known for commit in source.iter_commits(name)):
            raise PushNotFastForward(ref_name)
        have = CommitObjectId(known)

    objects = source.missing_objects(have, name)
    logger.info("Pushing %s to %s: %d objects", name, ref_name, len(objects))

    copier = _Copier(source, dest)
    # The walk puts every object before its dependencies; copy in reverse
    for obj in reversed(objects):
        copier.copy(obj)

    pushed = copy_tagged_oid(want.oid, dest)
    target = RefObj(ByOid(pushed))
    if dest.lookup_reference(ref_name) is None:
        dest.create_reference(ref_name, target)
    else:
        dest.update_reference(ref_name, target)
    return ByOid(pushed)
