"""Tree mutation staging for gitlib.

A TreeBuilder accumulates path-addressed edits against an optional base tree
and persists them as a new immutable tree. Subtrees of the base are only
loaded when an edit descends into them, and only kept when the edit changes
something beneath them; untouched siblings stay as the base's entries.

A TreeScope owns exactly one builder for the length of a mutation and
exposes get/put/drop on top of the single primitive, Repository.update_tree_builder.
The mutate_*/create_*/with_* functions run a callable inside a fresh scope
and write the result.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from gitlib.core.errors import (GitException, TreeBuilderWriteFailed,
                                TreeCannotTraverseBlob, TreeCannotTraverseCommit,
                                TreeUpdateFailed)
from gitlib.core.objects import (BlobEntry, BlobKind, CommitEntry, ObjRef,
                                 SubtreeEntry, Tree, TreeEntry,
                                 resolve_tree_ref)
from gitlib.core.oid import BlobOid, CommitOid, TreeOid
from gitlib.core.repository import PendingTree, split_path

logger = logging.getLogger(__name__)


# Edit verdicts

class ModifyTreeResult:
    """Outcome of inspecting or editing one path in a builder."""

    __slots__ = ('entry',)

    def __init__(self, entry: Optional[TreeEntry] = None):
        self.entry = entry

    def __eq__(self, other) -> bool:
        if not isinstance(other, ModifyTreeResult):
            return NotImplemented
        return type(self) is type(other) and self.entry == other.entry

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.entry))

    def __repr__(self) -> str:
        if self.entry is None:
            return f"{type(self).__name__}()"
        return f"{type(self).__name__}({self.entry!r})"


class TreeEntryNotFound(ModifyTreeResult):
    """Nothing at the path; leave it alone."""

    __slots__ = ()

    def __init__(self):
        super().__init__(None)


class TreeEntryDeleted(ModifyTreeResult):
    """Remove whatever is at the path."""

    __slots__ = ()

    def __init__(self):
        super().__init__(None)


class TreeEntryPersistent(ModifyTreeResult):
    """Keep the existing entry unchanged."""

    __slots__ = ()

    def __init__(self, entry: TreeEntry):
        super().__init__(entry)


class TreeEntryMutated(ModifyTreeResult):
    """Install a new entry at the path."""

    __slots__ = ()

    def __init__(self, entry: TreeEntry):
        super().__init__(entry)


def from_modify_tree_result(result: ModifyTreeResult) -> Optional[TreeEntry]:
    return result.entry


def to_modify_tree_result(decide: Callable[[TreeEntry], ModifyTreeResult],
                          entry: Optional[TreeEntry]) -> ModifyTreeResult:
    """Apply decide to an existing entry; an absent entry is TreeEntryNotFound."""
    if entry is None:
        return TreeEntryNotFound()
    return decide(entry)


def _persist(entry: Optional[TreeEntry]) -> ModifyTreeResult:
    return to_modify_tree_result(TreeEntryPersistent, entry)


# Builder

class TreeBuilder:
    """
    Mutable staging state for one tree.

    Entries are copied from the base tree on creation; the base itself is
    never modified. Pending subtree edits live in child builders, which are
    only attached once an edit below them actually changes something.
    """

    def __init__(self, repo, base: Optional[Tree] = None):
        """
        Initialize builder.

        Args:
            repo: Repository used to load subtrees and persist the result
            base: Tree to seed from, or None for an empty tree
        """
        self.repo = repo
        self.base = base
        self._entries: Dict[str, TreeEntry] = dict(base.entries) if base is not None else {}
        self._children: Dict[str, 'TreeBuilder'] = {}
        self._dirty = False

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def update(self, path, create: bool,
               decide: Callable[[Optional[TreeEntry]], ModifyTreeResult]) -> Optional[TreeEntry]:
        """
        Stage one path update.

        Descends path segment by segment, then hands the entry found at the
        last segment (or None) to decide and applies its verdict.

        Args:
            path: Slash-delimited path below this builder
            create: Create missing intermediate subtrees
            decide: Maps the current entry to a ModifyTreeResult

        Returns:
            Entry observed or produced at path; None for not-found and deleted

        Raises:
            TreeUpdateFailed: If path is empty
            TreeCannotTraverseBlob: If an intermediate segment is a blob
            TreeCannotTraverseCommit: If an intermediate segment is a commit link
        """
        segments = split_path(path)
        if not segments:
            raise TreeUpdateFailed("Cannot update the root of a tree builder")
        _, entry = self._update(segments, 0, create, decide)
        return entry

    def _update(self, segments: List[str], depth: int, create: bool,
                decide) -> Tuple[bool, Optional[TreeEntry]]:
        name = segments[depth]

        if depth == len(segments) - 1:
            current = self._current_entry(name)
            return self._apply(name, current, decide(current))

        child = self._children.get(name)
        attached = child is not None
        if child is None:
            entry = self._entries.get(name)
            walked = '/'.join(segments[:depth + 1])
            if entry is None:
                if not create:
                    return False, None
                child = TreeBuilder(self.repo)
            elif isinstance(entry, SubtreeEntry):
                child = TreeBuilder(self.repo, self.repo.lookup_tree(entry.oid))
            elif isinstance(entry, BlobEntry):
                raise TreeCannotTraverseBlob(walked)
            elif isinstance(entry, CommitEntry):
                raise TreeCannotTraverseCommit(walked)
            else:
                raise TreeUpdateFailed(f"Unknown tree entry at {walked}: {entry!r}")

        changed, result = child._update(segments, depth + 1, create, decide)
        if changed:
            if not attached:
                self._children[name] = child
            self._dirty = True
        return changed, result

    def _current_entry(self, name: str) -> Optional[TreeEntry]:
        child = self._children.get(name)
        if child is None:
            return self._entries.get(name)
        entries = child._collect([])
        if not entries:
            return None
        return SubtreeEntry(self.repo.hash_tree(entries))

    def _apply(self, name: str, current: Optional[TreeEntry],
               result: ModifyTreeResult) -> Tuple[bool, Optional[TreeEntry]]:
        if isinstance(result, TreeEntryMutated):
            self._children.pop(name, None)
            self._entries[name] = result.entry
            self._dirty = True
            return True, result.entry
        if isinstance(result, TreeEntryDeleted):
            if current is None:
                return False, None
            self._children.pop(name, None)
            self._entries.pop(name, None)
            self._dirty = True
            return True, None
        if isinstance(result, (TreeEntryPersistent, TreeEntryNotFound)):
            return False, result.entry
        raise TypeError(f"Expected a ModifyTreeResult, got {result!r}")

    def _collect(self, pending: List[PendingTree]) -> Dict[str, TreeEntry]:
        """Compute final entries, appending every pending subtree to pending."""
        entries = dict(self._entries)
        for name, child in self._children.items():
            child_entries = child._collect(pending)
            if not child_entries:
                logger.debug("Pruning empty subtree %s", name)
                entries.pop(name, None)
                continue
            toid = self.repo.hash_tree(child_entries)
            pending.append((toid, child_entries))
            entries[name] = SubtreeEntry(toid)
        return entries

    def write(self) -> Tree:
        """
        Persist the staged state as a tree.

        Subtrees emptied by deletions are pruned. Everything is stored in one
        batch, so either every new tree is persisted or none is. Writing the
        same state twice yields the same tree.

        Returns:
            Tree: The persisted root tree

        Raises:
            TreeBuilderWriteFailed: If the backend rejects the trees
        """
        if not self._dirty and self.base is not None:
            return self.base

        try:
            pending: List[PendingTree] = []
            entries = self._collect(pending)
            toid = self.repo.hash_tree(entries)
            pending.append((toid, entries))
            self.repo.store_trees(pending)
        except TreeBuilderWriteFailed:
            raise
        except GitException as e:
            raise TreeBuilderWriteFailed(str(e)) from e

        logger.debug("Wrote tree %s (%d new trees)", toid.render()[:7], len(pending))
        return Tree(toid, entries)

    def __repr__(self) -> str:
        return f"TreeBuilder(entries={len(self._entries)}, pending={len(self._children)})"


# Scopes

class TreeScope:
    """
    One mutation scope: a single-owner builder plus the edit vocabulary.

    The builder belongs to this scope alone. write() is the terminal call;
    any edit after it fails.
    """

    def __init__(self, repo, builder: TreeBuilder):
        self.repo = repo
        self._builder = builder
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise TreeUpdateFailed("Tree scope has already been written")

    def get_builder(self) -> TreeBuilder:
        self._check_open()
        return self._builder

    def put_builder(self, builder: TreeBuilder) -> None:
        self._check_open()
        self._builder = builder

    def modify_entry(self, path, create: bool,
                     decide: Callable[[Optional[TreeEntry]], ModifyTreeResult]) -> Optional[TreeEntry]:
        """Run the staged update primitive against this scope's builder."""
        builder, entry = self.repo.update_tree_builder(self.get_builder(), path, create, decide)
        self.put_builder(builder)
        return entry

    def get_entry(self, path) -> Optional[TreeEntry]:
        return self.modify_entry(path, False, _persist)

    def put_entry(self, path, entry: TreeEntry) -> None:
        self.modify_entry(path, True, lambda _: TreeEntryMutated(entry))

    def drop_entry(self, path) -> None:
        self.modify_entry(path, False, lambda _: TreeEntryDeleted())

    def put_blob(self, path, oid: BlobOid, kind: BlobKind = BlobKind.PLAIN) -> None:
        self.put_entry(path, BlobEntry(oid, kind))

    def put_tree(self, path, oid: TreeOid) -> None:
        self.put_entry(path, SubtreeEntry(oid))

    def put_commit(self, path, oid: CommitOid) -> None:
        self.put_entry(path, CommitEntry(oid))

    def current_tree_ref(self) -> ObjRef:
        """Persist the current state without ending the scope."""
        return self.repo.write_tree(self.get_builder())

    def current_tree(self) -> Tree:
        return resolve_tree_ref(self.repo, self.current_tree_ref())

    def write(self) -> ObjRef:
        """Persist the final state and close the scope."""
        tree = self.repo.write_tree(self.get_builder())
        self._closed = True
        return tree


def _do_with_tree(repo, base: Optional[Tree], action: Callable[[TreeScope], Any]) -> Tuple[Any, ObjRef]:
    scope = TreeScope(repo, repo.new_tree_builder(base))
    value = action(scope)
    return value, scope.write()


def with_tree(repo, tree: Tree, action: Callable[[TreeScope], Any]) -> Tuple[Any, ObjRef]:
    """
    Run action in a scope seeded from tree.

    Returns:
        (value returned by action, reference to the new tree)
    """
    return _do_with_tree(repo, tree, action)


def with_tree_ref(repo, ref: ObjRef, action: Callable[[TreeScope], Any]) -> Tuple[Any, ObjRef]:
    return _do_with_tree(repo, resolve_tree_ref(repo, ref), action)


def mutate_tree(repo, tree: Tree, action: Callable[[TreeScope], Any]) -> ObjRef:
    return with_tree(repo, tree, action)[1]


def mutate_tree_ref(repo, ref: ObjRef, action: Callable[[TreeScope], Any]) -> ObjRef:
    return with_tree_ref(repo, ref, action)[1]


def with_new_tree(repo, action: Callable[[TreeScope], Any]) -> Tuple[Any, ObjRef]:
    """Run action in a scope that starts from an empty tree."""
    return _do_with_tree(repo, None, action)


def create_tree(repo, action: Callable[[TreeScope], Any]) -> ObjRef:
    return with_new_tree(repo, action)[1]
