"""Repository capability interface for gitlib.

Repository is the central point of contact between user code and git data.
A backend implements the abstract primitives; everything else here (listing
references, symbolic resolution, traversal, the tree staging defaults) is
composed on top of them and works for any backend.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import (Any, Callable, Iterator, List, Mapping, Optional, Sequence,
                    Set, Tuple, Type, TypeVar)

from .errors import (ReferenceLookupFailed, TreeCannotTraverseBlob,
                     TreeCannotTraverseCommit, UnsupportedOperation)
from .objects import (Blob, BlobContents, BlobEntry, ByOid, Commit, CommitEntry,
                      CommitObj, Known, Object, ObjRef, Signature, SubtreeEntry,
                      Tag, Tree, TreeEntry, TreeObj, BlobObj)
from .oid import BlobOid, CommitOid, Oid, TaggedOid, TagOid, TreeOid
from .refs import (CommitName, CommitReference, RefTarget, Reference,
                   commit_name_to_ref, reference_to_ref)

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=TaggedOid)

PendingTree = Tuple[TreeOid, Mapping[str, TreeEntry]]


@dataclass(frozen=True)
class RepositoryFacts:
    """Capabilities a backend reports so generic code can branch on them."""
    has_symbolic_references: bool = True


def split_path(path) -> List[str]:
    """
    Split a slash-delimited tree path into segments.

    Empty segments are dropped, so 'a//b/' is ['a', 'b'] and '' addresses
    the root.
    """
    return [segment for segment in str(path).split('/') if segment and segment != '.']


def _reverse_postorder(start, expand, seen: Set) -> List:
    """
    Order everything reachable from start so each node precedes its successors.

    expand(node) returns (value, successors) and is called once per node.
    Nodes already in seen are skipped; every expanded node is added to it.
    Successors keep the order expand gives them wherever the graph allows.

    Returns:
        The values, in reverse post-order
    """
    finished = []
    stack = [(start, None)]
    while stack:
        node, value = stack.pop()
        if value is not None:
            finished.append(value)
            continue
        if node in seen:
            continue
        seen.add(node)
        value, successors = expand(node)
        stack.append((node, value))
        stack.extend((successor, None) for successor in successors if successor not in seen)
    finished.reverse()
    return finished


class Repository(ABC):
    """
    Abstract repository.

    Backends subclass this and implement the abstract methods. Primitives
    that take tagged ids are expected to reject ids of the wrong kind with
    oid.require_kind.
    """

    # Lifecycle

    @abstractmethod
    def facts(self) -> RepositoryFacts:
        """Report backend capabilities."""

    @abstractmethod
    def delete_repository(self) -> None:
        """Discard all backing storage."""

    # Identifiers

    @abstractmethod
    def parse_oid(self, text: str) -> Oid:
        """
        Parse identifier text in this backend's scheme.

        Raises:
            OidParseFailed: If text is not a valid identifier
        """

    def parse_obj_oid(self, text: str, kind: Type[T]) -> T:
        """Parse identifier text and tag it with an object kind."""
        return kind(self.parse_oid(text))

    # References

    @abstractmethod
    def create_reference(self, name: str, target: RefTarget) -> Reference:
        """
        Create a new reference.

        Raises:
            ReferenceCreateFailed: If the backend rejects it
        """

    @abstractmethod
    def lookup_reference(self, name: str) -> Optional[Reference]:
        """
        Look up a reference by name.

        Returns:
            Reference, or None when no reference has that name
        """

    @abstractmethod
    def update_reference(self, name: str, target: RefTarget) -> Reference:
        """
        Point an existing or new reference at a target.

        Raises:
            ReferenceCreateFailed: If the backend rejects the update
        """

    @abstractmethod
    def delete_reference(self, name: str) -> None:
        """Delete a reference."""

    @abstractmethod
    def all_reference_names(self) -> List[str]:
        """List every reference name."""

    def all_references(self) -> List[Reference]:
        """
        Look up every reference.

        A reference that disappears between listing and lookup is left out
        rather than reported as an error.

        Returns:
            List of references, in the order names were listed
        """
        references = []
        for name in self.all_reference_names():
            reference = self.lookup_reference(name)
            if reference is None:
                logger.debug("Reference %s vanished during listing", name)
                continue
            references.append(reference)
        return references

    def resolve_reference(self, name: str) -> Optional[ObjRef]:
        """
        Look up a reference and follow symbolic targets to a commit.

        Returns:
            Commit reference, or None if the reference does not exist
        """
        return reference_to_ref(self, name, self.lookup_reference(name))

    # Lookup

    @abstractmethod
    def lookup_blob(self, oid: BlobOid) -> Blob:
        """Raises BlobLookupFailed if absent."""

    @abstractmethod
    def lookup_tree(self, oid: TreeOid) -> Tree:
        """Raises TreeLookupFailed if absent."""

    @abstractmethod
    def lookup_commit(self, oid: CommitOid) -> Commit:
        """Raises CommitLookupFailed if absent."""

    @abstractmethod
    def lookup_tag(self, oid: TagOid) -> Tag:
        """Raises TagLookupFailed if absent."""

    @abstractmethod
    def lookup_object(self, text: str) -> Object:
        """
        Look up an object of any kind by identifier text.

        Raises:
            ObjectLookupFailed: If no object matches
        """

    @abstractmethod
    def exists_object(self, oid: Oid) -> bool:
        """Check whether an object with this identifier exists."""

    # Object creation

    @abstractmethod
    def hash_contents(self, contents: BlobContents) -> BlobOid:
        """
        Compute the id contents would have as a blob, without storing it.

        Identical contents must yield identical ids.
        """

    @abstractmethod
    def create_blob(self, contents: BlobContents) -> BlobOid:
        """
        Store contents as a blob.

        Raises:
            BlobCreateFailed: If the backend rejects the blob
        """

    @abstractmethod
    def create_commit(
        self,
        parents: Sequence[ObjRef],
        tree: ObjRef,
        author: Signature,
        committer: Signature,
        log: str,
        ref_name: Optional[str] = None
    ) -> Commit:
        """
        Create a commit, optionally pointing a reference at it.

        Args:
            parents: Parent commit references, first parent first
            tree: Reference to the commit's tree
            author: Author signature
            committer: Committer signature
            log: Log message
            ref_name: Reference to update to the new commit

        Raises:
            CommitCreateFailed: If the backend rejects the commit
        """

    @abstractmethod
    def create_tag(self, commit: CommitOid, tagger: Signature, log: str, name: str) -> Tag:
        """Raises TagCreateFailed if the backend rejects the tag."""

    @abstractmethod
    def hash_tree(self, entries: Mapping[str, TreeEntry]) -> TreeOid:
        """Compute the id a tree with these entries would have, without storing it."""

    @abstractmethod
    def store_trees(self, pending: Sequence[PendingTree]) -> None:
        """
        Persist a batch of trees, all or nothing.

        Args:
            pending: (id, entries) pairs as computed by hash_tree, innermost
                trees first

        Raises:
            TreeCreateFailed: If any tree is rejected; nothing is stored
        """

    # Trees

    def tree_oid(self, tree: Tree) -> TreeOid:
        return tree.oid

    def new_tree_builder(self, base: Optional[Tree] = None):
        """
        Begin a staging session.

        Args:
            base: Tree to seed the builder from, or None for an empty one

        Returns:
            TreeBuilder owned by the caller
        """
        from gitlib.operations.tree import TreeBuilder
        return TreeBuilder(self, base)

    def update_tree_builder(self, builder, path, create: bool,
                            decide: Callable[[Optional[TreeEntry]], Any]):
        """
        Apply one staged path update.

        Returns:
            (builder, entry) where entry is the value observed or produced
            at path, or None
        """
        entry = builder.update(path, create, decide)
        return builder, entry

    def write_tree(self, builder) -> ObjRef:
        """Persist a builder's staged state and return a reference to the new tree."""
        return Known(builder.write())

    def get_tree_entry(self, tree: Tree, path) -> Optional[TreeEntry]:
        """
        Find the entry at a path inside a tree.

        Args:
            tree: Tree to search
            path: Slash-delimited path; '' is the tree itself

        Returns:
            TreeEntry, or None if nothing is at that path

        Raises:
            TreeCannotTraverseBlob: If an intermediate segment is a blob
            TreeCannotTraverseCommit: If an intermediate segment is a commit link
        """
        segments = split_path(path)
        if not segments:
            return SubtreeEntry(tree.oid)

        current = tree
        for depth, segment in enumerate(segments):
            entry = current.entries.get(segment)
            if entry is None or depth == len(segments) - 1:
                return entry
            walked = '/'.join(segments[:depth + 1])
            if isinstance(entry, BlobEntry):
                raise TreeCannotTraverseBlob(walked)
            if isinstance(entry, CommitEntry):
                raise TreeCannotTraverseCommit(walked)
            current = self.lookup_tree(entry.oid)
        return None

    def iter_entries(self, tree: Tree, prefix: str = '') -> Iterator[Tuple[str, TreeEntry]]:
        """Yield (path, entry) for every entry below tree, pre-order."""
        for name, entry in tree.entries.items():
            path = f"{prefix}/{name}" if prefix else name
            yield path, entry
            if isinstance(entry, SubtreeEntry):
                yield from self.iter_entries(self.lookup_tree(entry.oid), path)

    def traverse_entries(self, visitor: Callable[[str, TreeEntry], Any], tree: Tree) -> List[Any]:
        """Call visitor on every entry below tree and collect the results."""
        return [visitor(path, entry) for path, entry in self.iter_entries(tree)]

    def walk_entries(self, visitor: Callable[[str, TreeEntry], Any], tree: Tree) -> None:
        for path, entry in self.iter_entries(tree):
            visitor(path, entry)

    # Traversal

    def _start_commit(self, name: CommitName) -> CommitOid:
        ref = commit_name_to_ref(self, name)
        if ref is None:
            raise ReferenceLookupFailed(str(name))
        return ref.oid

    def iter_commits(self, name: CommitName, stop: Optional[Set[CommitOid]] = None) -> Iterator[Commit]:
        """
        Yield commits reachable from name, each before any of its ancestors.

        Where the graph leaves a choice, the first parent's history comes
        first. Merges of long histories are fine: the walk keeps its own
        stack instead of recursing.

        Args:
            name: Commit to start from
            stop: Commits whose ancestry should not be walked
        """
        def expand(coid):
            commit = self.lookup_commit(coid)
            return commit, [parent.oid for parent in commit.parents]

        seen = set(stop or ())
        yield from _reverse_postorder(self._start_commit(name), expand, seen)

    def traverse_commits(self, visitor: Callable[[ObjRef], Any], name: CommitName) -> List[Any]:
        return [visitor(Known(commit)) for commit in self.iter_commits(name)]

    def walk_commits(self, visitor: Callable[[ObjRef], Any], name: CommitName) -> None:
        for commit in self.iter_commits(name):
            visitor(Known(commit))

    def _expand_object(self, oid: TaggedOid) -> Tuple[Object, List[TaggedOid]]:
        if isinstance(oid, CommitOid):
            commit = self.lookup_commit(oid)
            return CommitObj(Known(commit)), [commit.tree.oid] + [parent.oid for parent in commit.parents]
        if isinstance(oid, TreeOid):
            tree = self.lookup_tree(oid)
            # submodule links point outside this repository
            children = [entry.oid for entry in tree.entries.values()
                        if isinstance(entry, (SubtreeEntry, BlobEntry))]
            return TreeObj(Known(tree)), children
        return BlobObj(ByOid(oid)), []

    def _starting_names(self, name: Optional[CommitName]) -> List[CommitName]:
        if name is not None:
            return [name]
        return [CommitReference(reference) for reference in self.all_references()]

    def iter_objects(self, name: Optional[CommitName] = None,
                     seen: Optional[Set[TaggedOid]] = None) -> Iterator[Object]:
        """
        Yield every object reachable from a commit, each once.

        No object comes before another it is reachable from: commits precede
        their ancestors, each commit is followed by its tree, and each tree
        precedes the entries it contains. With no name, walk from every
        reference.

        Args:
            name: Commit to start from, or None for all references
            seen: Ids to treat as already visited; updated in place
        """
        seen = set() if seen is None else seen
        for start in self._starting_names(name):
            yield from _reverse_postorder(self._start_commit(start), self._expand_object, seen)

    def traverse_objects(self, visitor: Callable[[Object], Any],
                         name: Optional[CommitName] = None) -> List[Any]:
        return [visitor(obj) for obj in self.iter_objects(name)]

    def walk_objects(self, visitor: Callable[[Object], Any],
                     name: Optional[CommitName] = None) -> None:
        for obj in self.iter_objects(name):
            visitor(obj)

    def missing_objects(self, have: Optional[CommitName], want: CommitName) -> List[Object]:
        """
        Compute the objects reachable from want but not from have.

        Args:
            have: Commit the receiver already has, if any
            want: Commit the receiver needs

        Returns:
            Objects in walk order: none before another it is reachable from
        """
        seen: Set[TaggedOid] = set()
        if have is not None:
            for _ in self.iter_objects(have, seen):
                pass
        return list(self.iter_objects(want, seen))

    # Pack files and remotes

    def build_pack_file(self, path: str, include: Sequence[TaggedOid]) -> str:
        raise UnsupportedOperation("building pack files")

    def build_pack_index(self, path: str, data: bytes) -> Tuple[str, str, str]:
        raise UnsupportedOperation("building pack indexes")

    def write_pack_file(self, path: str) -> None:
        raise UnsupportedOperation("writing pack files")

    def remote_fetch(self, uri: str, fetch_spec: str) -> None:
        raise UnsupportedOperation("fetching from remotes")


@dataclass
class RepositoryOptions:
    """Options used to open a repository."""
    path: str = ''
    is_bare: bool = True
    auto_create: bool = True

    @classmethod
    def from_config(cls, config) -> 'RepositoryOptions':
        """
        Build options from configuration.

        Reads [repository] path, bare and autocreate.

        Args:
            config: Config instance

        Returns:
            RepositoryOptions with defaults for missing keys
        """
        defaults = cls()
        return cls(
            path=config.get('repository', 'path', fallback=defaults.path),
            is_bare=config.get_bool('repository', 'bare', fallback=defaults.is_bare),
            auto_create=config.get_bool('repository', 'autocreate', fallback=defaults.auto_create),
        )


class RepositoryFactory(ABC):
    """
    Opens and closes repositories of one backend.

    Subclasses implement open_repository and close_repository; backends
    that need global setup override startup_backend and shutdown_backend.
    """

    @property
    def default_options(self) -> RepositoryOptions:
        return RepositoryOptions()

    @abstractmethod
    def open_repository(self, options: RepositoryOptions) -> Repository:
        """
        Open a repository.

        Raises:
            RepositoryNotExist: If it does not exist and auto_create is off
        """

    @abstractmethod
    def close_repository(self, repo: Repository) -> None:
        """Release a repository opened by this factory."""

    def startup_backend(self) -> None:
        pass

    def shutdown_backend(self) -> None:
        pass


@contextmanager
def with_backend_do(factory: RepositoryFactory):
    """Bracket a block with backend startup and shutdown."""
    factory.startup_backend()
    try:
        yield factory
    finally:
        factory.shutdown_backend()


@contextmanager
def open_repository(factory: RepositoryFactory, options: RepositoryOptions):
    """Open a repository for the duration of a block, closing it afterwards."""
    repo = factory.open_repository(options)
    logger.info("Opened repository at %s", options.path or '<default>')
    try:
        yield repo
    finally:
        factory.close_repository(repo)
        logger.info("Closed repository at %s", options.path or '<default>')


@contextmanager
def with_repository(factory: RepositoryFactory, path: str):
    """Open the repository at path with the factory's default options."""
    defaults = factory.default_options
    options = RepositoryOptions(path=path, is_bare=defaults.is_bare, auto_create=defaults.auto_create)
    with open_repository(factory, options) as repo:
        yield repo
