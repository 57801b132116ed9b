"""Object model tests."""

import pytest
from datetime import datetime, timezone

from gitlib.core.errors import BlobLookupFailed
from gitlib.core.objects import (BlobEntry, BlobKind, BlobSizedStream,
                                 BlobStream, BlobString, ByOid, CommitEntry,
                                 CommitObj, Known, Signature, SubtreeEntry,
                                 Tree, TreeObj, blob_entry, blob_ref_oid,
                                 commit_ref_oid, get_tree_entry_oid,
                                 object_for, object_oid, resolve_tree_ref,
                                 tree_ref, tree_ref_oid)
from gitlib.core.oid import BlobOid, CommitOid, HexOid, TaggedOid, TreeOid


def _oid(byte):
    return HexOid(bytes([byte]) * 20)


class TestBlobContents:
    """Tests for the blob contents variants."""

    def test_string_equality(self):
        """Test that in-memory contents compare by value."""
        assert BlobString(b"abc") == BlobString(b"abc")
        assert BlobString(b"abc") != BlobString(b"abd")

    def test_streams_never_equal(self):
        """Test that streams are never equal, even to themselves."""
        stream = BlobStream(lambda: [b"abc"])
        assert stream != stream
        assert stream != BlobString(b"abc")
        assert BlobString(b"abc") != stream
        assert BlobSizedStream(lambda: [b"abc"], 3) != BlobSizedStream(lambda: [b"abc"], 3)

    def test_stream_is_pulled_lazily(self):
        """Test that the source is not called until contents are read."""
        calls = []

        def source():
            calls.append(1)
            return [b"a", b"b", b"c"]

        stream = BlobStream(source)
        assert calls == []
        assert stream.read() == b"abc"
        assert calls == [1]

    def test_sized_stream_keeps_size(self):
        stream = BlobSizedStream(lambda: iter([b"12", b"345"]), 5)
        assert stream.size == 5
        assert list(stream.chunks()) == [b"12", b"345"]


class TestTreeEntries:
    """Tests for tree entry kinds and modes."""

    def test_blob_modes(self):
        """Test git modes for each blob kind."""
        oid = BlobOid(_oid(1))
        assert BlobEntry(oid).mode == '100644'
        assert BlobEntry(oid, BlobKind.EXECUTABLE).mode == '100755'
        assert BlobEntry(oid, BlobKind.SYMLINK).mode == '120000'
        assert BlobEntry(oid).type == 'blob'

    def test_subtree_and_commit_modes(self):
        assert SubtreeEntry(TreeOid(_oid(2))).mode == '040000'
        assert CommitEntry(CommitOid(_oid(3))).mode == '160000'

    def test_entry_requires_matching_kind(self):
        """Test that entries reject ids of the wrong kind."""
        with pytest.raises(TypeError):
            BlobEntry(TreeOid(_oid(1)))
        with pytest.raises(TypeError):
            SubtreeEntry(BlobOid(_oid(1)))
        with pytest.raises(TypeError):
            CommitEntry(TreeOid(_oid(1)))

    def test_entry_equality(self):
        """Test that entries compare by kind, id and blob kind."""
        oid = BlobOid(_oid(1))
        assert blob_entry(oid) == BlobEntry(oid)
        assert BlobEntry(oid) != BlobEntry(oid, BlobKind.EXECUTABLE)
        assert SubtreeEntry(TreeOid(_oid(1))) != CommitEntry(CommitOid(_oid(1)))

    def test_get_tree_entry_oid(self):
        assert get_tree_entry_oid(BlobEntry(BlobOid(_oid(4)))) == _oid(4)


class TestTree:
    """Tests for the immutable tree object."""

    def test_entries_sorted(self):
        """Test that entries iterate in name order."""
        tree = Tree(TreeOid(_oid(9)), {
            'b': BlobEntry(BlobOid(_oid(1))),
            'a': BlobEntry(BlobOid(_oid(2))),
            'c': SubtreeEntry(TreeOid(_oid(3))),
        })
        assert list(tree) == ['a', 'b', 'c']
        assert len(tree) == 3
        assert 'a' in tree

    def test_entries_read_only(self):
        """Test that a tree's entries cannot be mutated."""
        tree = Tree(TreeOid(_oid(9)), {})
        with pytest.raises(TypeError):
            tree.entries['x'] = BlobEntry(BlobOid(_oid(1)))


class TestSignature:
    """Tests for signatures."""

    def test_requires_timezone(self):
        """Test that naive timestamps are rejected."""
        with pytest.raises(ValueError):
            Signature("A", "a@example.com", datetime(2024, 1, 1))

    def test_default(self):
        """Test the default signature: empty identity at the epoch."""
        sig = Signature.default()
        assert sig.name == ''
        assert sig.email == ''
        assert sig.when == datetime(1970, 1, 1, tzinfo=timezone.utc)


class _PackedTreeOid(TreeOid):
    """Tree id specialised by a backend."""
    __slots__ = ()


class _LookupRecorder:
    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        return lambda oid: self.calls.append((name, oid)) or name


class TestObjRef:
    """Tests for lazy and eager object references."""

    def test_by_oid_requires_tagged_id(self):
        with pytest.raises(TypeError):
            ByOid(_oid(1))

    def test_by_oid_resolves_with_one_lookup(self, repo, blobs):
        """Test that each resolve is exactly one lookup, not cached."""
        ref = ByOid(blobs['hello'])
        repo.lookups.clear()

        first = ref.resolve(repo)
        second = ref.resolve(repo)

        assert first.contents.read() == b"Hello, World!\n"
        assert second.oid == blobs['hello']
        assert repo.lookups == [blobs['hello'], blobs['hello']]

    def test_known_does_not_touch_repository(self, repo, sample_tree):
        """Test that Known resolves without any lookup."""
        ref = tree_ref(sample_tree)
        repo.lookups.clear()
        assert ref.resolve(repo) is sample_tree
        assert repo.lookups == []
        assert ref.oid == sample_tree.oid

    def test_resolve_missing_blob(self, repo):
        with pytest.raises(BlobLookupFailed):
            ByOid(BlobOid(_oid(7))).resolve(repo)

    def test_kind_checked_accessors(self, sample_tree):
        """Test that kind-specific accessors reject other kinds."""
        ref = Known(sample_tree)
        assert tree_ref_oid(ref) == sample_tree.oid
        with pytest.raises(TypeError):
            blob_ref_oid(ref)
        with pytest.raises(TypeError):
            commit_ref_oid(ref)

    def test_resolve_tree_ref(self, repo, sample_tree):
        assert resolve_tree_ref(repo, ByOid(sample_tree.oid)).entries == sample_tree.entries

    def test_by_oid_dispatches_on_kind_subclass(self):
        """Test that a subclass of a tagged id kind resolves like its kind."""
        oid = _PackedTreeOid(_oid(3))
        recorder = _LookupRecorder()
        assert ByOid(oid).resolve(recorder) == 'lookup_tree'
        assert recorder.calls == [('lookup_tree', oid)]

    def test_by_oid_rejects_untyped_id(self):
        with pytest.raises(TypeError):
            ByOid(TaggedOid(_oid(3))).resolve(_LookupRecorder())


class TestObject:
    """Tests for the generic object wrapper."""

    def test_object_for(self):
        obj = object_for(TreeOid(_oid(5)))
        assert isinstance(obj, TreeObj)
        assert object_oid(obj) == _oid(5)

    def test_object_requires_matching_ref(self):
        with pytest.raises(TypeError):
            CommitObj(ByOid(TreeOid(_oid(5))))

    def test_object_for_kind_subclass(self):
        obj = object_for(_PackedTreeOid(_oid(5)))
        assert isinstance(obj, TreeObj)
        assert obj.oid == _PackedTreeOid(_oid(5))

    def test_object_for_untyped_id(self):
        with pytest.raises(TypeError):
            object_for(TaggedOid(_oid(5)))
