"""Tree staging engine tests."""

import pytest

from gitlib.core.errors import (TreeBuilderWriteFailed, TreeCannotTraverseBlob,
                                TreeCannotTraverseCommit, TreeUpdateFailed)
from gitlib.core.objects import (BlobEntry, BlobKind, BlobString, ByOid,
                                 CommitEntry, SubtreeEntry)
from gitlib.operations.tree import (TreeBuilder, TreeEntryDeleted,
                                    TreeEntryMutated, TreeEntryNotFound,
                                    TreeEntryPersistent, TreeScope,
                                    create_tree, from_modify_tree_result,
                                    mutate_tree, mutate_tree_ref,
                                    to_modify_tree_result, with_new_tree,
                                    with_tree)
from memory_backend import MemoryRepository


def _snapshot(builder):
    return dict(builder._entries), dict(builder._children), builder.is_dirty


class TestModifyTreeResult:
    """Tests for the edit verdict vocabulary."""

    def test_equality(self, blobs):
        entry = BlobEntry(blobs['hello'])
        assert TreeEntryMutated(entry) == TreeEntryMutated(entry)
        assert TreeEntryMutated(entry) != TreeEntryPersistent(entry)
        assert TreeEntryNotFound() != TreeEntryDeleted()

    def test_conversions(self, blobs):
        entry = BlobEntry(blobs['hello'])
        assert from_modify_tree_result(TreeEntryPersistent(entry)) == entry
        assert from_modify_tree_result(TreeEntryDeleted()) is None
        assert to_modify_tree_result(TreeEntryPersistent, None) == TreeEntryNotFound()
        assert to_modify_tree_result(TreeEntryPersistent, entry) == TreeEntryPersistent(entry)


class TestTreeBuilder:
    """Tests for the staged path update primitive."""

    def test_fresh_put_and_write(self, repo, blobs):
        builder = repo.new_tree_builder()
        entry = builder.update('a/b/c.txt', True, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))
        assert entry == BlobEntry(blobs['hello'])

        tree = builder.write()
        assert repo.get_tree_entry(tree, 'a/b/c.txt') == BlobEntry(blobs['hello'])
        assert repo.exists_object(tree.oid.untag())

    def test_empty_path_rejected(self, repo):
        builder = repo.new_tree_builder()
        with pytest.raises(TreeUpdateFailed):
            builder.update('', True, lambda _: TreeEntryDeleted())

    def test_decide_sees_current_entry(self, repo, sample_tree, blobs):
        seen = []
        builder = repo.new_tree_builder(sample_tree)

        def decide(entry):
            seen.append(entry)
            return to_modify_tree_result(TreeEntryPersistent, entry)

        builder.update('src/hello.txt', False, decide)
        builder.update('src/missing.txt', False, decide)
        assert seen == [BlobEntry(blobs['hello']), None]

    def test_walk_without_change_leaves_builder_untouched(self, repo, sample_tree):
        """Test that persistent and not-found walks attach nothing."""
        builder = repo.new_tree_builder(sample_tree)
        before = _snapshot(builder)

        builder.update('src/bin/run.sh', False, lambda e: TreeEntryPersistent(e))
        builder.update('src/new/deep/file', True, lambda _: TreeEntryNotFound())
        builder.update('src/bin/absent', True, lambda _: TreeEntryDeleted())

        assert _snapshot(builder) == before
        assert builder.write() is sample_tree

    def test_auto_create_gating(self, repo, blobs):
        """Test that a missing parent without auto-create is not-found."""
        builder = repo.new_tree_builder()
        mutate = lambda _: TreeEntryMutated(BlobEntry(blobs['hello']))
        before = _snapshot(builder)

        assert builder.update('dir/file.txt', False, mutate) is None
        assert _snapshot(builder) == before

        assert builder.update('dir/file.txt', True, mutate) == BlobEntry(blobs['hello'])
        tree = builder.write()
        assert repo.get_tree_entry(tree, 'dir/file.txt') == BlobEntry(blobs['hello'])

    def test_cannot_traverse_blob(self, repo, sample_tree, blobs):
        builder = repo.new_tree_builder(sample_tree)
        with pytest.raises(TreeCannotTraverseBlob) as exc_info:
            builder.update('src/hello.txt/x', True, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))
        assert exc_info.value.path == 'src/hello.txt'

    def test_cannot_traverse_commit(self, repo, history, blobs):
        def fill(scope):
            scope.put_commit('vendor/lib', history[0].oid)

        tree = create_tree(repo, fill).resolve(repo)
        builder = repo.new_tree_builder(tree)
        with pytest.raises(TreeCannotTraverseCommit):
            builder.update('vendor/lib/file', True, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))

    def test_mutated_supersedes(self, repo, sample_tree, blobs):
        """Test that a put replaces a subtree with a blob and back."""
        builder = repo.new_tree_builder(sample_tree)
        builder.update('src', False, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))
        builder.update('src', False, lambda _: TreeEntryMutated(BlobEntry(blobs['readme'])))
        tree = builder.write()
        assert tree.entries['src'] == BlobEntry(blobs['readme'])

    def test_put_replaces_pending_subtree(self, repo, blobs):
        builder = repo.new_tree_builder()
        builder.update('a/x', True, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))
        builder.update('a', True, lambda _: TreeEntryMutated(BlobEntry(blobs['readme'])))
        tree = builder.write()
        assert dict(tree.entries) == {'a': BlobEntry(blobs['readme'])}

    def test_get_on_pending_subtree(self, repo, blobs):
        """Test that a pending subtree reports the id it would be written as."""
        builder = repo.new_tree_builder()
        builder.update('a/x', True, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))
        entry = builder.update('a', False, lambda e: TreeEntryPersistent(e))
        tree = builder.write()
        assert entry == tree.entries['a']
        assert isinstance(entry, SubtreeEntry)

    def test_prunes_emptied_subtrees(self, repo, sample_tree):
        """Test that removing the last entry of a subtree removes the subtree."""
        builder = repo.new_tree_builder(sample_tree)
        builder.update('src/bin/run.sh', False, lambda _: TreeEntryDeleted())
        tree = builder.write()
        assert 'bin' not in repo.lookup_tree(tree.entries['src'].oid)
        assert repo.get_tree_entry(tree, 'src/hello.txt') is not None

    def test_prunes_recursively(self, repo, blobs):
        builder = repo.new_tree_builder()
        builder.update('a/b/c/d.txt', True, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))
        builder.update('a/b/c/d.txt', False, lambda _: TreeEntryDeleted())
        tree = builder.write()
        assert len(tree) == 0

    def test_write_failure_stores_nothing(self):
        """Test that a rejected batch leaves no new tree behind."""
        repo = MemoryRepository(max_objects=2)
        blob = repo.create_blob(BlobString(b"x"))
        before = dict(repo.objects)

        builder = repo.new_tree_builder()
        builder.update('a/b/c.txt', True, lambda _: TreeEntryMutated(BlobEntry(blob)))
        with pytest.raises(TreeBuilderWriteFailed):
            builder.write()
        assert repo.objects == before

    def test_write_is_idempotent(self, repo, blobs):
        builder = repo.new_tree_builder()
        builder.update('x/y', True, lambda _: TreeEntryMutated(BlobEntry(blobs['hello'])))
        assert builder.write().oid == builder.write().oid


class TestTreeScope:
    """Tests for the get/put/drop vocabulary and scope entry points."""

    def test_noop_scope_keeps_seed(self, repo, sample_tree):
        """Test that only reading and dropping absent paths keeps the seed id."""
        def body(scope):
            scope.get_entry('src/hello.txt')
            scope.get_entry('nope/nothing')
            scope.drop_entry('src/missing.txt')
            scope.drop_entry('absent/dir/file')

        assert mutate_tree(repo, sample_tree, body).oid == sample_tree.oid

    def test_drop_absent_is_noop(self, repo):
        def body(scope):
            scope.drop_entry('never/there')

        tree = create_tree(repo, body).resolve(repo)
        assert len(tree) == 0

    def test_path_isolation(self, repo, sample_tree, blobs):
        """Test that editing src/bin leaves sibling entries untouched."""
        def fill(scope):
            scope.put_blob('docs/guide.md', blobs['readme'])
            scope.put_blob('src/bin/run.sh', blobs['script'])

        base = create_tree(repo, fill).resolve(repo)
        docs_before = base.entries['docs']

        def body(scope):
            scope.put_blob('src/bin/tool.sh', blobs['script'], BlobKind.EXECUTABLE)

        tree = mutate_tree(repo, base, body).resolve(repo)
        assert tree.entries['docs'] == docs_before
        assert repo.get_tree_entry(tree, 'src/bin/tool.sh').mode == '100755'

    def test_with_tree_returns_value(self, repo, sample_tree):
        value, ref = with_tree(repo, sample_tree, lambda scope: scope.get_entry('README.md'))
        assert isinstance(value, BlobEntry)
        assert ref.oid == sample_tree.oid

    def test_with_new_tree(self, repo, blobs):
        def body(scope):
            scope.put_blob('f', blobs['hello'])
            return 'done'

        value, ref = with_new_tree(repo, body)
        assert value == 'done'
        assert list(ref.resolve(repo)) == ['f']

    def test_mutate_tree_ref(self, repo, sample_tree, blobs):
        def body(scope):
            scope.drop_entry('README.md')

        ref = mutate_tree_ref(repo, ByOid(sample_tree.oid), body)
        assert 'README.md' not in ref.resolve(repo)
        assert 'README.md' in repo.lookup_tree(sample_tree.oid)

    def test_put_tree_and_commit(self, repo, sample_tree, history):
        def body(scope):
            scope.put_tree('copy', sample_tree.oid)
            scope.put_commit('sub', history[0].oid)

        tree = create_tree(repo, body).resolve(repo)
        assert tree.entries['copy'] == SubtreeEntry(sample_tree.oid)
        assert tree.entries['sub'] == CommitEntry(history[0].oid)
        assert repo.get_tree_entry(tree, 'copy/src/hello.txt') is not None

    def test_current_tree_keeps_scope_open(self, repo, blobs):
        def body(scope):
            scope.put_blob('a', blobs['hello'])
            first = scope.current_tree()
            scope.put_blob('b', blobs['readme'])
            return first

        first, ref = with_new_tree(repo, body)
        assert list(first) == ['a']
        assert list(ref.resolve(repo)) == ['a', 'b']

    def test_scope_closed_after_write(self, repo, blobs):
        scope = TreeScope(repo, TreeBuilder(repo))
        scope.put_blob('a', blobs['hello'])
        scope.write()
        with pytest.raises(TreeUpdateFailed):
            scope.put_blob('b', blobs['hello'])

    def test_concurrent_scopes_are_independent(self, repo, sample_tree, blobs):
        """Test that two scopes seeded from one tree do not see each other's edits."""
        left = TreeScope(repo, repo.new_tree_builder(sample_tree))
        right = TreeScope(repo, repo.new_tree_builder(sample_tree))
        left.put_blob('src/left.txt', blobs['hello'])
        right.drop_entry('src/hello.txt')

        left_tree = left.write().resolve(repo)
        right_tree = right.write().resolve(repo)

        assert repo.get_tree_entry(left_tree, 'src/hello.txt') is not None
        assert repo.get_tree_entry(right_tree, 'src/left.txt') is None
        assert 'hello.txt' in repo.lookup_tree(sample_tree.entries['src'].oid)
