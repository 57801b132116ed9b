"""Operations module for gitlib.

This module contains the algorithmic parts built on the Repository interface:
- Tree mutation staging (builders and scopes)
- Merge classification
- Pushing commits between repositories
"""

from gitlib.operations.tree import (TreeBuilder, TreeScope, ModifyTreeResult,
                                    TreeEntryNotFound, TreeEntryDeleted,
                                    TreeEntryPersistent, TreeEntryMutated,
                                    with_tree, with_tree_ref, mutate_tree,
                                    mutate_tree_ref, with_new_tree, create_tree)
from gitlib.operations.merge import (ModificationKind, MergeStatus, merge_status,
                                     MergeSuccess, MergeConflicted, copy_conflict)
from gitlib.operations.push import push_commit

__all__ = [
    'TreeBuilder', 'TreeScope', 'ModifyTreeResult', 'TreeEntryNotFound',
    'TreeEntryDeleted', 'TreeEntryPersistent', 'TreeEntryMutated',
    'with_tree', 'with_tree_ref', 'mutate_tree', 'mutate_tree_ref',
    'with_new_tree', 'create_tree',
    'ModificationKind', 'MergeStatus', 'merge_status',
    'MergeSuccess', 'MergeConflicted', 'copy_conflict',
    'push_commit',
]
