"""gitlib - a backend-agnostic git object model and tree mutation engine."""

__version__ = '0.1.0'
__author__ = 'Flambeau Iriho'
__email__ = 'irihoflambeau@gmail.com'

from gitlib.core.repository import Repository
from gitlib.core.objects import Blob, Tree, Commit, Tag
from gitlib.operations.tree import mutate_tree, create_tree
from gitlib.operations.merge import ModificationKind, MergeStatus, merge_status

__all__ = [
    'Repository',
    'Blob',
    'Tree',
    'Commit',
    'Tag',
    'mutate_tree',
    'create_tree',
    'ModificationKind',
    'MergeStatus',
    'merge_status',
]
