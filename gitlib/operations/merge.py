"""Merge classification for gitlib.

Diffing each side of a merge against the common ancestor yields one
ModificationKind per path and side. merge_status combines a left/right pair
into a MergeStatus. The left/right roles are kept in the status name, so
(MODIFIED, DELETED) and (DELETED, MODIFIED) give different labels.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Tuple

from gitlib.core.errors import UnreachableMergeStatus
from gitlib.core.oid import CommitOid, copy_commit_oid


class _Named(Enum):
    @classmethod
    def parse(cls, text: str):
        """
        Look up a member by name or label, ignoring case and separators.

        Accepts 'BothModified', 'both_modified' and 'BOTH-MODIFIED' alike.

        Raises:
            ValueError: If no member matches
        """
        key = text.replace('_', '').replace('-', '').lower()
        for member in cls:
            if member.value.lower() == key or member.name.replace('_', '').lower() == key:
                return member
        raise ValueError(f"Unknown {cls.__name__}: {text}")


class ModificationKind(_Named):
    """How a path changed on one side relative to the common ancestor."""
    UNCHANGED = 'Unchanged'
    MODIFIED = 'Modified'
    ADDED = 'Added'
    DELETED = 'Deleted'
    TYPE_CHANGED = 'TypeChanged'


class MergeStatus(_Named):
    NO_CONFLICT = 'NoConflict'
    BOTH_MODIFIED = 'BothModified'
    LEFT_MODIFIED_RIGHT_DELETED = 'LeftModifiedRightDeleted'
    LEFT_DELETED_RIGHT_MODIFIED = 'LeftDeletedRightModified'
    BOTH_ADDED = 'BothAdded'
    LEFT_MODIFIED_RIGHT_TYPE_CHANGED = 'LeftModifiedRightTypeChanged'
    LEFT_TYPE_CHANGED_RIGHT_MODIFIED = 'LeftTypeChangedRightModified'
    LEFT_DELETED_RIGHT_TYPE_CHANGED = 'LeftDeletedRightTypeChanged'
    LEFT_TYPE_CHANGED_RIGHT_DELETED = 'LeftTypeChangedRightDeleted'
    BOTH_TYPE_CHANGED = 'BothTypeChanged'

    @property
    def is_conflict(self) -> bool:
        return self not in (MergeStatus.NO_CONFLICT, MergeStatus.BOTH_ADDED)


_U = ModificationKind.UNCHANGED
_M = ModificationKind.MODIFIED
_A = ModificationKind.ADDED
_D = ModificationKind.DELETED
_T = ModificationKind.TYPE_CHANGED

# Pairs involving ADDED are absent unless both sides added: ADDED means the
# ancestor lacked the path, so the other side cannot be anything else.
MERGE_TABLE: Mapping[Tuple[ModificationKind, ModificationKind], MergeStatus] = {
    (_U, _U): MergeStatus.NO_CONFLICT,
    (_U, _M): MergeStatus.NO_CONFLICT,
    (_U, _D): MergeStatus.NO_CONFLICT,
    (_U, _T): MergeStatus.NO_CONFLICT,

    (_M, _U): MergeStatus.NO_CONFLICT,
    (_M, _M): MergeStatus.BOTH_MODIFIED,
    (_M, _D): MergeStatus.LEFT_MODIFIED_RIGHT_DELETED,
    (_M, _T): MergeStatus.LEFT_MODIFIED_RIGHT_TYPE_CHANGED,

    (_A, _A): MergeStatus.BOTH_ADDED,

    (_D, _U): MergeStatus.NO_CONFLICT,
    (_D, _M): MergeStatus.LEFT_DELETED_RIGHT_MODIFIED,
    (_D, _D): MergeStatus.NO_CONFLICT,
    (_D, _T): MergeStatus.LEFT_DELETED_RIGHT_TYPE_CHANGED,

    (_T, _U): MergeStatus.NO_CONFLICT,
    (_T, _M): MergeStatus.LEFT_TYPE_CHANGED_RIGHT_MODIFIED,
    (_T, _D): MergeStatus.LEFT_TYPE_CHANGED_RIGHT_DELETED,
    (_T, _T): MergeStatus.BOTH_TYPE_CHANGED,
}


def is_reachable(left: ModificationKind, right: ModificationKind) -> bool:
    return (left, right) in MERGE_TABLE


def merge_status(left: ModificationKind, right: ModificationKind) -> MergeStatus:
    """
    Classify a pair of per-path modifications.

    Args:
        left: Change on the left side relative to the ancestor
        right: Change on the right side relative to the ancestor

    Returns:
        MergeStatus: Disposition for the path

    Raises:
        UnreachableMergeStatus: If the pair cannot arise from one ancestor,
            i.e. ADDED paired with anything but ADDED
    """
    try:
        return MERGE_TABLE[(left, right)]
    except KeyError:
        raise UnreachableMergeStatus(left, right) from None


def classify_paths(changes: Mapping[str, Tuple[ModificationKind, ModificationKind]]) -> Dict[str, MergeStatus]:
    """Apply merge_status to every path of a left/right classification map."""
    return {path: merge_status(left, right) for path, (left, right) in changes.items()}


@dataclass
class MergeSuccess:
    """Merge produced a commit without conflicts."""
    commit: CommitOid

    def __repr__(self) -> str:
        return f"MergeSuccess({self.commit.render()[:7]})"


@dataclass
class MergeConflicted:
    """Merge produced a commit, but some paths conflict."""
    commit: CommitOid
    head_left: CommitOid
    head_right: CommitOid
    conflicts: Dict[str, Tuple[ModificationKind, ModificationKind]] = field(default_factory=dict)

    def statuses(self) -> Dict[str, MergeStatus]:
        return classify_paths(self.conflicts)

    def conflicting_paths(self) -> List[str]:
        """Paths whose status is an actual conflict, sorted."""
        return sorted(path for path, status in self.statuses().items() if status.is_conflict)

    def __repr__(self) -> str:
        return (f"MergeConflicted(commit={self.commit.render()[:7]}, "
                f"left={self.head_left.render()[:7]}, right={self.head_right.render()[:7]}, "
                f"conflicts={len(self.conflicts)})")


def copy_conflict(result, dest):
    """
    Transplant a merge result into another repository.

    Commit ids go through the text round-trip; conflicts are copied as-is.

    Args:
        result: MergeSuccess or MergeConflicted from the source repository
        dest: Destination repository

    Returns:
        Equivalent merge result valid in dest
    """
    if isinstance(result, MergeSuccess):
        return MergeSuccess(copy_commit_oid(result.commit, dest))
    if isinstance(result, MergeConflicted):
        return MergeConflicted(
            commit=copy_commit_oid(result.commit, dest),
            head_left=copy_commit_oid(result.head_left, dest),
            head_right=copy_commit_oid(result.head_right, dest),
            conflicts=dict(result.conflicts),
        )
    raise TypeError(f"Not a merge result: {result!r}")
