"""Exception taxonomy for gitlib.

Every failure surfaced by the object model, the repository interface or the
tree staging engine is a subclass of GitException. The intermediate classes
group failures by kind so callers can catch a whole family at once:

- BackendError: the backend cannot or will not do what was asked
- RepositoryError: the repository itself is missing or unusable
- LookupFailed: an object, reference or tree entry does not exist
- CreateFailed: the backend rejected a new object or reference
- TreeError: structural problems while walking or staging trees
- OidError: identifier parsing and transplanting
"""

from typing import Optional


class GitException(Exception):
    """Base class for all gitlib errors."""


# Backend

class BackendError(GitException):
    """The backend failed or refused an operation."""


class UnsupportedOperation(BackendError):
    """The backend does not implement an optional capability."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Backend does not support {operation}")


class GitError(BackendError):
    """Generic error reported by the underlying git library."""


# Repository

class RepositoryError(GitException):
    """The repository cannot be used."""


class RepositoryNotExist(RepositoryError):
    def __init__(self, path: str = ''):
        self.path = path
        super().__init__(f"Repository does not exist: {path}" if path else "Repository does not exist")


class RepositoryInvalid(RepositoryError):
    def __init__(self, path: str = ''):
        self.path = path
        super().__init__(f"Repository is invalid: {path}" if path else "Repository is invalid")


class RepositoryCannotAccess(RepositoryError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot access repository: {reason}")


# Existence

class LookupFailed(GitException):
    """Something that was asked for does not exist."""

    what = 'object'

    def __init__(self, key: Optional[str] = None):
        self.key = key
        if key is None:
            super().__init__(f"{self.what.capitalize()} lookup failed")
        else:
            super().__init__(f"{self.what.capitalize()} not found: {key}")


class BlobLookupFailed(LookupFailed):
    what = 'blob'


class TreeLookupFailed(LookupFailed):
    what = 'tree'


class CommitLookupFailed(LookupFailed):
    what = 'commit'


class TagLookupFailed(LookupFailed):
    what = 'tag'


class ReferenceLookupFailed(LookupFailed):
    what = 'reference'


class TreeEntryLookupFailed(LookupFailed):
    what = 'tree entry'


class ObjectLookupFailed(LookupFailed):
    """No object matches the given identifier text.

    Attributes:
        key: The identifier text that was looked up
        length: Number of significant characters in the text
    """

    def __init__(self, key: str, length: Optional[int] = None):
        self.length = len(key) if length is None else length
        super().__init__(key)


# Creation

class CreateFailed(GitException):
    """The backend rejected a new object or reference."""


class BlobCreateFailed(CreateFailed):
    pass


class BlobEmptyCreateFailed(BlobCreateFailed):
    def __init__(self):
        super().__init__("Cannot create an empty blob")


class BlobEncodingUnknown(CreateFailed):
    def __init__(self, encoding: str):
        self.encoding = encoding
        super().__init__(f"Unknown blob encoding: {encoding}")


class TreeCreateFailed(CreateFailed):
    pass


class CommitCreateFailed(CreateFailed):
    pass


class TagCreateFailed(CreateFailed):
    pass


class ReferenceCreateFailed(CreateFailed):
    def __init__(self, name: str, reason: str = ''):
        self.name = name
        message = f"Cannot create reference {name}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ReferenceDeleteFailed(CreateFailed):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot delete reference {name}")


class ReferenceListingFailed(GitException):
    pass


class PushNotFastForward(GitException):
    """A reference update would discard commits on the destination."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Push to {name} is not a fast-forward")


# Trees

class TreeError(GitException):
    """Structural failure while walking or staging a tree."""


class TreeCannotTraverseBlob(TreeError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot traverse into blob at {path}")


class TreeCannotTraverseCommit(TreeError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot traverse into commit at {path}")


class TreeBuilderCreateFailed(TreeError):
    pass


class TreeBuilderInsertFailed(TreeError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot insert tree entry at {path}")


class TreeBuilderRemoveFailed(TreeError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot remove tree entry at {path}")


class TreeBuilderWriteFailed(TreeError):
    pass


class TreeUpdateFailed(TreeError):
    pass


class TreeWalkFailed(TreeError):
    pass


# Identifiers

class OidError(GitException):
    """Identifier parsing or transplanting failed."""


class OidParseFailed(OidError):
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Cannot parse object id: {text!r}")


class OidCopyFailed(OidError):
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Cannot copy object id {text} into destination repository")


class ObjectRefRequiresFullOid(OidError):
    pass


class RefCannotCreateFromPartialOid(OidError):
    pass


class TranslationException(OidError):
    pass


# Limits

class QuotaHardLimitExceeded(GitException):
    """A declared quota was exceeded.

    Attributes:
        limit: The configured limit
        observed: The value that exceeded it
    """

    def __init__(self, limit: int, observed: int):
        self.limit = limit
        self.observed = observed
        super().__init__(f"Quota exceeded: {observed} > {limit}")


# Merging

class UnreachableMergeStatus(GitException, ValueError):
    """The classifier was called with a pair that cannot arise from a diff."""

    def __init__(self, left, right):
        self.left = left
        self.right = right
        super().__init__(f"Unreachable modification pair: {left.value} / {right.value}")
