"""Core functionality for gitlib.

This module contains the core data structures:
- Object identifiers (Oid, tagged ids)
- Objects and object references (Blob, Tree, Commit, Tag, ObjRef)
- References and commit names
- The Repository capability interface
- Configuration management
- Hashing utilities for content-addressing backends

For tree staging and merge classification, see gitlib.operations
"""

from gitlib.core.errors import GitException
from gitlib.core.oid import (Oid, HexOid, TaggedOid, BlobOid, TreeOid, CommitOid,
                             TagOid, require_kind, copy_oid, copy_commit_oid)
from gitlib.core.objects import (ObjRef, ByOid, Known, Blob, BlobContents, BlobString,
                                 BlobStream, BlobSizedStream, BlobKind, TreeEntry,
                                 BlobEntry, SubtreeEntry, CommitEntry, Tree, Signature,
                                 Commit, Tag, Object, BlobObj, TreeObj, CommitObj, TagObj)
from gitlib.core.refs import (RefTarget, RefObj, RefSymbolic, Reference, CommitName,
                              CommitObjectId, CommitRefName, CommitReference,
                              commit_name_to_ref, copy_commit_name)
from gitlib.core.repository import (Repository, RepositoryFacts, RepositoryOptions,
                                    RepositoryFactory, with_backend_do, with_repository,
                                    open_repository)
from gitlib.core.config import Config, get_config

__all__ = [
    'GitException',
    'Oid', 'HexOid', 'TaggedOid', 'BlobOid', 'TreeOid', 'CommitOid', 'TagOid',
    'require_kind', 'copy_oid', 'copy_commit_oid',
    'ObjRef', 'ByOid', 'Known', 'Blob', 'BlobContents', 'BlobString', 'BlobStream',
    'BlobSizedStream', 'BlobKind', 'TreeEntry', 'BlobEntry', 'SubtreeEntry', 'CommitEntry',
    'Tree', 'Signature', 'Commit', 'Tag', 'Object', 'BlobObj', 'TreeObj', 'CommitObj', 'TagObj',
    'RefTarget', 'RefObj', 'RefSymbolic', 'Reference', 'CommitName', 'CommitObjectId',
    'CommitRefName', 'CommitReference', 'commit_name_to_ref', 'copy_commit_name',
    'Repository', 'RepositoryFacts', 'RepositoryOptions', 'RepositoryFactory',
    'with_backend_do', 'with_repository', 'open_repository',
    'Config', 'get_config',
]
