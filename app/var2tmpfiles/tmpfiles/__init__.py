"""Translation of /var content into systemd tmpfiles.d entries.

This package provides the tmpfiles.d path codec and line parser, the
bookkeeping of previously generated files, the recursive tree converter
and the run entry points that tie them together.
"""

from var2tmpfiles.tmpfiles.converter import TreeConverter
from var2tmpfiles.tmpfiles.entry import tmpfiles_entry_get_path, translate_to_tmpfiles_d
from var2tmpfiles.tmpfiles.errors import (
    DepthLimitExceededError,
    GeneratedFileExistsError,
    GroupNotFoundError,
    IdentityError,
    MalformedTmpfilesEntryError,
    MalformedTmpfilesPathError,
    MissingTmpfilesDirError,
    NonUtf8GroupError,
    NonUtf8UserError,
    PreconditionError,
    TmpfilesError,
    TmpfilesIOError,
    UserNotFoundError,
    VarRunNotSymlinkError,
)
from var2tmpfiles.tmpfiles.escape import canonicalize_escape_path, escape_path, unescape_path
from var2tmpfiles.tmpfiles.generation import generated_path, read_tmpfiles
from var2tmpfiles.tmpfiles.identity import Identities, IdentitySnapshot, resolve_owner
from var2tmpfiles.tmpfiles.models import (
    Directory,
    FileMeta,
    Symlink,
    TmpfilesGeneration,
    TmpfilesResult,
    TmpfilesWrittenResult,
    Unsupported,
)
from var2tmpfiles.tmpfiles.rootfs import RootDir
from var2tmpfiles.tmpfiles.run import (
    convert_var_to_tmpfiles_current_root,
    find_missing_tmpfiles,
    find_missing_tmpfiles_current_root,
    var_to_tmpfiles,
)

__all__ = [
    "DepthLimitExceededError",
    "Directory",
    "FileMeta",
    "GeneratedFileExistsError",
    "GroupNotFoundError",
    "Identities",
    "IdentityError",
    "IdentitySnapshot",
    "MalformedTmpfilesEntryError",
    "MalformedTmpfilesPathError",
    "MissingTmpfilesDirError",
    "NonUtf8GroupError",
    "NonUtf8UserError",
    "PreconditionError",
    "RootDir",
    "Symlink",
    "TmpfilesError",
    "TmpfilesGeneration",
    "TmpfilesIOError",
    "TmpfilesResult",
    "TmpfilesWrittenResult",
    "TreeConverter",
    "Unsupported",
    "UserNotFoundError",
    "VarRunNotSymlinkError",
    "canonicalize_escape_path",
    "convert_var_to_tmpfiles_current_root",
    "escape_path",
    "find_missing_tmpfiles",
    "find_missing_tmpfiles_current_root",
    "generated_path",
    "read_tmpfiles",
    "resolve_owner",
    "tmpfiles_entry_get_path",
    "translate_to_tmpfiles_d",
    "unescape_path",
    "var_to_tmpfiles",
]
