"""
Version ordering utilities for automodsync.

The reconciler needs a total order over module versions: the version found
in the package repository is compared against the version already imported
into each Automation account.

Public API
----------
version_key : function
    Sortable key for any version string.
compare_versions : function
    Compare two version strings, returning -1, 0, or 1.
is_newer : function
    Check whether a version is strictly newer than another (or than None).

Examples
--------
    >>> from automodsync.versioning import compare_versions, is_newer
    >>> compare_versions("2.0.0", "1.9.9")
    1
    >>> compare_versions("1.2", "1.2.0")
    0
    >>> is_newer("1.0.0", "1.0.0-preview1")
    True
"""

from .keys import compare_versions, is_newer, version_key

__all__ = ["compare_versions", "is_newer", "version_key"]
