"""
xliff-merge: update translated XLIFF 1.2 / 2.0 files from a fresh extraction.

Units are matched by id and, failing that, by source text similarity; translator
work in the destination is kept while sources, membership and metadata follow
the origin.
"""

from .errors import MalformedUnitError, MissingContainerError, UnsupportedVersionError, XliffMergeError
from .merge import MergeResult, describe, merge, merge_with_id_mapping
from .options import MergeOptions

__version__ = "0.1.0"

__all__ = [
    'MergeOptions',
    'MergeResult',
    'merge',
    'merge_with_id_mapping',
    'describe',
    'XliffMergeError',
    'MalformedUnitError',
    'MissingContainerError',
    'UnsupportedVersionError',
]
