"""
Merge configuration.

All options default to the behaviour of a plain ``xliff-merge -i ... -d ...``
invocation.
"""

from dataclasses import dataclass, field
from typing import Sequence, Union

from .constants import OMIT_TARGET

# True/False, or OMIT_TARGET to skip target creation for new units
TargetsBlank = Union[bool, str]


@dataclass
class MergeOptions:
    """Options controlling how origin units are merged into the destination."""
    fuzzy_match: bool = True
    collapse_whitespace: bool = True
    reset_translation_state: bool = True
    source_language: bool = False
    replace_apostrophe: bool = False
    new_translation_targets_blank: TargetsBlank = False
    sync_targets_with_initial_state: bool = False
    # Raw document texts whose unit ids are suppressed from the origin
    exclude_files: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self):
        if self.new_translation_targets_blank not in (True, False, OMIT_TARGET):
            raise ValueError(
                f"Invalid new_translation_targets_blank: {self.new_translation_targets_blank!r} "
                f"(expected True, False or '{OMIT_TARGET}')"
            )

    @property
    def omit_new_targets(self) -> bool:
        return self.new_translation_targets_blank == OMIT_TARGET


def parse_targets_blank(value: str) -> TargetsBlank:
    """
    Convert a command-line value into a ``new_translation_targets_blank`` setting.

    Args:
        value: One of 'false', 'true' or 'omit' (case-insensitive)

    Returns:
        False, True or OMIT_TARGET

    Raises:
        ValueError: If the value is not recognized
    """
    normalized = value.strip().lower()
    if normalized == 'true':
        return True
    if normalized == 'false':
        return False
    if normalized == OMIT_TARGET:
        return OMIT_TARGET
    raise ValueError(f"Invalid value for new translation targets: '{value}'")
