"""
Merge orchestration.

Drives a whole merge: parse the documents, match origin units to destination
units by id and then by source similarity, update or create units, delete
the units that disappeared and serialize the result with the destination's
original prolog.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from lxml import etree

from .constants import DEFAULT_TARGET_LANGUAGE, DEFAULT_XML_DECLARATION
from .errors import MissingContainerError, XliffMergeError
from .options import MergeOptions
from .reconcile import UnitReconciler
from .similarity import assign_matches
from .tree import (
    append_child,
    detect_newline,
    child_named,
    insert_after,
    is_whitespace,
    parse_document,
    preceding_text,
    remove_element,
    serialize_document,
    split_envelope,
)
from .versions import XliffVersion, get_version

logger = logging.getLogger("xliff-merge")

# Locale suffix in a file name, e.g. messages.fr-CH.xlf -> fr-CH
LOCALE_SUFFIX_PATTERN = re.compile(r'\.([a-zA-Z]{2,3}(?:[-_][a-zA-Z0-9]{2,8})*)\.[^./\\]+$')

Origin = Union[str, Sequence[str]]


@dataclass
class MergeResult:
    """Merged document text plus the ids renamed by fuzzy matching."""
    output: str
    id_mapping: Dict[str, str] = field(default_factory=dict)
    stats: Dict[str, int] = field(default_factory=dict)


def infer_target_language(file_name: Optional[str]) -> str:
    """
    Guess the target language from a locale suffix in a file name.

    Args:
        file_name: Destination file name or path, e.g. 'messages.fr-CH.xlf'

    Returns:
        The locale code, or DEFAULT_TARGET_LANGUAGE if none is present
    """
    if file_name:
        match = LOCALE_SUFFIX_PATTERN.search(file_name)
        if match:
            return match.group(1)
    return DEFAULT_TARGET_LANGUAGE


def build_skeleton(origin_root: etree._Element, version: XliffVersion, target_language: str) -> etree._Element:
    """
    Create an empty destination document shaped like the origin.

    The root and the container path (``file``, plus ``body`` for 1.2) copy
    the origin's attributes; the source language comes from the origin and
    the target language is set to ``target_language``. Elements are indented
    by two spaces per level.
    """
    root = etree.Element(origin_root.tag, nsmap=origin_root.nsmap)
    for key, value in origin_root.attrib.items():
        root.set(key, value)

    parent, origin_parent = root, origin_root
    for depth, name in enumerate(version.container_path, start=1):
        origin_child = child_named(origin_parent, name) if origin_parent is not None else None
        tag = origin_child.tag if origin_child is not None else f'{{{version.namespace}}}{name}'
        child = etree.SubElement(parent, tag)
        if origin_child is not None:
            for key, value in origin_child.attrib.items():
                child.set(key, value)
        parent.text = '\n' + '  ' * depth
        child.tail = '\n' + '  ' * (depth - 1)
        parent, origin_parent = child, origin_child
    parent.text = '\n' + '  ' * len(version.container_path)

    source_language, _ = version.get_languages(origin_root)
    version.set_languages(root, source_language, target_language)
    return root


def _exclusion_ids(exclude_files: Iterable[str], version: XliffVersion) -> Set[str]:
    excluded: Set[str] = set()
    for text in exclude_files:
        root = parse_document(text)
        excluded.update(version.unit_id(unit) for unit in version.units(root))
    return excluded


def _parse_origins(origin: Origin) -> Tuple[XliffVersion, List[etree._Element]]:
    texts = [origin] if isinstance(origin, str) else list(origin)
    if not texts:
        raise ValueError("At least one origin document is required")
    roots = [parse_document(text) for text in texts]
    version = get_version(roots[0])
    for root in roots[1:]:
        other = get_version(root)
        if other is not version:
            raise XliffMergeError(
                f"Origin documents mix XLIFF versions {version.version} and {other.version}"
            )
    return version, roots


def _place_new_unit(
    container: etree._Element,
    unit: etree._Element,
    origin_unit: etree._Element,
    version: XliffVersion,
) -> None:
    """Append a created unit after the last destination unit, indented like it."""
    existing = version.units_in(container)
    if existing:
        last = existing[-1]
        leading = preceding_text(last)
        insert_after(last, unit, leading if is_whitespace(leading) else None)
        return
    origin_container = origin_unit.getparent()
    closing = origin_container[-1].tail if origin_container is not None and len(origin_container) else None
    append_child(container, unit, preceding_text(origin_unit), closing)


def merge_with_id_mapping(
    origin: Origin,
    destination: str,
    options: Optional[MergeOptions] = None,
    destination_file_name: Optional[str] = None,
) -> MergeResult:
    """
    Merge origin units into a destination document.

    Args:
        origin: One origin document text, or several whose units are
            concatenated in order
        destination: Destination document text; blank text starts from an
            empty document shaped like the origin
        options: Merge configuration (defaults to MergeOptions())
        destination_file_name: Name of the destination file, used to infer
            the target language of a blank destination

    Returns:
        MergeResult with the merged text and the fuzzy-match id renames

    Raises:
        lxml.etree.XMLSyntaxError: If any document is not well-formed
        XliffMergeError: If a document is not a usable XLIFF document
    """
    options = options or MergeOptions()
    version, origin_roots = _parse_origins(origin)

    if destination.strip():
        dest_root = parse_document(destination)
        prolog, trailer = split_envelope(destination)
        newline = detect_newline(destination)
        dest_version = get_version(dest_root)
        if dest_version is not version:
            raise XliffMergeError(
                f"Origin is XLIFF {version.version} but destination is XLIFF {dest_version.version}"
            )
    else:
        target_language = infer_target_language(destination_file_name)
        logger.debug(f"destination is blank, creating XLIFF {version.version} document for '{target_language}'")
        dest_root = build_skeleton(origin_roots[0], version, target_language)
        prolog, trailer = DEFAULT_XML_DECLARATION, '\n'
        newline = '\n'

    container = version.find_container(dest_root)
    if container is None:
        raise MissingContainerError(
            f"Destination has no <{'/'.join(version.container_path)}> element to hold units"
        )

    origin_units = [unit for root in origin_roots for unit in version.units(root)]
    if options.exclude_files:
        excluded = _exclusion_ids(options.exclude_files, version)
        origin_units = [unit for unit in origin_units if version.unit_id(unit) not in excluded]
        logger.debug(f"excluding {len(excluded)} ids via exclude files")

    dest_units: Dict[str, etree._Element] = {}
    duplicates: List[etree._Element] = []
    for unit in version.units(dest_root):
        if dest_units.setdefault(version.unit_id(unit), unit) is not unit:
            duplicates.append(unit)
    origin_ids = {version.unit_id(unit) for unit in origin_units}
    pending_removal = {uid: unit for uid, unit in dest_units.items() if uid not in origin_ids}

    reconciler = UnitReconciler(version, options)

    # Units sharing an id with the destination are reconciled right away
    unmatched: List[etree._Element] = []
    seen_ids: Set[str] = set()
    for unit in origin_units:
        unit_id = version.unit_id(unit)
        if unit_id in seen_ids:
            continue
        seen_ids.add(unit_id)
        if unit_id in dest_units:
            reconciler.reconcile(unit, dest_units[unit_id], pending_removal)
        else:
            unmatched.append(unit)

    fuzzy_matches: Dict[str, Any] = {}
    if options.fuzzy_match and unmatched and pending_removal:
        matches = assign_matches(
            [(unit, reconciler.source_text(unit)) for unit in unmatched],
            [(unit, reconciler.source_text(unit)) for unit in pending_removal.values()],
        )
        fuzzy_matches = {version.unit_id(match.origin): match for match in matches}

    for unit in unmatched:
        unit_id = version.unit_id(unit)
        match = fuzzy_matches.get(unit_id)
        if match is not None:
            logger.debug(f"fuzzy match '{unit_id}' -> '{version.unit_id(match.destination)}' (score {match.score:.3f})")
            reconciler.reconcile(unit, match.destination, pending_removal)
        else:
            _place_new_unit(container, reconciler.create(unit), unit, version)

    if pending_removal:
        logger.debug(f"removing {len(pending_removal)} ids: {', '.join(pending_removal)}")
    for unit in list(pending_removal.values()) + duplicates:
        remove_element(unit)

    stats = dict(reconciler.stats)
    stats['removed'] = len(pending_removal) + len(duplicates)
    logger.info(
        f"Merged {len(origin_units)} origin units: {stats.get('added', 0)} added, "
        f"{stats.get('updated', 0)} updated, {stats.get('renamed', 0)} renamed, "
        f"{stats['removed']} removed"
    )

    output = serialize_document(dest_root, prolog, trailer, options.replace_apostrophe, newline)
    return MergeResult(output=output, id_mapping=dict(reconciler.id_mapping), stats=stats)


def merge(
    origin: Origin,
    destination: str,
    options: Optional[MergeOptions] = None,
    destination_file_name: Optional[str] = None,
) -> str:
    """Merge origin units into a destination document and return the merged text."""
    return merge_with_id_mapping(origin, destination, options, destination_file_name).output


def describe(text: str) -> Dict[str, Any]:
    """
    Summarize an XLIFF document.

    Returns:
        Dictionary with:
        - version: XLIFF version
        - source_language / target_language: Language codes (may be None)
        - total_units: Number of units in the unit container
        - state_counts: Count of units by workflow state ('unknown' if none)
    """
    root = parse_document(text)
    version = get_version(root)
    source_language, target_language = version.get_languages(root)
    units = version.units(root)
    state_counts = Counter(version.get_state(unit) or 'unknown' for unit in units)
    return {
        'version': version.version,
        'source_language': source_language,
        'target_language': target_language,
        'total_units': len(units),
        'state_counts': dict(state_counts),
    }
