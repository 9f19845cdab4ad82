"""
Unit-level merge policy.

``UnitReconciler.reconcile`` brings a destination unit in line with the
origin unit it was matched to; ``UnitReconciler.create`` prepares an origin
unit that has no counterpart for insertion into the destination.
"""

import logging
from collections import Counter
from copy import deepcopy
from typing import Dict, List, Optional

from lxml import etree

from .options import MergeOptions
from .tree import (
    child_elements,
    children_named,
    collapse_whitespace,
    clear_content,
    inner_xml,
    insert_after,
    insert_first,
    is_whitespace,
    local_name,
    preceding_text,
    remove_element,
    replace_attributes,
    replace_content,
)
from .versions import XliffVersion

logger = logging.getLogger("xliff-merge")


class UnitReconciler:
    """Applies the source/target/state/metadata policy to single units."""

    def __init__(self, version: XliffVersion, options: MergeOptions):
        self.version = version
        self.options = options
        # Old destination id -> origin id it was fuzzy-matched to
        self.id_mapping: Dict[str, str] = {}
        self.stats: Counter = Counter()

    def comparable_text(self, element: etree._Element) -> str:
        """Serialized content of an element, as used for change detection."""
        text = inner_xml(element)
        if self.options.collapse_whitespace:
            text = collapse_whitespace(text)
        return text

    def source_text(self, unit: etree._Element) -> str:
        return self.comparable_text(self.version.require_source(unit))

    @property
    def reset_state(self) -> str:
        if self.options.source_language:
            return self.version.final_state
        return self.version.initial_state

    def _reset_translation_state(self, unit: etree._Element) -> None:
        if self.options.reset_translation_state:
            self.version.set_state(unit, self.reset_state)

    # Matched units

    def reconcile(
        self,
        origin_unit: etree._Element,
        dest_unit: etree._Element,
        pending_removal: Optional[Dict[str, etree._Element]] = None,
    ) -> None:
        """
        Update ``dest_unit`` in place from ``origin_unit``.

        Args:
            origin_unit: Unit from the origin document
            dest_unit: Matching unit of the destination (same id or fuzzy match)
            pending_removal: Destination units scheduled for deletion, keyed by
                id; a fuzzy-matched unit is taken off this list
        """
        version = self.version
        origin_id = version.unit_id(origin_unit)
        dest_id = version.unit_id(dest_unit)

        origin_source = version.require_source(origin_unit)
        dest_source = version.require_source(dest_unit)
        old_source_text = self.comparable_text(dest_source)

        if self.comparable_text(origin_source) != old_source_text:
            sync_target = self._should_sync_target(origin_unit, dest_unit, old_source_text)
            replace_content(dest_source, origin_source)
            if sync_target:
                origin_target = version.target(origin_unit)
                dest_target = version.target(dest_unit)
                if dest_target is None:
                    dest_target = version.create_target(dest_unit)
                replace_content(dest_target, origin_target if origin_target is not None else origin_source)
            self._reset_translation_state(dest_unit)
            self.stats['updated'] += 1
            logger.debug(
                f"update unit '{origin_id}' with new source: {inner_xml(dest_source)} "
                f"(was: {old_source_text})"
            )

        if dest_id != origin_id:
            self.id_mapping[dest_id] = origin_id
            if pending_removal is not None:
                pending_removal.pop(dest_id, None)
            dest_unit.set('id', origin_id)
            # The match is only approximate, so any earlier translation needs review
            self._reset_translation_state(dest_unit)
            self.stats['renamed'] += 1
            logger.debug(f"matched unit '{dest_id}' to '{origin_id}'")

        for kind in version.metadata_kinds:
            self._replace_metadata(origin_unit, dest_unit, kind)
        self._sync_other_elements(origin_unit, dest_unit)

    def _should_sync_target(
        self,
        origin_unit: etree._Element,
        dest_unit: etree._Element,
        old_source_text: str,
    ) -> bool:
        if self.version.target(origin_unit) is not None or self.options.source_language:
            return True
        if not self.options.sync_targets_with_initial_state:
            return False
        dest_target = self.version.target(dest_unit)
        return (
            dest_target is not None
            and self.version.is_initial(dest_unit)
            and self.comparable_text(dest_target) == old_source_text
        )

    def _replace_metadata(self, origin_unit: etree._Element, dest_unit: etree._Element, kind: str) -> None:
        """
        Replace the destination's blocks of one kind by copies of the origin's.

        Blocks have no identity of their own, so they are swapped as a whole
        run: at the position of the first old block, or next to the
        counterpart of the origin block's predecessor when there was none.
        """
        origin_blocks = children_named(origin_unit, kind)
        dest_blocks = children_named(dest_unit, kind)
        if not origin_blocks and not dest_blocks:
            return

        if dest_blocks:
            first = dest_blocks[0]
            anchor = first.getprevious()
            leading = preceding_text(first)
            if not is_whitespace(leading):
                leading = None
            for block in dest_blocks:
                remove_element(block)
        else:
            anchor, leading = self._insertion_point(origin_blocks[0], origin_unit, dest_unit)

        self._insert_run(dest_unit, anchor, leading, origin_blocks)

    def _sync_other_elements(self, origin_unit: etree._Element, dest_unit: etree._Element) -> None:
        """
        Positional sync of the remaining unit children that the origin carries.

        Elements are paired by name in document order and updated in place;
        surplus destination elements are dropped from the tail and missing
        ones inserted. Names only the destination has are left alone.
        """
        skipped = self.version.structural_names | set(self.version.metadata_kinds)
        names: List[str] = []
        for child in child_elements(origin_unit):
            name = local_name(child)
            if name not in skipped and name not in names:
                names.append(name)

        for name in names:
            origin_elements = children_named(origin_unit, name)
            dest_elements = children_named(dest_unit, name)
            for origin_element, dest_element in zip(origin_elements, dest_elements):
                replace_attributes(dest_element, origin_element)
                replace_content(dest_element, origin_element)
            for dest_element in dest_elements[len(origin_elements):]:
                remove_element(dest_element)
            missing = origin_elements[len(dest_elements):]
            if not missing:
                continue
            if dest_elements:
                anchor = dest_elements[-1]
                leading = preceding_text(anchor)
            else:
                anchor, leading = self._insertion_point(missing[0], origin_unit, dest_unit)
            self._insert_run(dest_unit, anchor, leading, missing)

    def _insertion_point(self, origin_element, origin_unit, dest_unit):
        """
        Where a copy of ``origin_element`` belongs in ``dest_unit``.

        The anchor is the destination counterpart of the nearest preceding
        origin sibling, moved past destination-only elements such as a
        target. Returns (anchor or None for "first child", leading text).
        """
        origin_names = {local_name(child) for child in child_elements(origin_unit)}
        anchor = None
        for sibling in origin_element.itersiblings(preceding=True):
            name = local_name(sibling)
            if name is None:
                continue
            counterparts = children_named(dest_unit, name)
            if counterparts:
                anchor = counterparts[-1]
                break

        if anchor is None:
            first = child_elements(dest_unit)
            leading = dest_unit.text if is_whitespace(dest_unit.text) and first else preceding_text(origin_element)
            return None, leading

        following = anchor.getnext()
        while following is not None and local_name(following) not in origin_names:
            if local_name(following) is not None:
                anchor = following
            following = following.getnext()

        leading = preceding_text(anchor)
        if not is_whitespace(leading):
            leading = preceding_text(origin_element)
        return anchor, leading

    @staticmethod
    def _insert_run(dest_unit, anchor, leading, elements) -> None:
        for element in elements:
            copy = deepcopy(element)
            if anchor is None:
                insert_first(dest_unit, copy, leading)
            else:
                insert_after(anchor, copy, leading)
            anchor = copy

    # Unmatched units

    def create(self, origin_unit: etree._Element) -> etree._Element:
        """
        Build a new destination unit from an origin unit without counterpart.

        Returns:
            A detached copy of the origin unit with target and state applied
        """
        unit = deepcopy(origin_unit)
        unit.tail = None
        unit_id = self.version.unit_id(unit)
        source = self.version.require_source(unit)

        if self.version.target(unit) is None and not self.options.omit_new_targets:
            target = self.version.create_target(unit)
            if self.options.new_translation_targets_blank is True and not self.options.source_language:
                clear_content(target)
            else:
                replace_content(target, source)

        self._reset_translation_state(unit)
        self.stats['added'] += 1
        logger.debug(f"adding unit '{unit_id}'")
        return unit
