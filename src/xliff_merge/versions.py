"""
XLIFF version capability table.

XLIFF 1.2 and 2.0 lay out the same concepts differently:

- 1.2: ``xliff/file/body/trans-unit``; ``source`` and ``target`` are direct
  children of the unit and the workflow state sits on ``target``
  (``state="new"`` ... ``state="final"``). Languages live on ``file``.
- 2.0: ``xliff/file/unit``; ``source``, ``target`` and the ``state``
  attribute live on a nested ``segment`` (``initial`` ... ``final``).
  Languages live on the ``xliff`` root.

Everything version-specific is answered by an ``XliffVersion`` instance so the
merge logic never branches on the version itself.
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from lxml import etree

from .constants import XLIFF_NAMESPACES
from .errors import MalformedUnitError, UnsupportedVersionError
from .tree import child_named, children_named, insert_after, is_whitespace, local_name, preceding_text


@dataclass(frozen=True)
class XliffVersion:
    """Where one XLIFF version keeps units, content, state and languages."""
    version: str
    container_path: Tuple[str, ...]
    unit_name: str
    segment_name: Optional[str]
    initial_state: str
    final_state: str
    # A missing state attribute reads as the initial state (2.0 schema default)
    implicit_initial_state: bool
    language_holder: Optional[str]  # None: the xliff root, else a child element of it
    source_language_attribute: str
    target_language_attribute: str
    # Auxiliary blocks replaced wholesale from the origin unit
    metadata_kinds: Tuple[str, ...]
    # Unit children that generic sibling sync must leave alone
    structural_names: FrozenSet[str]
    state_attribute: str = 'state'

    @property
    def namespace(self) -> str:
        return XLIFF_NAMESPACES[self.version]

    # Document level

    def find_container(self, root: etree._Element) -> Optional[etree._Element]:
        """Element holding the units, or None if the document has none."""
        node = root
        for name in self.container_path:
            node = child_named(node, name)
            if node is None:
                return None
        return node

    def units(self, root: etree._Element) -> List[etree._Element]:
        container = self.find_container(root)
        if container is None:
            return []
        return self.units_in(container)

    def units_in(self, container: etree._Element) -> List[etree._Element]:
        return children_named(container, self.unit_name)

    def _language_element(self, root: etree._Element) -> Optional[etree._Element]:
        if self.language_holder is None:
            return root
        return child_named(root, self.language_holder)

    def get_languages(self, root: etree._Element) -> Tuple[Optional[str], Optional[str]]:
        """Return (source language, target language) of a document."""
        holder = self._language_element(root)
        if holder is None:
            return None, None
        return holder.get(self.source_language_attribute), holder.get(self.target_language_attribute)

    def set_languages(
        self,
        root: etree._Element,
        source_language: Optional[str],
        target_language: Optional[str],
    ) -> None:
        holder = self._language_element(root)
        if holder is None:
            return
        if source_language:
            holder.set(self.source_language_attribute, source_language)
        if target_language:
            holder.set(self.target_language_attribute, target_language)

    # Unit level

    def unit_id(self, unit: etree._Element) -> str:
        unit_id = unit.get('id')
        if unit_id is None:
            raise MalformedUnitError(None, f"<{local_name(unit)}> without id attribute")
        return unit_id

    def content_holder(self, unit: etree._Element) -> Optional[etree._Element]:
        """Element whose children are source and target (the unit itself in 1.2)."""
        if self.segment_name is None:
            return unit
        return child_named(unit, self.segment_name)

    def source(self, unit: etree._Element) -> Optional[etree._Element]:
        holder = self.content_holder(unit)
        return child_named(holder, 'source') if holder is not None else None

    def target(self, unit: etree._Element) -> Optional[etree._Element]:
        holder = self.content_holder(unit)
        return child_named(holder, 'target') if holder is not None else None

    def require_source(self, unit: etree._Element) -> etree._Element:
        """
        Source element of a unit.

        Raises:
            MalformedUnitError: If the unit has no segment (2.0) or no source
        """
        holder = self.content_holder(unit)
        if holder is None:
            raise MalformedUnitError(unit.get('id'), f"missing <{self.segment_name}>")
        source = child_named(holder, 'source')
        if source is None:
            raise MalformedUnitError(unit.get('id'), "missing <source>")
        return source

    def state_owner(self, unit: etree._Element) -> Optional[etree._Element]:
        """Element carrying the state attribute: target in 1.2, segment in 2.0."""
        if self.segment_name is None:
            return self.target(unit)
        return self.content_holder(unit)

    def get_state(self, unit: etree._Element) -> Optional[str]:
        owner = self.state_owner(unit)
        if owner is None:
            return None
        state = owner.get(self.state_attribute)
        if state is None and self.implicit_initial_state:
            return self.initial_state
        return state

    def set_state(self, unit: etree._Element, state: str) -> bool:
        """Set the workflow state; returns False if the unit has nowhere to hold it."""
        owner = self.state_owner(unit)
        if owner is None:
            return False
        owner.set(self.state_attribute, state)
        return True

    def is_initial(self, unit: etree._Element) -> bool:
        return self.get_state(unit) == self.initial_state

    def create_target(self, unit: etree._Element) -> etree._Element:
        """
        Add an empty target right after the source, indented like the source.

        Returns:
            The new target element
        """
        source = self.require_source(unit)
        namespace = etree.QName(source).namespace
        tag = f'{{{namespace}}}target' if namespace else 'target'
        target = source.makeelement(tag, {})
        leading = preceding_text(source)
        insert_after(source, target, leading if is_whitespace(leading) else None)
        return target


XLIFF_1_2 = XliffVersion(
    version='1.2',
    container_path=('file', 'body'),
    unit_name='trans-unit',
    segment_name=None,
    initial_state='new',
    final_state='final',
    implicit_initial_state=False,
    language_holder='file',
    source_language_attribute='source-language',
    target_language_attribute='target-language',
    metadata_kinds=('context-group', 'note'),
    structural_names=frozenset({'source', 'target'}),
)

XLIFF_2_0 = XliffVersion(
    version='2.0',
    container_path=('file',),
    unit_name='unit',
    segment_name='segment',
    initial_state='initial',
    final_state='final',
    implicit_initial_state=True,
    language_holder=None,
    source_language_attribute='srcLang',
    target_language_attribute='trgLang',
    metadata_kinds=('notes',),
    structural_names=frozenset({'segment', 'ignorable'}),
)

VERSIONS = {v.version: v for v in (XLIFF_1_2, XLIFF_2_0)}


def get_version(root: etree._Element) -> XliffVersion:
    """
    Select the capability table for a parsed document.

    Raises:
        UnsupportedVersionError: If the root is not ``xliff`` or its version is unknown
    """
    if local_name(root) != 'xliff':
        raise UnsupportedVersionError(f"Not an XLIFF document: root element is <{local_name(root)}>")
    version = root.get('version')
    if version not in VERSIONS:
        raise UnsupportedVersionError(
            f"Unsupported XLIFF version: {version!r} (supported: {', '.join(sorted(VERSIONS))})"
        )
    return VERSIONS[version]
