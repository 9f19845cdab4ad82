"""
XML tree helpers built on lxml.

lxml keeps character data in ``.text`` and ``.tail`` instead of separate text
nodes, so every insertion or removal of an element has to move the
surrounding whitespace explicitly. All of that bookkeeping lives here.
"""

import re
from copy import deepcopy
from typing import List, Optional, Tuple

from lxml import etree

# BOM, XML declaration, processing instructions, comments and DOCTYPE ahead of the root
PROLOG_PATTERN = re.compile(
    r'^\ufeff?(?:\s*(?:<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^\[>]*(?:\[.*?\])?\s*>))*\s*',
    re.DOTALL | re.IGNORECASE,
)

# Comments, processing instructions and whitespace after the root element
TRAILER_PATTERN = re.compile(
    r'(?:\s*(?:<\?(?:(?!\?>).)*\?>|<!--(?:(?!--).)*-->))*\s*$',
    re.DOTALL,
)

# Markup whose content is not subject to the apostrophe policy
VERBATIM_PATTERN = re.compile(r'(<!--.*?-->|<!\[CDATA\[.*?\]\]>|<\?.*?\?>)', re.DOTALL)

WHITESPACE_RUN = re.compile(r'\s+')


def create_parser() -> etree.XMLParser:
    """Create a whitespace-preserving parser hardened against entity attacks."""
    return etree.XMLParser(
        remove_blank_text=False,
        strip_cdata=False,
        resolve_entities=False,  # Prevent XXE attacks
        no_network=True,         # Block external network access
        huge_tree=False,         # Prevent billion laughs / memory exhaustion
        encoding='utf-8',        # Text is already decoded; ignore the declared encoding
    )


def parse_document(text: str) -> etree._Element:
    """
    Parse XML text into a tree.

    Args:
        text: Document text

    Returns:
        The root element

    Raises:
        lxml.etree.XMLSyntaxError: If the text is not well-formed
    """
    if text.startswith('\ufeff'):
        # The BOM is kept with the prolog, not handed to the parser
        text = text[1:]
    return etree.fromstring(text.encode('utf-8'), create_parser())


def split_envelope(text: str) -> Tuple[str, str]:
    """
    Return the literal text before and after the root element.

    lxml does not reproduce the XML declaration, nor comments and processing
    instructions outside the root, when serializing an element, so both ends
    of the document have to be carried over by hand.
    """
    prolog = PROLOG_PATTERN.match(text).group(0)
    trailer = TRAILER_PATTERN.search(text).group(0)
    return prolog, trailer


def detect_newline(text: str) -> str:
    """Line ending used by a document; the parser turns CRLF into LF."""
    return '\r\n' if '\r\n' in text else '\n'


def apply_apostrophe_policy(body: str, replace_apostrophe: bool) -> str:
    """
    Escape apostrophes as ``&apos;``, or turn escaped ones back into literals.

    Only character data and attribute values are rewritten; comments, CDATA
    sections and processing instructions are copied unchanged.
    """
    parts = VERBATIM_PATTERN.split(body)
    # Odd indexes hold the verbatim markup captured by the split
    for index in range(0, len(parts), 2):
        if replace_apostrophe:
            parts[index] = parts[index].replace("'", '&apos;')
        else:
            parts[index] = parts[index].replace('&apos;', "'").replace('&#39;', "'")
    return ''.join(parts)


def serialize_document(
    root: etree._Element,
    prolog: str = '',
    trailer: str = '',
    replace_apostrophe: bool = False,
    newline: str = '\n',
) -> str:
    """
    Serialize a tree back to text.

    Args:
        root: Root element of the document
        prolog: Literal text to put in front of the root element
        trailer: Literal text to put after the root element
        replace_apostrophe: Escape apostrophes as ``&apos;``; otherwise any
            escaped apostrophe is turned back into a literal one
        newline: Line ending for the serialized root element

    Returns:
        The document text
    """
    body = apply_apostrophe_policy(etree.tostring(root, encoding='unicode'), replace_apostrophe)
    if newline != '\n':
        body = body.replace('\n', newline)
    return prolog + body + trailer


def local_name(node: etree._Element) -> Optional[str]:
    """Local tag name of an element, or None for comments and processing instructions."""
    if not isinstance(node.tag, str):
        return None
    return etree.QName(node).localname


def child_elements(parent: etree._Element) -> List[etree._Element]:
    return [child for child in parent if isinstance(child.tag, str)]


def children_named(parent: etree._Element, name: str) -> List[etree._Element]:
    """All direct children with the given local name, ignoring namespaces."""
    return [child for child in parent if local_name(child) == name]


def child_named(parent: etree._Element, name: str) -> Optional[etree._Element]:
    """First direct child with the given local name, or None."""
    for child in parent:
        if local_name(child) == name:
            return child
    return None


def inner_xml(element: etree._Element) -> str:
    """
    Serialize the content of an element (text and child markup) without the
    element's own tags.
    """
    if len(element) == 0 and not element.text:
        return ''
    serialized = etree.tostring(element, encoding='unicode', with_tail=False)
    start = serialized.index('>') + 1
    end = serialized.rindex('</')
    return serialized[start:end]


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RUN.sub(' ', text).strip()


def is_whitespace(text: Optional[str]) -> bool:
    """True for None, empty or whitespace-only text."""
    return not text or text.isspace()


def replace_content(element: etree._Element, source: etree._Element) -> None:
    """Replace text and children of ``element`` with copies of those of ``source``."""
    for child in list(element):
        element.remove(child)
    element.text = source.text
    for child in source:
        element.append(deepcopy(child))


def clear_content(element: etree._Element) -> None:
    for child in list(element):
        element.remove(child)
    element.text = ''


def replace_attributes(element: etree._Element, source: etree._Element) -> None:
    element.attrib.clear()
    for key, value in source.attrib.items():
        element.set(key, value)


def preceding_text(element: etree._Element) -> Optional[str]:
    """Character data directly in front of an element (previous tail or parent text)."""
    previous = element.getprevious()
    if previous is not None:
        return previous.tail
    parent = element.getparent()
    return parent.text if parent is not None else None


def insert_after(anchor: etree._Element, element: etree._Element, leading: Optional[str]) -> None:
    """
    Insert ``element`` directly after ``anchor``.

    ``leading`` becomes the text between the two; whatever followed the
    anchor now follows the new element.
    """
    element.tail = anchor.tail
    anchor.tail = leading
    anchor.addnext(element)


def insert_first(parent: etree._Element, element: etree._Element, leading: Optional[str]) -> None:
    """Insert ``element`` as first child; the parent's old text now follows it."""
    element.tail = parent.text
    parent.text = leading
    parent.insert(0, element)


def append_child(
    parent: etree._Element,
    element: etree._Element,
    leading: Optional[str],
    closing: Optional[str] = None,
) -> None:
    """
    Append ``element`` as last child.

    Args:
        parent: Element to append to
        element: Element to append
        leading: Text placed in front of the new element
        closing: Text between the new element and the parent's end tag,
            used only when the parent has no children yet
    """
    if len(parent):
        insert_after(parent[-1], element, leading)
        return
    element.tail = parent.text if parent.text else closing
    parent.text = leading
    parent.append(element)


def remove_element(element: etree._Element) -> None:
    """
    Remove an element together with the whitespace directly in front of it.

    Text following the element is kept. A parent left with nothing but
    whitespace collapses to an empty element.
    """
    parent = element.getparent()
    if parent is None:
        raise ValueError("Cannot remove the root element")
    previous = element.getprevious()
    before = preceding_text(element)
    tail = element.tail

    if is_whitespace(before):
        remaining = tail
    else:
        remaining = before + (tail or '')

    # lxml drops the tail together with the element
    parent.remove(element)
    if previous is not None:
        previous.tail = remaining
    else:
        parent.text = remaining

    if len(parent) == 0 and is_whitespace(parent.text):
        parent.text = None
