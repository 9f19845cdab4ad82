"""
Tests for the XML tree helpers.

Covers whitespace handling on insertion and removal, content
serialization and the prolog/trailer split.
"""

import pytest
import sys
from pathlib import Path

from lxml import etree

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xliff_merge.tree import (
    children_named,
    detect_newline,
    inner_xml,
    insert_after,
    parse_document,
    remove_element,
    serialize_document,
    split_envelope,
)


LIST_XML = '<list>\n  <item>1</item>\n  <item>2</item>\n  <item>3</item>\n</list>'


def to_text(root) -> str:
    return etree.tostring(root, encoding='unicode')


class TestRemoveElement:
    """Removing elements drops the whitespace in front of them."""

    def test_remove_middle(self):
        root = parse_document(LIST_XML)
        remove_element(root[1])
        assert to_text(root) == '<list>\n  <item>1</item>\n  <item>3</item>\n</list>'

    def test_remove_first(self):
        root = parse_document(LIST_XML)
        remove_element(root[0])
        assert to_text(root) == '<list>\n  <item>2</item>\n  <item>3</item>\n</list>'

    def test_remove_last(self):
        root = parse_document(LIST_XML)
        remove_element(root[2])
        assert to_text(root) == '<list>\n  <item>1</item>\n  <item>2</item>\n</list>'

    def test_remove_all_collapses_parent(self):
        root = parse_document(LIST_XML)
        for item in list(root):
            remove_element(item)
        assert to_text(root) == '<list/>'

    def test_keeps_non_whitespace_text(self):
        root = parse_document('<p>Hello <b>bold</b> world</p>')
        remove_element(root[0])
        assert to_text(root) == '<p>Hello  world</p>'

    def test_root_cannot_be_removed(self):
        root = parse_document(LIST_XML)
        with pytest.raises(ValueError):
            remove_element(root)


class TestInsertAfter:
    def test_insert_keeps_indentation(self):
        root = parse_document(LIST_XML)
        new = etree.Element('item')
        new.text = '4'
        insert_after(root[2], new, '\n  ')
        assert to_text(root) == '<list>\n  <item>1</item>\n  <item>2</item>\n  <item>3</item>\n  <item>4</item>\n</list>'


class TestInnerXml:
    def test_text_and_markup(self):
        root = parse_document('<s xmlns="urn:x">Hi <ph id="1"/> &amp; bye</s>')
        assert inner_xml(root) == 'Hi <ph id="1"/> &amp; bye'

    def test_empty_element(self):
        assert inner_xml(parse_document('<s/>')) == ''

    def test_children_named_ignores_namespace(self):
        root = parse_document('<r xmlns="urn:x"><a/><!-- c --><b/><a/></r>')
        assert len(children_named(root, 'a')) == 2


class TestEnvelope:
    def test_split_declaration_and_trailer(self):
        text = '\ufeff<?xml version="1.0"?>\n<!-- generated -->\n<root/>\n\n'
        prolog, trailer = split_envelope(text)
        assert prolog == '\ufeff<?xml version="1.0"?>\n<!-- generated -->\n'
        assert trailer == '\n\n'

    def test_no_prolog(self):
        assert split_envelope('<root/>') == ('', '')

    def test_serialize_reattaches_envelope(self):
        text = '<?xml version="1.0" encoding="UTF-8"?>\n<root a="1">x</root>\n'
        prolog, trailer = split_envelope(text)
        assert serialize_document(parse_document(text), prolog, trailer) == text

    def test_serialize_apostrophe_policy(self):
        root = parse_document("<root>it's</root>")
        assert serialize_document(root) == "<root>it's</root>"
        assert serialize_document(root, replace_apostrophe=True) == '<root>it&apos;s</root>'

    def test_trailer_keeps_comments_after_root(self):
        text = '<root>\n  <a/>\n</root>\n<!-- generated -->\n<?build stamp="1"?>\n'
        prolog, trailer = split_envelope(text)
        assert trailer == '\n<!-- generated -->\n<?build stamp="1"?>\n'
        assert serialize_document(parse_document(text), prolog, trailer) == text

    def test_trailer_ignores_comments_inside_root(self):
        _, trailer = split_envelope('<root><!-- inner --></root>\n')
        assert trailer == '\n'


class TestApostrophePolicy:
    """The policy touches character data and attributes only."""

    def test_escape_skips_comments(self):
        root = parse_document("<root><!-- don't touch --><t a=\"it's\">it's</t></root>")
        assert serialize_document(root, replace_apostrophe=True) == (
            "<root><!-- don't touch --><t a=\"it&apos;s\">it&apos;s</t></root>"
        )

    def test_escape_skips_processing_instructions(self):
        root = parse_document("<root><?tool mode='x'?>it's</root>")
        assert serialize_document(root, replace_apostrophe=True) == "<root><?tool mode='x'?>it&apos;s</root>"

    def test_unescape_skips_cdata(self):
        root = parse_document('<root><t><![CDATA[x &apos; y]]></t>it&apos;s</root>')
        assert serialize_document(root) == "<root><t><![CDATA[x &apos; y]]></t>it's</root>"


class TestNewline:
    def test_detect_newline(self):
        assert detect_newline('<a>\r\n</a>\r\n') == '\r\n'
        assert detect_newline('<a>\n</a>\n') == '\n'
        assert detect_newline('<a/>') == '\n'

    def test_crlf_is_restored(self):
        text = '<?xml version="1.0"?>\r\n<root>\r\n  <a>x</a>\r\n</root>\r\n'
        prolog, trailer = split_envelope(text)
        root = parse_document(text)
        assert serialize_document(root, prolog, trailer, newline=detect_newline(text)) == text
