"""
Tests for merging XLIFF 1.2 documents.

In 1.2 the state lives on the target and units sit in file/body, so these
tests cover the parts of the merge that depend on the version table.
"""

import sys
from pathlib import Path

from lxml import etree

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xliff_merge import MergeOptions, describe, merge, merge_with_id_mapping


NS = {'x': 'urn:oasis:names:tc:xliff:document:1.2'}


def xliff(units: str, target_language: str = ' target-language="de"') -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" ?>\n'
        '<xliff xmlns="urn:oasis:names:tc:xliff:document:1.2" version="1.2">\n'
        f'  <file source-language="en"{target_language} datatype="plaintext" original="ng2.template">\n'
        '    <body>\n'
        f'{units}'
        '    </body>\n'
        '  </file>\n'
        '</xliff>\n'
    )


def origin_unit(unit_id: str, source: str, extra: str = '') -> str:
    return (
        f'      <trans-unit id="{unit_id}" datatype="html">\n'
        f'        <source>{source}</source>\n'
        f'{extra}'
        '      </trans-unit>\n'
    )


def dest_unit(unit_id: str, source: str, target: str, state: str = 'translated', extra: str = '') -> str:
    return (
        f'      <trans-unit id="{unit_id}" datatype="html">\n'
        f'        <source>{source}</source>\n'
        f'        <target state="{state}">{target}</target>\n'
        f'{extra}'
        '      </trans-unit>\n'
    )


CONTEXT = (
    '        <context-group purpose="location">\n'
    '          <context context-type="sourcefile">src/app/app.component.html</context>\n'
    '          <context context-type="linenumber">3</context>\n'
    '        </context-group>\n'
)

NOTE = '        <note priority="1" from="description">Greeting</note>\n'


def trans_unit(text: str, unit_id: str):
    root = etree.fromstring(text.encode('utf-8'))
    units = root.findall(f'.//x:trans-unit[@id="{unit_id}"]', NS)
    return units[0] if units else None


class TestMergeV12:
    """Basic scenarios on 1.2 documents."""

    def test_adds_unit_with_new_state(self):
        """New trans-units get a target copied from the source with state 'new'."""
        origin = xliff(origin_unit('ID1', 'a') + origin_unit('ID2', 'b'), target_language='')
        destination = xliff(dest_unit('ID1', 'a', 'A'))

        result = merge(origin, destination)

        assert result == xliff(dest_unit('ID1', 'a', 'A') + dest_unit('ID2', 'b', 'b', state='new'))

    def test_update_resets_state_on_target(self):
        origin = xliff(origin_unit('ID1', 'new text'), target_language='')
        destination = xliff(dest_unit('ID1', 'old text', 'T'))

        result = merge(origin, destination)

        assert result == xliff(dest_unit('ID1', 'new text', 'T', state='new'))

    def test_removes_obsolete_unit(self):
        origin = xliff(origin_unit('ID1', 'a'), target_language='')
        destination = xliff(dest_unit('ID1', 'a', 'A') + dest_unit('ID2', 'b', 'B'))

        result = merge(origin, destination)

        assert result == xliff(dest_unit('ID1', 'a', 'A'))

    def test_source_language_creates_missing_target(self):
        """A changed unit without target gets one in source-language mode."""
        origin = xliff(origin_unit('ID1', 'new'), target_language='')
        destination = xliff(origin_unit('ID1', 'old'))

        result = merge(origin, destination, MergeOptions(source_language=True))

        unit = trans_unit(result, 'ID1')
        target = unit.find('x:target', NS)
        assert target.text == 'new'
        assert target.get('state') == 'final'

    def test_unit_without_target_has_no_state(self):
        """Without a target there is nowhere to keep the state; nothing is added."""
        origin = xliff(origin_unit('ID1', 'new'), target_language='')
        destination = xliff(origin_unit('ID1', 'old'))

        result = merge(origin, destination)

        unit = trans_unit(result, 'ID1')
        assert unit.find('x:target', NS) is None
        assert unit.find('x:source', NS).text == 'new'

    def test_fuzzy_match_renames_unit(self):
        origin = xliff(origin_unit('4f1a', 'Welcome to the app'), target_language='')
        destination = xliff(dest_unit('9c2b', 'Welcome to the app!', 'Willkommen in der App!', state='final'))

        result = merge_with_id_mapping(origin, destination)

        assert result.id_mapping == {'9c2b': '4f1a'}
        target = trans_unit(result.output, '4f1a').find('x:target', NS)
        assert target.text == 'Willkommen in der App!'
        assert target.get('state') == 'new'


class TestMetadataV12:
    """Context groups and notes on 1.2 trans-units."""

    def test_inserts_context_and_note_after_target(self):
        origin = xliff(origin_unit('ID1', 'a', CONTEXT + NOTE), target_language='')
        destination = xliff(dest_unit('ID1', 'a', 'A'))

        result = merge(origin, destination)

        assert result == xliff(dest_unit('ID1', 'a', 'A', extra=CONTEXT + NOTE))

    def test_replaces_context_groups(self):
        """Old context groups are swapped for the origin's, in place."""
        old_context = (
            '        <context-group purpose="location">\n'
            '          <context context-type="sourcefile">src/app/old.component.html</context>\n'
            '        </context-group>\n'
        )
        origin = xliff(origin_unit('ID1', 'a', CONTEXT + NOTE), target_language='')
        destination = xliff(dest_unit('ID1', 'a', 'A', extra=old_context + NOTE))

        result = merge(origin, destination)

        assert result == xliff(dest_unit('ID1', 'a', 'A', extra=CONTEXT + NOTE))

    def test_keeps_destination_only_elements(self):
        """Elements only the destination has, such as alt-trans, are not touched."""
        alt_trans = (
            '        <alt-trans>\n'
            '          <target>Vorschlag</target>\n'
            '        </alt-trans>\n'
        )
        origin = xliff(origin_unit('ID1', 'a'), target_language='')
        destination = xliff(dest_unit('ID1', 'a', 'A', extra=alt_trans))

        result = merge(origin, destination)

        assert result == destination


class TestDescribe:
    """Document summaries."""

    def test_describe_counts_states(self):
        document = xliff(
            dest_unit('ID1', 'a', 'A')
            + dest_unit('ID2', 'b', 'b', state='new')
            + origin_unit('ID3', 'c')
        )

        info = describe(document)

        assert info == {
            'version': '1.2',
            'source_language': 'en',
            'target_language': 'de',
            'total_units': 3,
            'state_counts': {'translated': 1, 'new': 1, 'unknown': 1},
        }

    def test_blank_destination_uses_file_name_locale(self):
        origin = xliff(origin_unit('ID1', 'a'), target_language='')

        result = merge(origin, '', destination_file_name='messages.de-AT.xlf')

        info = describe(result)
        assert info['target_language'] == 'de-AT'
        assert info['source_language'] == 'en'
        assert info['total_units'] == 1
