"""
Markdown to block model tests
"""

from intelreport.report.blocks import Block, BlockKind, blocks_to_text, parse_markdown


class TestParseMarkdown:
    """Token walk over report markdown"""

    def test_empty_input(self):
        assert parse_markdown('') == []
        assert parse_markdown('   \n\n ') == []

    def test_heading_levels(self):
        blocks = parse_markdown('# One\n\n## Two\n\n### Three\n\n#### Four')
        assert [b.kind for b in blocks] == [
            BlockKind.heading1,
            BlockKind.heading2,
            BlockKind.heading3,
            BlockKind.heading3,
        ]
        assert [b.text for b in blocks] == ['One', 'Two', 'Three', 'Four']

    def test_paragraph_drops_inline_markup(self):
        blocks = parse_markdown('Revenue grew **12%** in `Q3`\nacross regions.')
        assert blocks == [Block.paragraph('Revenue grew 12% in Q3 across regions.')]

    def test_bullet_list(self):
        blocks = parse_markdown('- Price leader\n- Strong brand\n- Slow support')
        assert len(blocks) == 1
        assert blocks[0].kind == BlockKind.unordered_list
        assert blocks[0].items == ('Price leader', 'Strong brand', 'Slow support')

    def test_nested_list_is_flattened(self):
        blocks = parse_markdown('- Outer\n  - Inner\n- Second')
        assert blocks[0].items == ('Outer Inner', 'Second')

    def test_ordered_list_keeps_start(self):
        blocks = parse_markdown('3. Third\n4. Fourth')
        assert blocks[0].kind == BlockKind.ordered_list
        assert blocks[0].start == 3
        assert blocks[0].items == ('Third', 'Fourth')

    def test_table(self):
        md = '| Name | Score |\n| --- | --- |\n| Acme | 9 |\n| Globex | 7 |'
        blocks = parse_markdown(md)
        assert len(blocks) == 1
        table = blocks[0]
        assert table.kind == BlockKind.table
        assert table.table_headers == ('Name', 'Score')
        assert table.table_rows == (('Acme', '9'), ('Globex', '7'))

    def test_code_fence_becomes_paragraph_lines(self):
        blocks = parse_markdown('```\nline one\n\nline two\n```')
        assert blocks == [Block.paragraph('line one'), Block.paragraph('line two')]

    def test_blockquote_and_rule(self):
        blocks = parse_markdown('> Quoted insight\n\n---\n\nAfter')
        assert blocks == [Block.paragraph('Quoted insight'), Block.paragraph('After')]

    def test_document_order_is_kept(self):
        md = '# Title\n\nIntro\n\n- a\n- b\n\n## Next\n\nOutro'
        kinds = [b.kind for b in parse_markdown(md)]
        assert kinds == [
            BlockKind.heading1,
            BlockKind.paragraph,
            BlockKind.unordered_list,
            BlockKind.heading2,
            BlockKind.paragraph,
        ]


class TestBlock:
    """Block helpers"""

    def test_is_empty(self):
        assert Block.paragraph('  ').is_empty()
        assert Block.bullet_list(['', ' ']).is_empty()
        assert Block.table([], []).is_empty()
        assert not Block.table(['A'], []).is_empty()
        assert not Block.heading(1, 'x').is_empty()

    def test_heading_level_clamp(self):
        assert Block.heading(6, 'deep').kind == BlockKind.heading3

    def test_blocks_to_text(self):
        blocks = [
            Block.heading(1, 'Title'),
            Block.paragraph(''),
            Block.numbered_list(['one', 'two']),
            Block.table(['H1', 'H2'], [['a', 'b']]),
        ]
        assert blocks_to_text(blocks) == 'Title\none\ntwo\nH1 H2\na b'
