"""
Section composer and document assembler tests
"""

from datetime import date

import pytest

from intelreport.report.assembler import (
    AssemblyStage,
    DocumentAssembler,
    TocEntry,
    assemble_document,
    format_footer_date,
)
from intelreport.report.blocks import Block, Section


def _long_section(title: str, paragraphs: int = 30) -> Section:
    text = ' '.join(['analysis'] * 120)
    return Section(title=title, blocks=[Block.paragraph(text) for _ in range(paragraphs)])


@pytest.fixture
def assembler(fake_canvas, styles) -> DocumentAssembler:
    return DocumentAssembler(
        fake_canvas,
        styles,
        brand='COMPA AI',
        footer_label='Executive Summary',
        generated_on=date(2024, 3, 5),
    )


class TestSectionComposer:
    """Section banners and page starts"""

    def test_first_section_reuses_blank_page(self, assembler, fake_canvas):
        placement = assembler.add_section(Section('SWOT Analysis', [Block.paragraph('Short body.')]))
        assert placement.first_page == 1
        assert fake_canvas.page_count() == 1

    def test_each_section_starts_a_new_page(self, assembler, fake_canvas):
        first = assembler.add_section(Section('One', [Block.paragraph('a')]))
        second = assembler.add_section(Section('Two', [Block.paragraph('b')]))
        assert (first.first_page, second.first_page) == (1, 2)
        assert fake_canvas.strings(2)[0] == 'Two'

    def test_banner_with_byline_is_centered(self, assembler, fake_canvas, styles):
        assembler.add_section(Section('Pricing Comparison', [], byline='Company: Acme'))
        banner = fake_canvas.rects(1)[0]
        assert banner.height == styles.single_banner_height
        title, byline = fake_canvas.texts(1)
        assert (title.text, title.align) == ('Pricing Comparison', 'center')
        assert (byline.text, byline.align) == ('Company: Acme', 'center')

    def test_section_banner_without_byline(self, assembler, fake_canvas, styles):
        assembler.add_section(Section('Churn Fix', [Block.paragraph('Body')]))
        assert fake_canvas.rects(1)[0].height == styles.section_banner_height
        title = fake_canvas.texts(1)[0]
        assert title.x == styles.geometry.margin_left
        body = fake_canvas.texts(1)[1]
        assert body.y > styles.section_banner_height + styles.banner_content_gap

    def test_untitled_section_has_no_banner(self, assembler, fake_canvas):
        assembler.add_section(Section('', [Block.paragraph('Only body')]))
        assert fake_canvas.rects() == []
        assert fake_canvas.strings() == ['Only body']

    def test_long_title_font_shrinks(self, assembler, fake_canvas):
        assembler.add_section(Section('Competitive Landscape ' * 4, []))
        assert fake_canvas.texts(1)[0].font_size < 18


class TestDocumentAssembler:
    """Whole-document build"""

    def _build(self, assembler):
        assembler.add_cover_page('Comprehensive Business Analysis', subject='Acme', meta_lines=['Generated on: 3/5/2024'])
        assembler.add_table_of_contents([TocEntry('Alpha', 'first'), TocEntry('Beta', 'second')])
        assembler.add_section(_long_section('Alpha'))
        assembler.add_section(Section('Beta', [Block.paragraph('short')]))
        assembler.add_closing_page()
        return assembler.finalize(footers=True)

    def test_footers_skip_cover_and_closing(self, assembler, fake_canvas):
        document = self._build(assembler)
        total = document.page_count
        assert total == fake_canvas.page_count()
        assert total >= 5
        assert document.footer_pages == list(range(2, total))

        for page in (1, total):
            assert not any(s.startswith('Page ') for s in fake_canvas.strings(page))
        for page in range(2, total):
            strings = fake_canvas.strings(page)
            assert f'Page {page} of {total}' in strings
            assert 'Executive Summary | COMPA AI | 3/5/2024' in strings

    def test_footer_sits_below_body(self, assembler, fake_canvas, styles):
        self._build(assembler)
        footer = next(op for op in fake_canvas.texts(2) if op.text.startswith('Page '))
        assert footer.align == 'right'
        assert footer.y > styles.geometry.bottom_limit

    def test_contents_page_lists_entries_in_order(self, assembler, fake_canvas):
        document = self._build(assembler)
        toc = fake_canvas.strings(2)
        assert toc[0] == 'Table of Contents'
        assert toc.index('1. Alpha') < toc.index('2. Beta')
        assert [s.title for s in document.sections] == ['Alpha', 'Beta']
        assert document.sections[0].first_page == 3
        assert document.sections[1].first_page == document.sections[0].last_page + 1

    def test_closing_page_is_last(self, assembler, fake_canvas):
        document = self._build(assembler)
        assert 'Thank You' in fake_canvas.strings(document.page_count)
        assert 'For using COMPA AI Strategic Analysis' in fake_canvas.strings(document.page_count)

    def test_no_footers_when_disabled(self, assembler, fake_canvas):
        assembler.add_section(Section('Solo', [Block.paragraph('text')]))
        document = assembler.finalize(footers=False)
        assert document.footer_pages == []
        assert not any(s.startswith('Page ') for s in fake_canvas.strings())

    def test_stages_only_move_forward(self, assembler):
        assembler.add_section(Section('Body', []))
        with pytest.raises(RuntimeError):
            assembler.add_cover_page('Late cover')
        assembler.finalize()
        assert assembler.stage == AssemblyStage.finalized
        with pytest.raises(RuntimeError):
            assembler.finalize()
        with pytest.raises(RuntimeError):
            assembler.add_section(Section('After', []))

    def test_assemble_document_helper(self, fake_canvas, styles):
        document = assemble_document(
            fake_canvas,
            styles,
            [Section('One', [Block.paragraph('x')]), Section('Two', [Block.paragraph('y')])],
            cover_title='Report',
            closing=True,
            footers=True,
            generated_on=date(2024, 1, 2),
        )
        assert document.page_count == 4
        assert document.footer_pages == [2, 3]
        assert document.content.startswith(b'%FAKE-PDF')


def test_format_footer_date():
    assert format_footer_date(date(2024, 3, 5)) == '3/5/2024'
    assert format_footer_date(date(2023, 12, 25)) == '12/25/2023'


def test_untitled_sections_start_at_page_top(fake_canvas, styles):
    assembler = DocumentAssembler(fake_canvas, styles, generated_on=date(2024, 1, 2))
    first = assembler.add_section(_long_section('', paragraphs=8))
    second = assembler.add_section(Section('', [Block.paragraph('Next section')]))

    assert second.first_page > first.last_page
    op = fake_canvas.texts(second.first_page)[0]
    rule = styles.style_for('paragraph')
    assert op.text == 'Next section'
    assert op.y == pytest.approx(styles.geometry.margin_top + rule.font_size * 0.8)


def test_empty_untitled_section_does_not_share_a_page(fake_canvas, styles):
    assembler = DocumentAssembler(fake_canvas, styles, generated_on=date(2024, 1, 2))
    first = assembler.add_section(Section('', []))
    second = assembler.add_section(Section('', [Block.paragraph('Next section')]))

    assert first.first_page == 1
    assert second.first_page == 2
    assert second.first_page > first.last_page
