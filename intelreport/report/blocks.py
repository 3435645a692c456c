from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from markdown_it import MarkdownIt


class BlockKind(str, Enum):
    heading1 = 'heading1'
    heading2 = 'heading2'
    heading3 = 'heading3'
    paragraph = 'paragraph'
    unordered_list = 'unordered_list'
    ordered_list = 'ordered_list'
    table = 'table'


HEADING_KINDS = frozenset({BlockKind.heading1, BlockKind.heading2, BlockKind.heading3})
LIST_KINDS = frozenset({BlockKind.unordered_list, BlockKind.ordered_list})


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    text: str | None = None
    items: tuple[str, ...] = ()
    table_headers: tuple[str, ...] = ()
    table_rows: tuple[tuple[str, ...], ...] = ()
    start: int = 1

    @classmethod
    def heading(cls, level: int, text: str) -> Block:
        kind = {1: BlockKind.heading1, 2: BlockKind.heading2}.get(int(level), BlockKind.heading3)
        return cls(kind=kind, text=text)

    @classmethod
    def paragraph(cls, text: str) -> Block:
        return cls(kind=BlockKind.paragraph, text=text)

    @classmethod
    def bullet_list(cls, items: list[str]) -> Block:
        return cls(kind=BlockKind.unordered_list, items=tuple(items))

    @classmethod
    def numbered_list(cls, items: list[str], *, start: int = 1) -> Block:
        return cls(kind=BlockKind.ordered_list, items=tuple(items), start=start)

    @classmethod
    def table(cls, headers: list[str], rows: list[list[str]]) -> Block:
        return cls(
            kind=BlockKind.table,
            table_headers=tuple(headers),
            table_rows=tuple(tuple(row) for row in rows),
        )

    def is_empty(self) -> bool:
        if self.kind in LIST_KINDS:
            return not any(str(item or '').strip() for item in self.items)
        if self.kind == BlockKind.table:
            has_headers = any(str(cell or '').strip() for cell in self.table_headers)
            return not has_headers and not self.table_rows
        return not str(self.text or '').strip()

    def plain_text(self) -> str:
        if self.kind in LIST_KINDS:
            return '\n'.join(item for item in self.items if item)
        if self.kind == BlockKind.table:
            lines = [' '.join(self.table_headers)]
            lines.extend(' '.join(row) for row in self.table_rows)
            return '\n'.join(line for line in lines if line.strip())
        return str(self.text or '')


@dataclass
class Section:
    title: str
    blocks: list[Block] = field(default_factory=list)
    description: str | None = None
    byline: str | None = None


_MARKDOWN_PARSER: MarkdownIt | None = None


def _normalize_newlines(value: str) -> str:
    return value.replace('\r\n', '\n').replace('\r', '\n')


def _markdown_parser() -> MarkdownIt:
    global _MARKDOWN_PARSER
    if _MARKDOWN_PARSER is None:
        _MARKDOWN_PARSER = MarkdownIt('commonmark', {'html': False}).enable('table')
    return _MARKDOWN_PARSER


def _token_attr(token: Any, key: str) -> str | None:
    getter = getattr(token, 'attrGet', None)
    if callable(getter):
        value = getter(key)
        return None if value is None else str(value)
    attrs = getattr(token, 'attrs', None)
    if isinstance(attrs, dict):
        value = attrs.get(key)
        return None if value is None else str(value)
    return None


def _inline_text(token: Any) -> str:
    children = getattr(token, 'children', None) or []
    parts: list[str] = []
    for child in children:
        child_type = str(getattr(child, 'type', ''))
        if child_type in {'text', 'code_inline'}:
            parts.append(str(getattr(child, 'content', '') or ''))
        elif child_type in {'softbreak', 'hardbreak'}:
            parts.append(' ')
        elif child_type == 'image':
            parts.append(str(getattr(child, 'content', '') or ''))
    text = ''.join(parts) if children else str(getattr(token, 'content', '') or '')
    return re.sub(r'[ \t]+', ' ', text).strip()


def _find_close(tokens: list[Any], start_index: int, open_type: str, close_type: str) -> int:
    depth = 0
    for index in range(start_index, len(tokens)):
        token_type = str(getattr(tokens[index], 'type', ''))
        if token_type == open_type:
            depth += 1
        elif token_type == close_type:
            depth -= 1
            if depth == 0:
                return index
    return len(tokens) - 1


def _collect_inline(tokens: list[Any], start: int, end: int) -> str:
    parts = [
        _inline_text(tokens[index])
        for index in range(start, end)
        if str(getattr(tokens[index], 'type', '')) == 'inline'
    ]
    return ' '.join(part for part in parts if part).strip()


def _consume_list(tokens: list[Any], start_index: int) -> tuple[Block, int]:
    open_token = tokens[start_index]
    open_type = str(getattr(open_token, 'type', ''))
    close_type = 'ordered_list_close' if open_type == 'ordered_list_open' else 'bullet_list_close'
    close_index = _find_close(tokens, start_index, open_type, close_type)

    items: list[str] = []
    cursor = start_index + 1
    while cursor < close_index:
        token_type = str(getattr(tokens[cursor], 'type', ''))
        if token_type != 'list_item_open':
            cursor += 1
            continue
        item_close = _find_close(tokens, cursor, 'list_item_open', 'list_item_close')
        # Nested markup is flattened into the item's text.
        items.append(_collect_inline(tokens, cursor + 1, item_close))
        cursor = item_close + 1

    if open_type == 'ordered_list_open':
        start_value = _token_attr(open_token, 'start')
        try:
            start = int(start_value) if start_value else 1
        except ValueError:
            start = 1
        return Block.numbered_list(items, start=start), close_index + 1
    return Block.bullet_list(items), close_index + 1


def _consume_table(tokens: list[Any], start_index: int) -> tuple[Block, int]:
    close_index = _find_close(tokens, start_index, 'table_open', 'table_close')
    headers: list[str] = []
    rows: list[list[str]] = []
    in_header = False
    current_row: list[str] = []

    cursor = start_index + 1
    while cursor < close_index:
        token = tokens[cursor]
        token_type = str(getattr(token, 'type', ''))
        if token_type == 'thead_open':
            in_header = True
        elif token_type == 'thead_close':
            in_header = False
        elif token_type == 'tr_open':
            current_row = []
        elif token_type == 'inline':
            current_row.append(_inline_text(token))
        elif token_type == 'tr_close':
            if in_header and not headers:
                headers = list(current_row)
            else:
                rows.append(list(current_row))
            current_row = []
        cursor += 1

    return Block.table(headers, rows), close_index + 1


def parse_markdown(markdown: str) -> list[Block]:
    clean = _normalize_newlines(str(markdown or '')).strip()
    if not clean:
        return []

    tokens = _markdown_parser().parse(clean)
    blocks: list[Block] = []

    cursor = 0
    while cursor < len(tokens):
        token = tokens[cursor]
        token_type = str(getattr(token, 'type', ''))

        if token_type == 'heading_open':
            level_match = re.search(r'(\d+)', str(getattr(token, 'tag', '') or ''))
            level = int(level_match.group(1)) if level_match else 2
            inline_token = tokens[cursor + 1] if cursor + 1 < len(tokens) else None
            blocks.append(Block.heading(level, _inline_text(inline_token) if inline_token else ''))
            cursor += 3
            continue

        if token_type == 'paragraph_open':
            inline_token = tokens[cursor + 1] if cursor + 1 < len(tokens) else None
            blocks.append(Block.paragraph(_inline_text(inline_token) if inline_token else ''))
            cursor += 3
            continue

        if token_type in {'bullet_list_open', 'ordered_list_open'}:
            block, cursor = _consume_list(tokens, cursor)
            blocks.append(block)
            continue

        if token_type == 'table_open':
            block, cursor = _consume_table(tokens, cursor)
            blocks.append(block)
            continue

        if token_type in {'fence', 'code_block'}:
            content = _normalize_newlines(str(getattr(token, 'content', '') or ''))
            for line in content.split('\n'):
                if line.strip():
                    blocks.append(Block.paragraph(line.rstrip()))
            cursor += 1
            continue

        if token_type == 'blockquote_open':
            close_index = _find_close(tokens, cursor, 'blockquote_open', 'blockquote_close')
            blocks.append(Block.paragraph(_collect_inline(tokens, cursor + 1, close_index)))
            cursor = close_index + 1
            continue

        cursor += 1

    return blocks


def blocks_to_text(blocks: list[Block]) -> str:
    return '\n'.join(block.plain_text() for block in blocks if not block.is_empty())
