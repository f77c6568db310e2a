"""
Sections — a header plus the blocks that must stay associated with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from layout.blocks import Block, SectionHeader
from layout.context import RenderContext
from layout.measure import measure, measure_lead, measure_section_header
from layout.renderers import render_block

logger = logging.getLogger(__name__)


@dataclass
class Section:
    header: Optional[str]
    blocks: List[Block] = field(default_factory=list)
    keep_together: bool = False
    start_on_new_page: bool = False

    def add(self, block: Optional[Block]) -> "Section":
        if block is not None:
            self.blocks.append(block)
        return self


def place_section(ctx: RenderContext, section: Section) -> bool:
    """Place a section's header and blocks; returns False when it was omitted.

    A section whose blocks all measure zero is dropped along with its header.
    Otherwise the header is reserved together with the leading part of the
    first visible block so it never ends a page on its own. ``keep_together``
    moves the whole section to the next page when that keeps it on one page.
    """
    width, theme = ctx.content_width, ctx.theme
    visible = [(b, measure(b, width, theme)) for b in section.blocks]
    visible = [(b, h) for b, h in visible if h > 0]
    if not visible:
        if section.header:
            logger.info(f"Section '{section.header}' has no content; omitted")
        return False

    header = SectionHeader(section.header) if section.header else None
    header_height = measure_section_header(header, width, theme) if header else 0.0

    if section.start_on_new_page and ctx.cursor.y > 0:
        ctx.new_page()

    total = header_height + sum(h for _, h in visible)
    if section.keep_together and total <= ctx.content_height:
        ctx.ensure_space(total)
    elif header is not None:
        ctx.ensure_space(header_height + measure_lead(visible[0][0], width, theme))

    if header is not None:
        render_block(ctx, header)
    for block, _ in visible:
        render_block(ctx, block)
    return True
