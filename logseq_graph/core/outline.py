"""Derived outline tree.

Pages store blocks as a flat list with a depth per block. When an operation
needs hierarchy, the tree is rebuilt on demand from that list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from logseq_graph.data_models import Block


@dataclass
class OutlineNode:
    block: Block
    children: list["OutlineNode"] = field(default_factory=list)

    def as_payload(self) -> dict[str, Any]:
        payload = self.block.as_payload()
        payload["children"] = [child.as_payload() for child in self.children]
        return payload


def build_tree(blocks: list[Block]) -> list[OutlineNode]:
    """Nest blocks under the nearest preceding block with a smaller depth.

    Blocks that skip levels attach to that nearest shallower block; blocks with
    no shallower predecessor become roots.
    """
    roots: list[OutlineNode] = []
    stack: list[OutlineNode] = []
    for block in blocks:
        node = OutlineNode(block)
        while stack and stack[-1].block.depth >= block.depth:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def descendants(blocks: list[Block], index: int) -> list[Block]:
    """Return the blocks nested under ``blocks[index]``, in file order."""
    parent = blocks[index]
    nested: list[Block] = []
    for block in blocks[index + 1:]:
        if block.depth <= parent.depth:
            break
        nested.append(block)
    return nested
