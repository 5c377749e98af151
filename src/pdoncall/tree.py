"""Append-only text tree printer."""

from __future__ import annotations

MID = "├─"
LAST = "└─"
BAR = " │ "
BLANK = "   "


class TreeNode:
    """Handle to a node owned by a ``TreePrinter``."""

    def __init__(self, tree: TreePrinter, index: int) -> None:
        self._tree = tree
        self.index = index

    @property
    def label(self) -> str:
        return self._tree._labels[self.index]

    def add_child(self, label: str) -> TreeNode:
        child = self._tree._new_node(label)
        self._tree._children[self.index].append(child.index)
        return child


class TreePrinter:
    """A forest of labelled nodes, rendered with box-drawing connectors.

    Nodes live in flat lists addressed by index. Each node keeps the
    ordered indexes of its children; roots are kept in insertion order.
    """

    def __init__(self) -> None:
        self._labels: list[str] = []
        self._children: list[list[int]] = []
        self._roots: list[int] = []

    def __len__(self) -> int:
        return len(self._labels)

    def _new_node(self, label: str) -> TreeNode:
        self._labels.append(label)
        self._children.append([])
        return TreeNode(self, len(self._labels) - 1)

    def add_root(self, label: str) -> TreeNode:
        node = self._new_node(label)
        self._roots.append(node.index)
        return node

    def _render_node(self, index: int, prefix: str, is_last: bool, lines: list[str]) -> None:
        connector = LAST if is_last else MID
        lines.append(f"{prefix} {connector} {self._labels[index]}\n")

        child_prefix = prefix + (BLANK if is_last else BAR)
        children = self._children[index]
        for pos, child in enumerate(children):
            self._render_node(child, child_prefix, pos == len(children) - 1, lines)

    def render(self) -> str:
        lines: list[str] = []
        for pos, root in enumerate(self._roots):
            self._render_node(root, "", pos == len(self._roots) - 1, lines)
        return "".join(lines)

    def __str__(self) -> str:
        return self.render()
