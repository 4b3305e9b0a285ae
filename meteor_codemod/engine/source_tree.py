"""
Mutable view over an immutable tree-sitter tree.

tree-sitter trees cannot be edited in place, so rules record their mutations
against nodes (replace a node, prefix/suffix a node) and ``render`` re-prints
the tree from the original source with those edits applied. Every byte the
rules did not touch is copied through unchanged, which keeps the formatting of
untouched code exactly as it was.

Parent links are kept in a side index built once per tree, keyed by the
tree-sitter node id.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from .javascript_adapter import node_text_to_str
from .types import Change, ChangeType, FileInfo, RuleContext

logger = logging.getLogger(__name__)

# A replacement is either literal text or a callable evaluated at render time,
# so it can embed the rendered form of nodes edited later in the same pass.
Replacement = Union[str, Callable[[], str]]


@dataclass
class _Edit:
    kind: ChangeType
    node: Any
    description: str
    old_code: Optional[str] = None
    new_code: Optional[Replacement] = None


class SourceTree:
    """Source text, its parse tree, and the edits recorded against it."""

    def __init__(self, text: str, tree: Any, adapter: Any = None):
        self.text = text
        self.tree = tree
        self.root = tree.root_node
        self.adapter = adapter
        self._bytes = text.encode('utf-8')

        self._parents: Dict[int, Any] = {}
        self._build_parent_index()

        self._replacements: Dict[int, Replacement] = {}
        self._prefixes: Dict[int, List[str]] = {}
        self._suffixes: Dict[int, List[str]] = {}
        self._spans: List[Tuple[int, int]] = []
        self._edits: List[_Edit] = []

    def _build_parent_index(self) -> None:
        stack = [self.root]
        while stack:
            node = stack.pop()
            for child in node.children:
                self._parents[child.id] = node
                stack.append(child)

    # === Navigation ===

    def parent(self, node: Any) -> Optional[Any]:
        """Return the parent of a node, or None for the root."""
        return self._parents.get(node.id)

    def ancestors(self, node: Any) -> Iterator[Any]:
        """Yield the ancestors of a node, nearest first."""
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def walk(self, start: Any = None) -> Iterator[Any]:
        """Yield nodes in document order (pre-order)."""
        stack = [start if start is not None else self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def node_text(self, node: Any) -> str:
        """Original source text of a node, ignoring any recorded edits."""
        if node is None:
            return ""
        return node_text_to_str(self._bytes[node.start_byte:node.end_byte])

    @property
    def newline(self) -> str:
        """Line ending used by the file; CRLF if it has any."""
        return "\r\n" if "\r\n" in self.text else "\n"

    def line_indent(self, node: Any) -> str:
        """Leading whitespace of the line a node starts on."""
        line_start = self._bytes.rfind(b'\n', 0, node.start_byte) + 1
        line = self._bytes[line_start:node.start_byte].decode('utf-8', errors='ignore')
        return line[:len(line) - len(line.lstrip(" \t"))]

    def position(self, node: Any) -> Tuple[int, int]:
        """1-based (line, column) of a node's start."""
        if self.adapter is not None:
            return self.adapter.byte_to_linecol(self._bytes, node.start_byte)
        row, col = node.start_point
        return row + 1, col + 1

    # === Mutations ===

    def replace(self, node: Any, replacement: Replacement, description: str = "") -> None:
        """Replace a node with new text (or a callable producing it)."""
        self._replacements[node.id] = replacement
        self._record(_Edit("modify", node, description, self.node_text(node), replacement))

    def insert_before(self, node: Any, text: str, description: str = "") -> None:
        """Insert text immediately before a node."""
        self._prefixes.setdefault(node.id, []).append(text)
        self._record(_Edit("add", node, description, None, text.strip()))

    def wrap(self, node: Any, prefix: str, suffix: str, description: str = "") -> None:
        """Surround a node with a prefix and suffix."""
        self._prefixes.setdefault(node.id, []).append(prefix)
        self._suffixes.setdefault(node.id, []).append(suffix)
        self._record(_Edit("add", node, description, None, f"{prefix.strip()}{suffix.strip()}"))

    def _record(self, edit: _Edit) -> None:
        self._spans.append((edit.node.start_byte, edit.node.end_byte))
        self._edits.append(edit)

    @property
    def has_edits(self) -> bool:
        return bool(self._edits)

    def is_replaced(self, node: Any) -> bool:
        return node.id in self._replacements

    def is_detached(self, node: Any) -> bool:
        """True if some ancestor of the node has been replaced wholesale."""
        return any(self.is_replaced(ancestor) for ancestor in self.ancestors(node))

    # === Serialization ===

    def _slice(self, start: int, end: int) -> str:
        return self._bytes[start:end].decode('utf-8', errors='ignore')

    def _touched(self, node: Any) -> bool:
        start, end = node.start_byte, node.end_byte
        return any(start <= s and e <= end for s, e in self._spans)

    @staticmethod
    def _resolve(replacement: Replacement) -> str:
        return replacement() if callable(replacement) else replacement

    def render(self, node: Any) -> str:
        """Source text of a node with every recorded edit applied."""
        key = node.id
        if key in self._replacements:
            body = self._resolve(self._replacements[key])
        elif not self._touched(node):
            body = self._slice(node.start_byte, node.end_byte)
        else:
            pieces = []
            cursor = node.start_byte
            for child in node.children:
                pieces.append(self._slice(cursor, child.start_byte))
                pieces.append(self.render(child))
                cursor = child.end_byte
            pieces.append(self._slice(cursor, node.end_byte))
            body = "".join(pieces)

        prefix = "".join(self._prefixes.get(key, ()))
        suffix = "".join(reversed(self._suffixes.get(key, ())))
        return f"{prefix}{body}{suffix}"

    def to_source(self) -> str:
        """Serialize the whole file."""
        if not self._edits:
            return self.text
        return (self._slice(0, self.root.start_byte)
                + self.render(self.root)
                + self._slice(self.root.end_byte, len(self._bytes)))

    def changes(self) -> List[Change]:
        """Change records for the edits that survive serialization."""
        changes = []
        for edit in self._edits:
            if self.is_detached(edit.node):
                continue
            line, column = self.position(edit.node)
            new_code = edit.new_code
            if new_code is not None:
                new_code = self._resolve(new_code)
            changes.append(Change(
                type=edit.kind,
                description=edit.description,
                line=line,
                column=column,
                old_code=edit.old_code,
                new_code=new_code,
            ))
        return changes


def make_context(file: FileInfo, adapter: Any, options: Optional[Dict[str, Any]] = None) -> RuleContext:
    """Parse a file and wrap it in a fresh RuleContext for one rule pass."""
    tree = adapter.parse(file.source, file.path)
    return RuleContext(
        file_path=file.path,
        text=file.source,
        tree=SourceTree(file.source, tree, adapter),
        adapter=adapter,
        config=dict(options or {}),
    )
