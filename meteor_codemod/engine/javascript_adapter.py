"""
JavaScript/TypeScript language adapter for tree-sitter.
"""
import logging
import os
from typing import Any, Dict, Optional, Tuple

import tree_sitter

from .types import LanguageAdapter

logger = logging.getLogger(__name__)


def node_text_to_str(node_text: Any) -> str:
    """Helper to convert tree-sitter node.text to string, handling bytes/str."""
    if node_text is None:
        return ""
    if isinstance(node_text, bytes):
        return node_text.decode('utf-8', errors='ignore')
    return str(node_text)


class JavaScriptAdapter(LanguageAdapter):
    """Tree-sitter adapter for Meteor application sources.

    Plain JavaScript (and JSX) goes through tree-sitter-javascript; ``.ts``
    and ``.tsx`` files are parsed with the matching tree-sitter-typescript
    grammar so the same rules run over both.
    """

    _GRAMMARS = {
        ".js": "javascript",
        ".jsx": "javascript",
        ".mjs": "javascript",
        ".cjs": "javascript",
        ".ts": "typescript",
        ".tsx": "tsx",
    }

    def __init__(self):
        """Initialize the adapter; parsers are created on first use."""
        self._parsers: Dict[str, Any] = {}

    @property
    def language_id(self) -> str:
        """Return the language identifier."""
        return "javascript"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions."""
        return tuple(self._GRAMMARS)

    def language_for(self, file_path: Optional[str]) -> str:
        """Return the grammar name used for a file path."""
        if not file_path:
            return "javascript"
        ext = os.path.splitext(file_path)[1].lower()
        return self._GRAMMARS.get(ext, "javascript")

    def _load_language(self, grammar: str):
        if grammar == "typescript":
            from tree_sitter_typescript import language_typescript
            return tree_sitter.Language(language_typescript())
        if grammar == "tsx":
            from tree_sitter_typescript import language_tsx
            return tree_sitter.Language(language_tsx())
        from tree_sitter_javascript import language
        return tree_sitter.Language(language())

    def _get_parser(self, grammar: str):
        """Get or create the tree-sitter parser for a grammar."""
        parser = self._parsers.get(grammar)
        if parser is None:
            parser = tree_sitter.Parser()
            parser.language = self._load_language(grammar)
            self._parsers[grammar] = parser
            logger.debug(f"{grammar} parser initialized")
        return parser

    def parse(self, text: str, file_path: Optional[str] = None) -> Any:
        """Parse text and return a Tree-sitter tree."""
        parser = self._get_parser(self.language_for(file_path))

        # Handle both str and bytes input
        if isinstance(text, bytes):
            text_bytes = text
        else:
            text_bytes = text.encode('utf-8')

        return parser.parse(text_bytes)

    def node_text(self, text: str, start_byte: int, end_byte: int) -> str:
        """Extract text between byte offsets."""
        if isinstance(text, bytes):
            text_bytes = text
        else:
            text_bytes = text.encode('utf-8')
        return text_bytes[start_byte:end_byte].decode('utf-8', errors='ignore')

    def byte_to_linecol(self, text: str, byte: int) -> Tuple[int, int]:
        """Convert byte offset to (line, column) 1-based."""
        if isinstance(text, bytes):
            text_bytes = text
        else:
            text_bytes = text.encode('utf-8')
        prefix = text_bytes[:byte]
        line = prefix.count(b'\n') + 1
        line_start = prefix.rfind(b'\n') + 1
        column = len(prefix[line_start:].decode('utf-8', errors='ignore')) + 1
        return line, column

    def first_syntax_error(self, tree: Any) -> Optional[Any]:
        """Return the first ERROR or MISSING node in the tree, if any."""
        if tree is None or not tree.root_node.has_error:
            return None

        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node
            if node.has_error:
                stack.extend(reversed(node.children))
        return tree.root_node

    def has_syntax_errors(self, tree: Any) -> bool:
        """Check whether the parse produced ERROR or MISSING nodes."""
        return self.first_syntax_error(tree) is not None


# Default instance shared by the runner and tests
default_javascript_adapter = JavaScriptAdapter()
