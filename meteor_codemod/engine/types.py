"""
Core types for the meteor-codemod rewrite engine.

This module provides shared dataclasses and types used across the engine,
the language adapter, and the rewrite rules.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Protocol, Tuple
from abc import ABC, abstractmethod


# Type aliases for clarity
ChangeType = Literal["add", "modify", "remove"]


class NodeKind(Enum):
    """Closed set of syntax node kinds the rules dispatch on.

    Everything the rules do not care about classifies as OTHER.
    """
    CALL = "call"
    MEMBER = "member"
    SUBSCRIPT = "subscript"
    IDENTIFIER = "identifier"
    PROPERTY_NAME = "property_name"
    THIS = "this"
    FUNCTION_DECLARATION = "function_declaration"
    FUNCTION_EXPRESSION = "function_expression"
    ARROW_FUNCTION = "arrow_function"
    METHOD = "method"
    PROPERTY = "property"
    AWAIT = "await"
    IF = "if"
    ELSE = "else"
    TRY = "try"
    BLOCK = "block"
    EXPRESSION_STATEMENT = "expression_statement"
    VARIABLE_DECLARATOR = "variable_declarator"
    ASSIGNMENT = "assignment"
    IMPORT = "import"
    STRING = "string"
    PARENTHESIZED = "parenthesized"
    BINARY = "binary"
    FIELD = "field"
    PARAMETERS = "parameters"
    ARGUMENTS = "arguments"
    COMMENT = "comment"
    OTHER = "other"


# tree-sitter node type -> NodeKind, shared by the JavaScript, TypeScript and TSX grammars
_NODE_KINDS: Dict[str, NodeKind] = {
    "call_expression": NodeKind.CALL,
    "member_expression": NodeKind.MEMBER,
    "subscript_expression": NodeKind.SUBSCRIPT,
    "identifier": NodeKind.IDENTIFIER,
    "property_identifier": NodeKind.PROPERTY_NAME,
    "private_property_identifier": NodeKind.PROPERTY_NAME,
    "this": NodeKind.THIS,
    "function_declaration": NodeKind.FUNCTION_DECLARATION,
    "generator_function_declaration": NodeKind.FUNCTION_DECLARATION,
    "function_expression": NodeKind.FUNCTION_EXPRESSION,
    "function": NodeKind.FUNCTION_EXPRESSION,  # older tree-sitter-javascript releases
    "generator_function": NodeKind.FUNCTION_EXPRESSION,
    "arrow_function": NodeKind.ARROW_FUNCTION,
    "method_definition": NodeKind.METHOD,
    "pair": NodeKind.PROPERTY,
    "await_expression": NodeKind.AWAIT,
    "if_statement": NodeKind.IF,
    "else_clause": NodeKind.ELSE,
    "try_statement": NodeKind.TRY,
    "statement_block": NodeKind.BLOCK,
    "expression_statement": NodeKind.EXPRESSION_STATEMENT,
    "variable_declarator": NodeKind.VARIABLE_DECLARATOR,
    "assignment_expression": NodeKind.ASSIGNMENT,
    "import_statement": NodeKind.IMPORT,
    "string": NodeKind.STRING,
    "parenthesized_expression": NodeKind.PARENTHESIZED,
    "binary_expression": NodeKind.BINARY,
    "field_definition": NodeKind.FIELD,
    "public_field_definition": NodeKind.FIELD,
    "class_static_block": NodeKind.FIELD,
    "formal_parameters": NodeKind.PARAMETERS,
    "arguments": NodeKind.ARGUMENTS,
    "comment": NodeKind.COMMENT,
}

FUNCTION_KINDS = frozenset({
    NodeKind.FUNCTION_DECLARATION,
    NodeKind.FUNCTION_EXPRESSION,
    NodeKind.ARROW_FUNCTION,
    NodeKind.METHOD,
})

# Function values that can appear as call arguments
FUNCTION_LITERAL_KINDS = frozenset({
    NodeKind.FUNCTION_EXPRESSION,
    NodeKind.ARROW_FUNCTION,
})


def classify(node: Any) -> NodeKind:
    """Map a tree-sitter node onto the closed NodeKind set."""
    if node is None:
        return NodeKind.OTHER
    return _NODE_KINDS.get(node.type, NodeKind.OTHER)


@dataclass(frozen=True)
class Change:
    """A single edit a rule made to a file."""
    type: ChangeType
    description: str
    line: Optional[int] = None
    column: Optional[int] = None
    old_code: Optional[str] = None
    new_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "line": self.line,
            "column": self.column,
            "oldCode": self.old_code,
            "newCode": self.new_code,
        }


@dataclass
class TransformResult:
    """Result of running one rule, or the whole pipeline, over a file."""
    path: str
    source: str
    has_changes: bool
    changes: List[Change] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "source": self.source,
            "hasChanges": self.has_changes,
            "changes": [change.to_dict() for change in self.changes],
        }


@dataclass(frozen=True)
class FileInfo:
    """The file handed to a rule: its path and current source."""
    path: str
    source: str


@dataclass(frozen=True)
class RuleMeta:
    """Metadata about a rule.

    Attributes:
        id: Unique rule identifier (e.g., "async-api")
        description: Human-readable description
        category: Rule category for grouping ("collections", "cursors", ...)
        langs: Supported languages
    """
    id: str
    description: str
    category: str = "async"
    langs: Tuple[str, ...] = ("javascript", "typescript")


@dataclass
class RuleContext:
    """Context for one rule's pass over one file."""
    file_path: str
    text: str
    tree: Any  # SourceTree
    adapter: 'LanguageAdapter'  # Forward reference
    config: Dict[str, Any]
    # Populated by the rule at the start of its pass
    pending: Any = None  # PendingAsyncSet
    cursors: Any = None  # CursorFlowTracker

    @property
    def language(self):
        """Get language from adapter."""
        return self.adapter.language_for(self.file_path) if self.adapter else None

    def option(self, name: str, default: Any = None) -> Any:
        """Read a rule option, falling back to a default."""
        return (self.config or {}).get(name, default)


class Rule(Protocol):
    """Protocol for all rewrite rules in the engine.

    Rules are stateless: everything a pass needs lives on the RuleContext.
    """
    meta: RuleMeta

    def matches(self, node: Any, ctx: RuleContext) -> bool:
        """Return True if this rule rewrites the given node."""
        ...

    def rewrite(self, node: Any, ctx: RuleContext) -> None:
        """Record the edits for a matched node on ctx.tree."""
        ...

    def visit(self, ctx: RuleContext) -> Optional[str]:
        """Run a full pass over ctx.tree.

        Returns:
            The rewritten source, or None if nothing changed
        """
        ...

    def transform(self, file: FileInfo, adapter: 'LanguageAdapter',
                  options: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """Parse file.source, run a pass, and return the new source or None."""
        ...


class LanguageAdapter(ABC):
    """Abstract base class for language adapters."""

    @property
    @abstractmethod
    def language_id(self) -> str:
        """Return the language identifier (e.g., 'javascript')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions (e.g., ('.js', '.jsx'))."""
        pass

    @abstractmethod
    def parse(self, text: str, file_path: Optional[str] = None) -> Any:
        """Parse text and return a Tree-sitter tree."""
        pass

    @abstractmethod
    def node_text(self, text: str, start_byte: int, end_byte: int) -> str:
        """Extract text between byte offsets."""
        pass

    @abstractmethod
    def byte_to_linecol(self, text: str, byte: int) -> Tuple[int, int]:
        """Convert byte offset to (line, column) 1-based."""
        pass

    def language_for(self, file_path: Optional[str]) -> str:
        """Return the grammar used for a file path."""
        return self.language_id
