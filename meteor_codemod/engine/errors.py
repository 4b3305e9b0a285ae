"""Exceptions raised by the meteor-codemod engine."""

from typing import Optional


class CodemodError(Exception):
    """Base class for engine errors."""


class UnknownRuleError(CodemodError, KeyError):
    """A caller asked for a rule id that is not registered."""

    def __init__(self, rule_id: str):
        super().__init__(f"Rule {rule_id} not found")
        self.rule_id = rule_id

    def __str__(self) -> str:
        # KeyError would otherwise quote the message
        return self.args[0]


class RuleExecutionError(CodemodError):
    """A rule raised while rewriting a file."""

    def __init__(self, rule_id: str, cause: Exception, path: Optional[str] = None):
        super().__init__(f"Rule {rule_id} failed: {cause}")
        self.rule_id = rule_id
        self.cause = cause
        self.path = path


class ParseError(CodemodError):
    """Source text could not be parsed without syntax errors."""

    def __init__(self, path: str, line: int, column: int):
        super().__init__(f"Syntax error in {path} at line {line}, column {column}")
        self.path = path
        self.line = line
        self.column = column
