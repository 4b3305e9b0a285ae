"""
Orchestrator and CLI for the meteor-codemod engine.

The Orchestrator threads one file's source through the enabled rules in
registration order: each rule parses the current source, records its edits
and serializes, and its output is the next rule's input. A rule that raises
is logged and skipped; the file keeps the last good source.

Files are only read, never written. Callers name the files explicitly.
"""

import argparse
import difflib
import json
import logging
import sys
from typing import List, Optional, Tuple

from .config import EngineConfig, find_config_file, get_default_config, load_config
from .errors import ParseError, RuleExecutionError
from .javascript_adapter import JavaScriptAdapter, default_javascript_adapter
from .registry import Registry, build_default_registry
from .source_tree import make_context
from .types import Change, FileInfo, Rule, TransformResult

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs a registry's enabled rules over sources and files."""

    def __init__(self, registry: Registry, config: Optional[EngineConfig] = None,
                 adapter: Optional[JavaScriptAdapter] = None):
        self.registry = registry
        self.config = config or get_default_config()
        self.adapter = adapter or default_javascript_adapter

    def enabled_rules(self) -> List[Rule]:
        """Rules selected by the config, in registration order."""
        return self.registry.get_enabled_rules(self.config.enabled_rules, self.config.disabled_rules())

    def _check_syntax(self, source: str, path: str) -> None:
        tree = self.adapter.parse(source, path)
        error = self.adapter.first_syntax_error(tree)
        if error is not None:
            row, column = error.start_point
            raise ParseError(path, row + 1, column + 1)

    def _apply_rule(self, rule: Rule, source: str, path: str) -> Tuple[str, List[Change]]:
        """Run one rule; returns the new source and its changes."""
        ctx = make_context(FileInfo(path, source), self.adapter, self.config.options_for(rule.meta.id))
        output = rule.visit(ctx)
        if output is None or output == source:
            return source, []

        if self.adapter.has_syntax_errors(self.adapter.parse(output, path)):
            raise ValueError("rewrite produced code that does not parse")
        return output, ctx.tree.changes()

    def transform_source(self, source: str, path: str) -> TransformResult:
        """
        Run every enabled rule over one source text.

        Raises:
            ParseError: if the input itself does not parse
        """
        self._check_syntax(source, path)

        current = source
        changes: List[Change] = []
        for rule in self.enabled_rules():
            try:
                current, rule_changes = self._apply_rule(rule, current, path)
            except Exception as e:
                logger.error(f"Rule {rule.meta.id} failed on {path}: {e}")
                continue

            if rule_changes:
                logger.info(f"{rule.meta.id}: {len(rule_changes)} changes in {path}")
            changes.extend(rule_changes)

        return TransformResult(path=path, source=current, has_changes=current != source, changes=changes)

    def run_rule(self, rule_id: str, source: str, path: str) -> TransformResult:
        """
        Run a single rule, whether or not the config enables it.

        Raises:
            UnknownRuleError: if no rule with that id is registered
            ParseError: if the input does not parse
            RuleExecutionError: if the rule itself fails
        """
        rule = self.registry.require(rule_id)
        self._check_syntax(source, path)

        try:
            output, changes = self._apply_rule(rule, source, path)
        except Exception as e:
            raise RuleExecutionError(rule_id, e, path) from e

        return TransformResult(path=path, source=output, has_changes=output != source, changes=changes)

    def transform_file(self, path: str) -> TransformResult:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        return self.transform_source(source, path)

    def transform_files(self, paths: List[str]) -> List[TransformResult]:
        """Transform files one after another.

        A file that cannot be read or parsed is logged and left out of the
        results; the remaining files are still processed.
        """
        results = []
        for path in paths:
            try:
                results.append(self.transform_file(path))
            except (OSError, UnicodeDecodeError, ParseError) as e:
                logger.error(f"Error processing {path}: {e}")
        return results


def format_diff(original: str, result: TransformResult) -> str:
    """Unified diff between a file's original source and a result."""
    return "".join(difflib.unified_diff(
        original.splitlines(keepends=True),
        result.source.splitlines(keepends=True),
        fromfile=f"a/{result.path}",
        tofile=f"b/{result.path}",
    ))


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="meteor-codemod",
        description="Rewrite Meteor 2.x callback/sync API usage to Meteor 3 async/await",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  meteor-codemod server/methods.js --diff
  meteor-codemod imports/api/*.js --rules "async-api,cursor-async" --json
  meteor-codemod client/main.js --disable callback-to-await --verbose
  meteor-codemod --list-rules
        """
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Files to transform (nothing is written back)"
    )

    parser.add_argument(
        "--config",
        help="Path to configuration file (default: search upwards from the first path)"
    )

    parser.add_argument(
        "--rules",
        help="Comma-separated rule IDs/patterns to run, overriding the config (e.g. 'async-api,*-async')"
    )

    parser.add_argument(
        "--disable",
        action="append",
        default=[],
        metavar="RULE",
        help="Switch a rule off (repeatable)"
    )

    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="List available rules and exit"
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--diff",
        action="store_true",
        help="Print a unified diff for every changed file"
    )
    output.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    # Load configuration
    config_path = args.config
    if not config_path:
        config_path = find_config_file(args.paths[0] if args.paths else ".")

    config = load_config(config_path)
    _setup_logging(args.verbose or config.verbose)
    logger.debug(f"Using config: {config_path or 'defaults'}")

    if args.rules:
        config.enabled_rules = [pattern.strip() for pattern in args.rules.split(",") if pattern.strip()]
    for rule_id in args.disable:
        config.transforms[rule_id] = False

    registry = build_default_registry(config.plugins)

    if args.list_rules:
        for rule in registry.get_all_rules():
            print(f"{rule.meta.id:<20} {rule.meta.description}")
        return 0

    if not args.paths:
        parser.error("no files given")

    orchestrator = Orchestrator(registry, config, default_javascript_adapter)
    rules = orchestrator.enabled_rules()
    logger.debug(f"Running {len(rules)} rules: {[r.meta.id for r in rules]}")

    originals = {}
    results = []
    for path in args.paths:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                originals[path] = f.read()
            results.append(orchestrator.transform_source(originals[path], path))
        except (OSError, UnicodeDecodeError, ParseError) as e:
            logger.error(f"Error processing {path}: {e}")

    if args.json:
        print(json.dumps([result.to_dict() for result in results], indent=2))
    elif args.diff:
        for result in results:
            if result.has_changes:
                sys.stdout.write(format_diff(originals[result.path], result))
    else:
        changed = [result for result in results if result.has_changes]
        for result in changed:
            print(f"Would update: {result.path} ({len(result.changes)} changes)")
        print(f"{len(changed)} of {len(args.paths)} files would change")

    return 0 if len(results) == len(args.paths) else 1


if __name__ == "__main__":
    sys.exit(main())
