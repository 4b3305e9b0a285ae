"""
Tests for the Orchestrator and the CLI.
"""

import json
import logging

import pytest

from meteor_codemod.engine.config import EngineConfig
from meteor_codemod.engine.errors import ParseError, RuleExecutionError, UnknownRuleError
from meteor_codemod.engine.javascript_adapter import JavaScriptAdapter
from meteor_codemod.engine.registry import Registry, build_default_registry
from meteor_codemod.engine.runner import Orchestrator, main
from meteor_codemod.engine.types import RuleMeta
from meteor_codemod.rules.async_api import AsyncApiRule
from meteor_codemod.rules.meteor_user_async import MeteorUserAsyncRule

adapter = JavaScriptAdapter()

METHODS_SOURCE = """\
import { Roles } from 'meteor/alanning:roles';

Meteor.methods({
  'links.remove'(id) {
    const user = Meteor.user();
    if (!Roles.userIsInRole(user._id, 'admin')) {
      throw new Meteor.Error('forbidden');
    }
    Links.remove(id);
    return Links.find().count();
  },
});
"""

METHODS_EXPECTED = """\
import { Roles } from 'meteor/roles';

Meteor.methods({
  async 'links.remove'(id) {
    const user = await Meteor.userAsync();
    if (!await Roles.userIsInRoleAsync(user._id, 'admin')) {
      throw new Meteor.Error('forbidden');
    }
    await Links.removeAsync(id);
    return await Links.find().countAsync();
  },
});
"""


class BrokenRule:
    """A rule that always raises."""

    meta = RuleMeta(id="broken", description="always fails")

    def visit(self, ctx):
        raise RuntimeError("boom")


def make_orchestrator(*rules, config=None):
    registry = Registry()
    for rule in rules:
        registry.register_rule(rule)
    return Orchestrator(registry, config or EngineConfig(enabled_rules=["*"]), adapter)


class TestOrchestrator:

    def test_full_pipeline(self):
        orchestrator = Orchestrator(build_default_registry(), adapter=adapter)
        result = orchestrator.transform_source(METHODS_SOURCE, "server/methods.js")
        assert result.source == METHODS_EXPECTED
        assert result.has_changes
        assert result.path == "server/methods.js"

    def test_pipeline_is_idempotent(self):
        orchestrator = Orchestrator(build_default_registry(), adapter=adapter)
        once = orchestrator.transform_source(METHODS_SOURCE, "server/methods.js")
        twice = orchestrator.transform_source(once.source, "server/methods.js")
        assert not twice.has_changes
        assert twice.source == once.source
        assert twice.changes == []

    def test_unchanged_source(self):
        orchestrator = Orchestrator(build_default_registry(), adapter=adapter)
        result = orchestrator.transform_source("const a = [1, 2].map(f);\n", "a.js")
        assert not result.has_changes
        assert result.source == "const a = [1, 2].map(f);\n"
        assert result.changes == []

    def test_await_illegal_positions_are_left_alone(self):
        code = (
            "class Repo {\n"
            "  get first() {\n"
            "    return Links.findOne();\n"
            "  }\n"
            "  user = Meteor.user();\n"
            "}\n"
        )
        orchestrator = Orchestrator(build_default_registry(), adapter=adapter)
        result = orchestrator.transform_source(code, "repo.js")
        assert not result.has_changes
        assert result.source == code

    def test_changes_are_reported(self):
        orchestrator = make_orchestrator(AsyncApiRule())
        result = orchestrator.transform_source("Links.insert(doc);\n", "a.js")
        assert [(c.type, c.description, c.line, c.column) for c in result.changes] == [
            ("modify", "Renamed insert to insertAsync", 1, 7),
            ("add", "Added await", 1, 1),
        ]
        assert result.changes[0].to_dict()["newCode"] == "insertAsync"
        assert result.to_dict()["hasChanges"] is True

    def test_failing_rule_is_isolated(self, caplog):
        caplog.set_level(logging.ERROR)
        orchestrator = make_orchestrator(AsyncApiRule(), BrokenRule(), MeteorUserAsyncRule())
        code = "const doc = Links.findOne(id);\nconst user = Meteor.user();\n"
        result = orchestrator.transform_source(code, "test.js")
        assert result.source == "const doc = await Links.findOneAsync(id);\nconst user = await Meteor.userAsync();\n"
        assert result.has_changes
        assert "Rule broken failed on test.js: boom" in caplog.text

    def test_parse_error(self):
        orchestrator = Orchestrator(build_default_registry(), adapter=adapter)
        with pytest.raises(ParseError) as excinfo:
            orchestrator.transform_source("function (", "bad.js")
        assert str(excinfo.value).startswith("Syntax error in bad.js at line 1")

    def test_disabled_rules_are_skipped(self):
        config = EngineConfig(enabled_rules=["*"], transforms={"meteor-user-async": False})
        orchestrator = Orchestrator(build_default_registry(), config, adapter)
        result = orchestrator.transform_source("Meteor.user();\nLinks.remove(id);\n", "a.js")
        assert result.source == "Meteor.user();\nawait Links.removeAsync(id);\n"

    def test_enabled_patterns(self):
        config = EngineConfig(enabled_rules=["roles-*"])
        orchestrator = Orchestrator(build_default_registry(), config, adapter)
        assert [rule.meta.id for rule in orchestrator.enabled_rules()] == ["roles-migration"]

    def test_rule_options_reach_the_rule(self):
        config = EngineConfig(enabled_rules=["meteor-call-async"],
                              rule_configs={"meteor-call-async": {"decompose_callbacks": False}})
        orchestrator = Orchestrator(build_default_registry(), config, adapter)
        code = "Meteor.call('m', function (err, res) {});\n"
        result = orchestrator.transform_source(code, "a.js")
        assert result.source == "await Meteor.callAsync('m', function (err, res) {});\n"


class TestRunRule:

    def setup_method(self):
        self.orchestrator = make_orchestrator(AsyncApiRule(), BrokenRule(),
                                              config=EngineConfig(enabled_rules=[]))

    def test_runs_single_rule_even_if_not_enabled(self):
        result = self.orchestrator.run_rule("async-api", "Links.remove(id);\n", "a.js")
        assert result.source == "await Links.removeAsync(id);\n"
        assert result.has_changes

    def test_unknown_rule(self):
        with pytest.raises(UnknownRuleError, match="Rule nope not found"):
            self.orchestrator.run_rule("nope", "x();\n", "a.js")

    def test_rule_failure_is_wrapped(self):
        with pytest.raises(RuleExecutionError, match="Rule broken failed: boom") as excinfo:
            self.orchestrator.run_rule("broken", "x();\n", "a.js")
        assert excinfo.value.rule_id == "broken"
        assert isinstance(excinfo.value.cause, RuntimeError)


class TestTransformFiles:

    def test_reads_named_files_without_writing(self, tmp_path, caplog):
        caplog.set_level(logging.ERROR)
        good = tmp_path / "good.js"
        good.write_text("Links.insert(doc);\n")
        plain = tmp_path / "plain.ts"
        plain.write_text("const n: number = 1;\n")
        broken = tmp_path / "broken.js"
        broken.write_text("function (\n")
        missing = tmp_path / "missing.js"

        orchestrator = Orchestrator(build_default_registry(), adapter=adapter)
        results = orchestrator.transform_files([str(good), str(plain), str(broken), str(missing)])

        assert [r.path for r in results] == [str(good), str(plain)]
        assert results[0].source == "await Links.insertAsync(doc);\n"
        assert not results[1].has_changes
        assert good.read_text() == "Links.insert(doc);\n"
        assert "broken.js" in caplog.text
        assert "missing.js" in caplog.text


class TestCli:

    def _write(self, tmp_path, name="methods.js", code="Links.insert(doc);\n"):
        path = tmp_path / name
        path.write_text(code)
        return path

    def test_list_rules(self, capsys):
        assert main(["--list-rules"]) == 0
        out = capsys.readouterr().out
        assert "async-api" in out
        assert "callback-to-await" in out

    def test_summary(self, tmp_path, capsys):
        path = self._write(tmp_path)
        assert main([str(path)]) == 0
        out = capsys.readouterr().out
        assert f"Would update: {path}" in out
        assert "1 of 1 files would change" in out
        assert path.read_text() == "Links.insert(doc);\n"

    def test_json_output(self, tmp_path, capsys):
        path = self._write(tmp_path)
        assert main([str(path), "--json"]) == 0
        [result] = json.loads(capsys.readouterr().out)
        assert result["hasChanges"] is True
        assert result["source"] == "await Links.insertAsync(doc);\n"
        assert result["changes"][0]["type"] == "modify"

    def test_diff_output(self, tmp_path, capsys):
        path = self._write(tmp_path)
        assert main([str(path), "--diff"]) == 0
        out = capsys.readouterr().out
        assert "-Links.insert(doc);" in out
        assert "+await Links.insertAsync(doc);" in out

    def test_rules_and_disable_flags(self, tmp_path, capsys):
        path = self._write(tmp_path, code="Links.insert(doc);\nMeteor.user();\n")
        assert main([str(path), "--json", "--rules", "*-async", "--disable", "async-api"]) == 0
        [result] = json.loads(capsys.readouterr().out)
        assert result["source"] == "Links.insert(doc);\nawait Meteor.userAsync();\n"

    def test_config_file_is_used(self, tmp_path, capsys):
        (tmp_path / ".meteor-codemod.yml").write_text("enabled_rules: [index-async]\n")
        path = self._write(tmp_path, code="Links.insert(doc);\nLinks._ensureIndex({ a: 1 });\n")
        assert main([str(path), "--json"]) == 0
        [result] = json.loads(capsys.readouterr().out)
        assert result["source"] == "Links.insert(doc);\nawait Links.createIndexAsync({ a: 1 });\n"

    def test_missing_file_fails(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.js")]) == 1
