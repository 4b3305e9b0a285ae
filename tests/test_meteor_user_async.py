"""Tests for the meteor-user-async rule."""

from meteor_codemod.engine.javascript_adapter import JavaScriptAdapter
from meteor_codemod.engine.types import FileInfo
from meteor_codemod.rules.meteor_user_async import MeteorUserAsyncRule

adapter = JavaScriptAdapter()


def run_rule(rule, code: str, path: str = "test.js", options=None):
    return rule.transform(FileInfo(path, code), adapter, options)


class TestMeteorUserAsyncRule:

    def setup_method(self):
        self.rule = MeteorUserAsyncRule()

    def test_top_level_call(self):
        assert run_rule(self.rule, "const user = Meteor.user();\n") == "const user = await Meteor.userAsync();\n"

    def test_method_is_made_async(self):
        code = (
            "Meteor.methods({\n"
            "  whoami() {\n"
            "    return Meteor.user().username;\n"
            "  },\n"
            "});\n"
        )
        expected = (
            "Meteor.methods({\n"
            "  async whoami() {\n"
            "    return (await Meteor.userAsync()).username;\n"
            "  },\n"
            "});\n"
        )
        assert run_rule(self.rule, code) == expected

    def test_function_property_value_is_made_async(self):
        code = "Meteor.methods({\n  whoami: function () {\n    return Meteor.user();\n  },\n});\n"
        expected = "Meteor.methods({\n  whoami: async function () {\n    return await Meteor.userAsync();\n  },\n});\n"
        assert run_rule(self.rule, code) == expected

    def test_other_user_calls_are_ignored(self):
        assert run_rule(self.rule, "this.user();\nMeteor.userId();\naccounts.user();\n") is None

    def test_idempotent(self):
        once = run_rule(self.rule, "function me() {\n  return Meteor.user();\n}\n")
        assert once == "async function me() {\n  return await Meteor.userAsync();\n}\n"
        assert run_rule(self.rule, once) is None
