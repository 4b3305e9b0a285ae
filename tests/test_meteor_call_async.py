"""
Tests for the meteor-call-async rule, including callback decomposition.
"""

from meteor_codemod.engine.javascript_adapter import JavaScriptAdapter
from meteor_codemod.engine.types import FileInfo
from meteor_codemod.rules.meteor_call_async import MeteorCallAsyncRule

adapter = JavaScriptAdapter()


def run_rule(rule, code: str, path: str = "test.js", options=None):
    return rule.transform(FileInfo(path, code), adapter, options)


class TestMeteorCallAsyncRule:

    def setup_method(self):
        self.rule = MeteorCallAsyncRule()

    def test_call_without_callback(self):
        assert run_rule(self.rule, "Meteor.call('links.reset', 1);\n") == "await Meteor.callAsync('links.reset', 1);\n"

    def test_other_receivers_are_ignored(self):
        assert run_rule(self.rule, "Other.call('m');\nfn.call(this, 1);\n") is None
        assert run_rule(self.rule, "Meteor['call']('m');\n") is None

    def test_error_result_callback_is_decomposed(self):
        code = ("Meteor.call('m', p, function(error, result){ if (error) { handleErr(error); } "
                "else { handleOk(result); } })\n")
        expected = (
            "try {\n"
            "  const result = await Meteor.callAsync('m', p);\n"
            "  handleOk(result);\n"
            "} catch (error) {\n"
            "  handleErr(error);\n"
            "}\n"
        )
        assert run_rule(self.rule, code) == expected

    def test_single_parameter_callback_falls_back(self):
        code = "Meteor.call('m', p, function(data){ use(data); });\n"
        expected = "await Meteor.callAsync('m', p, function(data){ use(data); });\n"
        assert run_rule(self.rule, code) == expected

    def test_unrecognised_parameter_names_fall_back(self):
        code = "Meteor.call('m', (e, value) => show(value));\n"
        assert run_rule(self.rule, code) == "await Meteor.callAsync('m', (e, value) => show(value));\n"

    def test_callback_outside_statement_falls_back(self):
        code = "const r = Meteor.call('m', function (err, res) {});\n"
        assert run_rule(self.rule, code) == "const r = await Meteor.callAsync('m', function (err, res) {});\n"

    def test_call_in_class_field_is_left_alone(self):
        code = "class Form {\n  defaults = Meteor.call('defaults');\n}\n"
        assert run_rule(self.rule, code) is None

    def test_decomposition_inside_function(self):
        code = (
            "function save(doc) {\n"
            "  Meteor.call('links.insert', doc, (err, res) => {\n"
            "    if (err) {\n"
            "      alert(err.reason);\n"
            "      return;\n"
            "    }\n"
            "    console.log(res);\n"
            "  });\n"
            "}\n"
        )
        expected = (
            "async function save(doc) {\n"
            "  try {\n"
            "    const res = await Meteor.callAsync('links.insert', doc);\n"
            "    console.log(res);\n"
            "  } catch (err) {\n"
            "    alert(err.reason);\n"
            "    return;\n"
            "  }\n"
            "}\n"
        )
        assert run_rule(self.rule, code) == expected

    def test_else_if_branch_goes_to_try(self):
        code = (
            "Meteor.call('m', function (error, data) {\n"
            "  if (error) {\n"
            "    fail(error);\n"
            "  } else if (data.ok) {\n"
            "    done(data);\n"
            "  }\n"
            "});\n"
        )
        expected = (
            "try {\n"
            "  const data = await Meteor.callAsync('m');\n"
            "  if (data.ok) {\n"
            "    done(data);\n"
            "  }\n"
            "} catch (error) {\n"
            "  fail(error);\n"
            "}\n"
        )
        assert run_rule(self.rule, code) == expected

    def test_expression_bodied_arrow(self):
        code = "Meteor.call('ping', (error, result) => console.log(result));\n"
        expected = (
            "try {\n"
            "  const result = await Meteor.callAsync('ping');\n"
            "  console.log(result);\n"
            "} catch (error) {\n"
            "}\n"
        )
        assert run_rule(self.rule, code) == expected

    def test_nested_call_inside_callback(self):
        code = (
            "function sync() {\n"
            "  Meteor.call('a', function (err, res) {\n"
            "    if (err) {\n"
            "      return;\n"
            "    }\n"
            "    Meteor.call('b', res);\n"
            "  });\n"
            "}\n"
        )
        expected = (
            "async function sync() {\n"
            "  try {\n"
            "    const res = await Meteor.callAsync('a');\n"
            "    await Meteor.callAsync('b', res);\n"
            "  } catch (err) {\n"
            "    return;\n"
            "  }\n"
            "}\n"
        )
        assert run_rule(self.rule, code) == expected

    def test_decomposition_can_be_disabled(self):
        code = "Meteor.call('m', function (err, res) { show(res); });\n"
        output = run_rule(self.rule, code, options={"decompose_callbacks": False})
        assert output == "await Meteor.callAsync('m', function (err, res) { show(res); });\n"

    def test_indent_option(self):
        code = "Meteor.call('m', function (err, res) { show(res); });\n"
        output = run_rule(self.rule, code, options={"indent": "    "})
        assert output == "try {\n    const res = await Meteor.callAsync('m');\n    show(res);\n} catch (err) {\n}\n"

    def test_typescript_parameters(self):
        code = "Meteor.call('m', (err: Meteor.Error, res: string) => { show(res); });\n"
        output = run_rule(self.rule, code, path="client.ts")
        assert output == "try {\n  const res = await Meteor.callAsync('m');\n  show(res);\n} catch (err) {\n}\n"

    def test_idempotent(self):
        code = (
            "function save(doc) {\n"
            "  Meteor.call('links.insert', doc, (err, res) => {\n"
            "    if (err) { alert(err); } else { show(res); }\n"
            "  });\n"
            "  Meteor.call('links.count');\n"
            "}\n"
        )
        once = run_rule(self.rule, code)
        assert once is not None
        assert run_rule(self.rule, once) is None
