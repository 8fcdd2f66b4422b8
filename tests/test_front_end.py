import json
import unittest

from unhoist import syntax
from unhoist.diagnostics import Report, UnsupportedSyntax
from unhoist.engine import Yuck, analyze, read_program
from unhoist.front_end import NotESTree, parse_text, parse_estree
from unhoist.location import SourceUnit

# "var a = 1;" as acorn would have it: offsets in start and end, not range.
ACORN_STYLE = {
	"type": "Program", "start": 0, "end": 10, "sourceType": "script",
	"body": [{
		"type": "VariableDeclaration", "kind": "var", "start": 0, "end": 10,
		"declarations": [{
			"type": "VariableDeclarator", "start": 4, "end": 9,
			"id": {"type": "Identifier", "name": "a", "start": 4, "end": 5},
			"init": {"type": "Literal", "value": 1, "raw": "1", "start": 8, "end": 9},
		}],
	}],
}

class ReadingTests(unittest.TestCase):

	def test_program_covers_the_whole_text(self):
		text = "var a = 1;\n// trailing remark\n"
		program = parse_text(text)
		self.assertEqual((0, len(text)), program.span())

	def test_var_statement(self):
		[stmt] = parse_text("var a = 1, b;").body
		self.assertIsInstance(stmt, syntax.VarDecl)
		self.assertEqual("var", stmt.kind)
		self.assertEqual((0, 3), stmt.keyword_span())
		self.assertEqual(["a", "b"], [d.nom.text for d in stmt.declarators])
		self.assertIsNone(stmt.declarators[1].init)

	def test_arrow_with_expression_body(self):
		[stmt] = parse_text("var f = x => x + 1;").body
		fn = stmt.declarators[0].init
		self.assertIsInstance(fn, syntax.FunctionExpr)
		self.assertTrue(fn.is_arrow)
		[ret] = fn.body
		self.assertIsInstance(ret, syntax.Return)
		self.assertIsInstance(ret.arg, syntax.BinExp)

	def test_member_names_are_literals(self):
		[stmt] = parse_text("o.p = o[q];").body
		self.assertIsInstance(stmt.expr.target.prop, syntax.Literal)
		self.assertIsInstance(stmt.expr.value.prop, syntax.Lookup)

	def test_for_in_head(self):
		[loop] = parse_text("for (var k in o) {}").body
		self.assertIsInstance(loop, syntax.ForIn)
		self.assertIsInstance(loop.head, syntax.VarDecl)
		self.assertFalse(loop.is_of)

	def test_switch_and_catch(self):
		text = "switch (x) { case 1: f(); break; default: g(); } try { h(); } catch (e) { }"
		switch, attempt = parse_text(text).body
		self.assertEqual([False, True], [c.test is None for c in switch.cases])
		self.assertEqual("e", attempt.handler.param.text)


class UnsupportedTests(unittest.TestCase):

	def test_refusals(self):
		cases = {
			"var {a} = o;": "destructuring",
			"var [x] = y;": "destructuring",
			"class A {}": "classes",
			"var s = `hi`;": "template strings",
			"f(...xs);": "spread syntax",
			"outer: for (;;) { break outer; }": "labels",
			"function* g() { yield 1; }": "generators",
			"async function g() { await h(); }": "async functions",
			"var o = { get x() { return 1; } };": "getters and setters",
			"function f(a = 1) {}": "default parameters",
			"function f(...rest) {}": "rest parameters",
		}
		for text, kind in cases.items():
			with self.subTest(text):
				with self.assertRaises(UnsupportedSyntax) as cm:
					parse_text(text)
				self.assertEqual(kind, cm.exception.kind)

	def test_refusal_points_at_the_construct(self):
		with self.assertRaises(UnsupportedSyntax) as cm:
			parse_text("var a = 1; class B {}")
		self.assertEqual(11, cm.exception.start)


class ESTreeTests(unittest.TestCase):

	def test_acorn_offsets(self):
		program = parse_estree(ACORN_STYLE)
		analysis = analyze(program)
		self.assertEqual(["const"], [e.new_keyword for e in analysis.edits])

	def test_json_text(self):
		program = parse_estree(json.dumps(ACORN_STYLE))
		self.assertEqual((0, 10), program.span())

	def test_not_estree(self):
		for document in ["{", "[1, 2]", {"type": "BlockStatement", "body": []}, {"type": "Program", "body": []}]:
			with self.subTest(document):
				with self.assertRaises(NotESTree):
					parse_estree(document)

	def test_unknown_node_type(self):
		document = dict(ACORN_STYLE, body=[{"type": "Hologram", "start": 0, "end": 10}])
		with self.assertRaises(UnsupportedSyntax):
			parse_estree(document)


class ReadProgramTests(unittest.TestCase):

	def _fail(self, text, estree=False):
		report = Report()
		with self.assertRaises(Yuck) as cm:
			read_program(SourceUnit(text, None), report, estree)
		self.assertEqual("parse", cm.exception.args[0])
		self.assertEqual(1, len(report.issues))
		return report.issues[0]

	def test_syntax_error(self):
		self._fail("var = ;")

	def test_unsupported(self):
		issue = self._fail("var {a} = o;")
		self.assertIn("destructuring", issue.description)

	def test_bad_estree(self):
		issue = self._fail("{\"type\": \"Script\"}", estree=True)
		self.assertIn("ESTree", issue.description)

	def test_fine(self):
		program = read_program(SourceUnit("var a;", None), Report())
		self.assertIsInstance(program, syntax.Program)


if __name__ == '__main__':
	unittest.main()
