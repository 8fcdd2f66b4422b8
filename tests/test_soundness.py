"""
Paired execution: run each script before and after rewriting, and insist
that nothing observable changed. Each script pairs with the keywords its
plan should produce, so a plan that quietly does nothing cannot pass.
"""
import unittest

from unhoist.emitter import apply_edits
from unhoist.engine import Options, analyze
from unhoist.evaluator import run
from unhoist.front_end import parse_text

SPECIMENS = {
	"plain loop": (
		"function f() { var total = 0; for (var i = 0; i < 3; i++) { total += i; } return total; } console.log(f());",
		["let", "let"],
	),
	"hoisted inner shadow": (
		"var x = 3; function f(r) { if (r) { var x = 'inner'; return x; } return x; } console.log(f(true), f(false));",
		["const"],
	),
	"function expression called early": (
		"function f() { var get = function () { return z; }; var r = get(); var z = 5; return r; } console.log(f());",
		["const", "const"],
	),
	"function expression called late": (
		"function f() { var get = function () { return z; }; var z = 5; return get(); } console.log(f());",
		["const", "const"],
	),
	"escaping closure": (
		"function run(cb) { return cb(); } function f() { var v = run(function () { return typeof w; }); var w = 1; return v; } console.log(f());",
		["const"],
	),
	"carried across iterations": (
		"function f(n) { var out = []; for (var k = 0; k < n; k++) { var seen; if (k > 0) { out.push(seen); } seen = k; } return out.join(','); } console.log(f(4));",
		["const", "let"],
	),
	"timers in a loop": (
		"for (var i = 0; i < 3; i++) { setTimeout(function () { console.log(i); }); }",
		[],
	),
	"closures in a loop body": (
		"var fs = []; for (var j = 0; j < 3; j++) { var sq = j * j; fs.push(function () { return sq; }); } console.log(fs.map(f => f()).join());",
		["const", "let"],
	),
	"another case clause": (
		"function f(k) { switch (k) { case 1: var s = 'one'; return s; case 2: return typeof s; } } console.log(f(1), f(2));",
		[],
	),
	"catch parameter": (
		"var e = 'outer'; try { throw 'inner'; } catch (e) { var e = 'assigned'; } console.log(e);",
		[],
	),
	"shared statement": (
		"var a = 1, b; b = a + 1; console.log(a, b);",
		["let"],
	),
	"function declaration": (
		"function f() { var x = 1; function g() { return x; } return g(); } console.log(f());",
		["const"],
	),
	"loop variable read afterward": (
		"var o = {p: 1, q: 2}; for (var k in o) { console.log(k); } console.log(k);",
		["const"],
	),
	"for-of totals": (
		"var total = 0; for (var v of [1, 2, 3]) { total += v; } console.log(total);",
		["let", "const"],
	),
	"for-in keys": (
		"var o = {a: 1, b: 2}; var keys = []; for (var k in o) { keys.push(k + o[k]); } console.log(keys.join());",
		["const", "const", "const"],
	),
	"for-of closures": (
		"var fs = []; for (var v of [1, 2]) { fs.push(function () { return v; }); } console.log(fs.map(f => f()).join());",
		["const"],
	),
	"captured after a late assignment": (
		"var fs = []; for (var i = 0; i < 3; i++) { var x; x = i; fs.push(function () { return x; }); } console.log(fs.map(f => f()).join());",
		["const", "let"],
	),
	"late timer": (
		"var greeting = 'hi'; setTimeout(function () { console.log(greeting); });",
		["const"],
	),
}

def _rewrite(text, options=Options()):
	analysis = analyze(parse_text(text), options)
	return analysis, apply_edits(text, analysis.edits)

class PairedExecutionTests(unittest.TestCase):

	def test_rewrites_preserve_behavior(self):
		for label, (text, keywords) in SPECIMENS.items():
			with self.subTest(label):
				analysis, rewritten = _rewrite(text)
				self.assertEqual(keywords, [e.new_keyword for e in analysis.edits])
				before = run(parse_text(text))
				self.assertIsNone(before.error)
				self.assertEqual(before, run(parse_text(rewritten)))

	def test_rewriting_twice_changes_nothing(self):
		for label, (text, keywords) in SPECIMENS.items():
			with self.subTest(label):
				analysis, rewritten = _rewrite(text)
				again, same = _rewrite(rewritten)
				self.assertEqual([], again.edits)
				self.assertEqual(rewritten, same)

	def test_the_observable_difference_is_real(self):
		""" The hoisted-shadow specimen would go wrong if lowered blindly. """
		text = SPECIMENS["hoisted inner shadow"][0]
		self.assertEqual(["inner undefined"], run(parse_text(text)).log)
		blind = text.replace("var x = 'inner'", "let x = 'inner'")
		self.assertEqual(["inner 3"], run(parse_text(blind)).log)


class RebindingTests(unittest.TestCase):
	""" Allowing loop-capture rebinding changes behavior on purpose. """

	def test_timers_see_each_iteration(self):
		text = SPECIMENS["timers in a loop"][0]
		analysis, rewritten = _rewrite(text, Options(allow_loop_capture_rebinding=True))
		self.assertEqual(["let"], [e.new_keyword for e in analysis.edits])
		self.assertEqual(["3", "3", "3"], run(parse_text(text)).log)
		self.assertEqual(["0", "1", "2"], run(parse_text(rewritten)).log)

	def test_closures_see_each_iteration(self):
		text = SPECIMENS["closures in a loop body"][0]
		analysis, rewritten = _rewrite(text, Options(allow_loop_capture_rebinding=True))
		self.assertEqual(["4,4,4"], run(parse_text(text)).log)
		self.assertEqual(["0,1,4"], run(parse_text(rewritten)).log)

	def test_late_assignment_seen_per_iteration(self):
		text = SPECIMENS["captured after a late assignment"][0]
		analysis, rewritten = _rewrite(text, Options(allow_loop_capture_rebinding=True))
		self.assertEqual(["const", "let", "let"], [e.new_keyword for e in analysis.edits])
		self.assertEqual(["2,2,2"], run(parse_text(text)).log)
		self.assertEqual(["0,1,2"], run(parse_text(rewritten)).log)

	def test_for_of_closures_see_each_item(self):
		text = SPECIMENS["for-of closures"][0]
		analysis, rewritten = _rewrite(text, Options(allow_loop_capture_rebinding=True))
		self.assertEqual(["const", "const"], [e.new_keyword for e in analysis.edits])
		self.assertEqual(["2,2"], run(parse_text(text)).log)
		self.assertEqual(["1,2"], run(parse_text(rewritten)).log)


if __name__ == '__main__':
	unittest.main()
