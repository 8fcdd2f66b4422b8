import unittest

from unhoist import syntax
from unhoist.bindings import (
	VAR, LET, FUNCTION, PARAM, CATCH, CALLEE, READ, WRITE, READWRITE,
	DUPLICATE_BLOCK_BINDING, MERGED_REDECLARATION, DYNAMIC_SCOPE, UNBRACED_DECLARATION, SCOPE_RESOLUTION_CHANGE, GLOBAL_PROPERTY,
)
from unhoist.diagnostics import MalformedScope
from unhoist.front_end import parse_text
from unhoist.ontology import Nom
from unhoist.scope_graph import build_scope_graph, PROGRAM, FUNCTION_SCOPE, BLOCK, LOOP, CATCH_CLAUSE

def _build(text):
	return build_scope_graph(parse_text(text))

def _only(table, name):
	found = table.named(name)
	assert len(found) == 1, found
	return found[0]

class HoistingTests(unittest.TestCase):

	def test_var_in_block_attaches_to_function(self):
		graph, table = _build("function f() { if (a) { var x = 1; } }")
		x = _only(table, "x")
		self.assertEqual(VAR, x.kind)
		self.assertEqual(FUNCTION_SCOPE, graph[x.declaring_scope].kind)
		self.assertEqual(BLOCK, graph[x.declaration.scope].kind)

	def test_let_stays_in_its_block(self):
		graph, table = _build("{ let y = 1; }")
		y = _only(table, "y")
		self.assertEqual(LET, y.kind)
		self.assertEqual(BLOCK, graph[y.declaring_scope].kind)

	def test_loops_open_scopes(self):
		graph, table = _build("for (var i = 0; i < 3; i++) { var t = i; }")
		i, t = _only(table, "i"), _only(table, "t")
		self.assertEqual(LOOP, graph[i.declaration.scope].kind)
		body = graph[t.declaration.scope]
		self.assertEqual(BLOCK, body.kind)
		self.assertEqual(LOOP, graph[body.parent].kind)
		self.assertEqual(0, i.declaring_scope)
		self.assertEqual(0, t.declaring_scope)
		self.assertEqual(PROGRAM, graph.root.kind)

	def test_for_in_head_lives_in_the_loop(self):
		graph, table = _build("for (var k in o) {}")
		k = _only(table, "k")
		self.assertEqual(LOOP, graph[k.declaration.scope].kind)
		self.assertEqual(0, k.declaring_scope)
		self.assertTrue(k.declaration.for_each)
		self.assertTrue(k.declaration.is_initialized())
		self.assertEqual(15, k.declaration.ready)
		self.assertEqual({"o"}, table.free_names())

	def test_for_of_head_is_never_reassigned(self):
		graph, table = _build("for (var v of xs) { use(v); }")
		v = _only(table, "v")
		self.assertTrue(v.declaration.for_each)
		self.assertEqual(16, v.declaration.ready)
		self.assertFalse(v.is_reassigned)
		self.assertEqual([READ], [r.kind for r in v.references])

	def test_for_in_over_an_existing_name(self):
		graph, table = _build("var k; for (k in {}) {}")
		k = _only(table, "k")
		self.assertFalse(k.declaration.for_each)
		self.assertEqual([WRITE], [r.kind for r in k.references])
		self.assertEqual(LOOP, graph[k.references[0].scope].kind)

	def test_function_declarations_hoist_like_var(self):
		graph, table = _build("function f() { { function g() {} } }")
		g = _only(table, "g")
		self.assertEqual(FUNCTION, g.kind)
		self.assertEqual(FUNCTION_SCOPE, graph[g.declaring_scope].kind)
		self.assertFalse(g.is_candidate())

	def test_catch_parameter_lives_in_the_clause(self):
		graph, table = _build("try { f(); } catch (e) { var e = 2; }")
		param = [b for b in table.named("e") if b.kind == CATCH]
		legacy = [b for b in table.named("e") if b.kind == VAR]
		self.assertEqual(CATCH_CLAUSE, graph[param[0].declaring_scope].kind)
		self.assertEqual(0, legacy[0].declaring_scope)
		self.assertIn(SCOPE_RESOLUTION_CHANGE, legacy[0].hazards)

	def test_named_function_expression_sees_itself(self):
		graph, table = _build("var h = function fact(n) { return n ? fact(n - 1) : 1; };")
		fact = _only(table, "fact")
		self.assertEqual(CALLEE, fact.kind)
		self.assertEqual(1, len(fact.references))

	def test_parameter_hides_the_callee_name(self):
		graph, table = _build("var h = function p(p) { return p; };")
		self.assertEqual([PARAM], [b.kind for b in table.named("p")])


class ResolutionTests(unittest.TestCase):

	def test_references_resolve_upward(self):
		graph, table = _build("var a = 1; function g() { return a + b; }")
		a = _only(table, "a")
		self.assertEqual(1, len(a.references))
		self.assertEqual(FUNCTION_SCOPE, graph[a.references[0].scope].kind)
		self.assertEqual({"b", }, table.free_names())

	def test_use_before_declaration_still_resolves(self):
		graph, table = _build("function f() { x = 2; var x; return x; }")
		x = _only(table, "x")
		self.assertEqual([WRITE, READ], [r.kind for r in x.references])
		self.assertTrue(x.is_reassigned)

	def test_compound_assignment_and_update(self):
		graph, table = _build("var n = 0; n += 2; n++;")
		n = _only(table, "n")
		self.assertEqual([READWRITE, READWRITE], [r.kind for r in n.references])

	def test_member_names_are_not_references(self):
		graph, table = _build("var o = {}; o.p = 1; o['q'] = o.r;")
		self.assertEqual(set(), table.free_names())
		self.assertEqual([READ, READ, READ], [r.kind for r in _only(table, "o").references])

	def test_free_names_are_not_failures(self):
		graph, table = _build("console.log(undefinedThing);")
		self.assertEqual({"console", "undefinedThing"}, table.free_names())


class RedeclarationTests(unittest.TestCase):

	def test_var_twice_merges(self):
		graph, table = _build("var x = 1; var x = 2;")
		x = _only(table, "x")
		self.assertEqual(2, len(x.sites))
		self.assertEqual(4, x.declaration.nom.start)
		self.assertIn(MERGED_REDECLARATION, x.hazards)

	def test_var_onto_parameter_merges_quietly(self):
		graph, table = _build("function f(p) { var p = 1; }")
		p = _only(table, "p")
		self.assertEqual(PARAM, p.kind)
		self.assertEqual(2, len(p.sites))
		self.assertEqual([], table.candidates())

	def test_duplicate_let(self):
		graph, table = _build("{ let y = 1; let y = 2; }")
		ys = table.named("y")
		self.assertEqual(2, len(ys))
		for y in ys: self.assertIn(DUPLICATE_BLOCK_BINDING, y.hazards)

	def test_var_hoisting_through_a_let(self):
		graph, table = _build("function f() { { let z = 1; { var z = 2; } } }")
		for z in table.named("z"): self.assertIn(DUPLICATE_BLOCK_BINDING, z.hazards)

	def test_unbraced_declaration(self):
		graph, table = _build("if (c) var u = 1;")
		u = _only(table, "u")
		self.assertTrue(u.declaration.unbraced)
		self.assertIn(UNBRACED_DECLARATION, u.hazards)


class DynamicScopeTests(unittest.TestCase):

	def test_eval_taints_its_function(self):
		graph, table = _build("var outside = 1; function f() { var q = 1; eval('q'); }")
		self.assertIn(DYNAMIC_SCOPE, _only(table, "q").hazards)
		self.assertIn(DYNAMIC_SCOPE, _only(table, "outside").hazards)

	def test_eval_elsewhere_is_harmless(self):
		graph, table = _build("function f() { var q = 1; return q; } function g() { eval('1'); }")
		self.assertNotIn(DYNAMIC_SCOPE, _only(table, "q").hazards)

	def test_a_local_eval_is_just_a_function(self):
		graph, table = _build("function f(eval) { var q = 1; eval(q); }")
		self.assertNotIn(DYNAMIC_SCOPE, _only(table, "q").hazards)

	def test_with_statement(self):
		graph, table = _build("function f(o) { var q = 1; with (o) { q = 2; } }")
		self.assertIn(DYNAMIC_SCOPE, _only(table, "q").hazards)


class GlobalObjectTests(unittest.TestCase):

	def test_top_level_this(self):
		graph, table = _build("var x = 1; console.log(this.x);")
		self.assertIn(GLOBAL_PROPERTY, _only(table, "x").hazards)

	def test_global_object_by_name(self):
		graph, table = _build("var x = 1; function f() { var y = 2; return window.x + y; }")
		self.assertIn(GLOBAL_PROPERTY, _only(table, "x").hazards)
		self.assertNotIn(GLOBAL_PROPERTY, _only(table, "y").hazards)

	def test_arrow_borrows_the_global_this(self):
		graph, table = _build("var x = 1; var get = () => this.x;")
		self.assertIn(GLOBAL_PROPERTY, _only(table, "x").hazards)

	def test_this_inside_a_function_is_not_global(self):
		graph, table = _build("var x = 1; function Point() { this.x = x; }")
		self.assertNotIn(GLOBAL_PROPERTY, _only(table, "x").hazards)

	def test_a_local_window_is_just_a_variable(self):
		graph, table = _build("var x = 1; function f(window) { return window.x; }")
		self.assertNotIn(GLOBAL_PROPERTY, _only(table, "x").hazards)


class MalformedTreeTests(unittest.TestCase):

	def test_root_must_be_a_program(self):
		with self.assertRaises(MalformedScope):
			build_scope_graph(syntax.Block([], 0, 0))

	def test_child_outside_parent(self):
		stray = syntax.ExprStmt(syntax.Literal(1, 5, 20), 5, 20)
		with self.assertRaises(MalformedScope) as cm:
			build_scope_graph(syntax.Program([stray], 0, 10))
		self.assertIs(stray, cm.exception.phrase())

	def test_inverted_span(self):
		with self.assertRaises(MalformedScope):
			build_scope_graph(syntax.Program([syntax.Empty(4, 2)], 0, 10))

	def test_no_scoping_rule(self):
		with self.assertRaises(MalformedScope):
			build_scope_graph(syntax.Program([Nom("x", 0, 1)], 0, 1))


if __name__ == '__main__':
	unittest.main()
