"""
Turns JavaScript into the syntax tree the analyzer consumes.

Tokenizing and parsing are esprima's job. This module reads the ESTree
document esprima produces (or any other parser's ESTree, given as JSON)
and transduces it bottom-up into `syntax` nodes, refusing anything outside
the subset the analysis models rather than guessing at it.
"""
import json
from typing import Optional, Union
import esprima
from . import syntax
from .diagnostics import UnsupportedSyntax
from .ontology import Nom

class NotESTree(ValueError):
	""" The document is not shaped like an ESTree, so there is nothing to read. """

UNSUPPORTED = {
	"ObjectPattern": "destructuring",
	"ArrayPattern": "destructuring",
	"AssignmentPattern": "default parameters",
	"RestElement": "rest parameters",
	"SpreadElement": "spread syntax",
	"ClassDeclaration": "classes",
	"ClassExpression": "classes",
	"Super": "classes",
	"TemplateLiteral": "template strings",
	"TaggedTemplateExpression": "template strings",
	"LabeledStatement": "labels",
	"YieldExpression": "generators",
	"AwaitExpression": "async functions",
	"MetaProperty": "meta-properties",
	"ImportDeclaration": "module syntax",
	"ImportExpression": "module syntax",
	"ExportNamedDeclaration": "module syntax",
	"ExportDefaultDeclaration": "module syntax",
	"ExportAllDeclaration": "module syntax",
}

LOGICAL = frozenset(["&&", "||", "??"])


def parse_text(text:str) -> syntax.Program:
	"""
	Parse a script. Raises esprima's own error on a syntax error,
	or UnsupportedSyntax for a construct the analysis does not model.
	"""
	tree = esprima.parseScript(text, {"range": True})
	document = tree.toDict() if hasattr(tree, "toDict") else tree
	program = ESTreeReader().program(document)
	# Leading and trailing comments belong to the script too.
	return program.at(0, max(len(text), program.end))


def parse_estree(document:Union[str, dict]) -> syntax.Program:
	""" Read an ESTree produced elsewhere: JSON text or an already-loaded dictionary. """
	if isinstance(document, str):
		try: document = json.loads(document)
		except json.JSONDecodeError as ex: raise NotESTree("not valid JSON: %s" % ex)
	if not isinstance(document, dict): raise NotESTree("the top level is not an object")
	return ESTreeReader().program(document)


class ESTreeReader:
	"""
	One method per ESTree node type, named after the type.
	Each returns the corresponding syntax node, having read its children first.
	"""

	def program(self, node:dict) -> syntax.Program:
		if node.get("type") != "Program": raise NotESTree("the root is a %r, not a Program" % node.get("type"))
		if node.get("sourceType") == "module": raise UnsupportedSyntax("module syntax", *_span(node))
		return syntax.Program(self._statements(node.get("body")), *_span(node))

	def read(self, node:Optional[dict]):
		if node is None: return None
		if not isinstance(node, dict) or "type" not in node: raise NotESTree("expected a node, got %r" % (node,))
		kind = node["type"]
		if kind in UNSUPPORTED: raise UnsupportedSyntax(UNSUPPORTED[kind], *_span(node))
		method = getattr(self, "read_"+kind, None)
		if method is None: raise UnsupportedSyntax(kind, *_span(node))
		return method(node, *_span(node))

	def _statements(self, nodes) -> list:
		if not isinstance(nodes, list): raise NotESTree("expected a list of statements")
		return [self.read(n) for n in nodes]

	def _nom(self, node:dict) -> Nom:
		if not isinstance(node, dict) or node.get("type") != "Identifier":
			kind = node.get("type") if isinstance(node, dict) else type(node).__name__
			raise UnsupportedSyntax(UNSUPPORTED.get(kind, kind), *_span(node))
		return Nom(node["name"], *_span(node))

	def _target(self, node:dict):
		""" Left side of an assignment: a plain name or a member, nothing fancier. """
		if node.get("type") == "Identifier": return syntax.Lookup(self._nom(node))
		if node.get("type") == "MemberExpression": return self.read(node)
		raise UnsupportedSyntax(UNSUPPORTED.get(node.get("type"), "destructuring"), *_span(node))

	def _function(self, ctor, node:dict, start, end, is_arrow=False):
		if node.get("generator"): raise UnsupportedSyntax("generators", start, end)
		# esprima's Python port spells it isAsync.
		if node.get("async") or node.get("isAsync"): raise UnsupportedSyntax("async functions", start, end)
		nom = self._nom(node["id"]) if node.get("id") else None
		params = [self._nom(p) for p in node.get("params", ())]
		body = node["body"]
		if body.get("type") == "BlockStatement":
			statements = self._statements(body.get("body"))
		else:
			expr = self.read(body)
			statements = [syntax.Return(expr, expr.start, expr.end)]
		return ctor(nom, params, statements, start, end, is_arrow)

	# Statements

	def read_EmptyStatement(self, node, start, end): return syntax.Empty(start, end)
	def read_DebuggerStatement(self, node, start, end): return syntax.Empty(start, end)

	def read_ExpressionStatement(self, node, start, end):
		return syntax.ExprStmt(self.read(node["expression"]), start, end)

	def read_BlockStatement(self, node, start, end):
		return syntax.Block(self._statements(node.get("body")), start, end)

	def read_VariableDeclaration(self, node, start, end):
		kind = node.get("kind")
		if kind not in ("var", "let", "const"): raise UnsupportedSyntax("%s declarations" % kind, start, end)
		declarators = [self.read_VariableDeclarator(d, *_span(d)) for d in node.get("declarations", ())]
		return syntax.VarDecl(kind, declarators, start, end)

	def read_VariableDeclarator(self, node, start, end):
		return syntax.Declarator(self._nom(node["id"]), self.read(node.get("init")), start, end)

	def read_FunctionDeclaration(self, node, start, end):
		return self._function(syntax.FunctionDecl, node, start, end)

	def read_IfStatement(self, node, start, end):
		return syntax.If(self.read(node["test"]), self.read(node["consequent"]), self.read(node.get("alternate")), start, end)

	def read_ForStatement(self, node, start, end):
		parts = [self.read(node.get(k)) for k in ("init", "test", "update", "body")]
		return syntax.For(*parts, start, end)

	def _for_each(self, node, start, end, is_of):
		left = node["left"]
		if left.get("type") == "VariableDeclaration":
			head = self.read(left)
			if len(head.declarators) != 1 or head.declarators[0].init is not None:
				raise UnsupportedSyntax("an initialized loop head", *_span(left))
		else:
			head = self._target(left)
		return syntax.ForIn(head, self.read(node["right"]), self.read(node["body"]), is_of, start, end)

	def read_ForInStatement(self, node, start, end): return self._for_each(node, start, end, False)

	def read_ForOfStatement(self, node, start, end):
		if node.get("await") or node.get("isAwait"): raise UnsupportedSyntax("async iteration", start, end)
		return self._for_each(node, start, end, True)

	def read_WhileStatement(self, node, start, end):
		return syntax.While(self.read(node["test"]), self.read(node["body"]), start, end)

	def read_DoWhileStatement(self, node, start, end):
		return syntax.DoWhile(self.read(node["body"]), self.read(node["test"]), start, end)

	def read_ReturnStatement(self, node, start, end):
		return syntax.Return(self.read(node.get("argument")), start, end)

	def read_BreakStatement(self, node, start, end):
		if node.get("label"): raise UnsupportedSyntax("labels", start, end)
		return syntax.Break(start, end)

	def read_ContinueStatement(self, node, start, end):
		if node.get("label"): raise UnsupportedSyntax("labels", start, end)
		return syntax.Continue(start, end)

	def read_ThrowStatement(self, node, start, end):
		return syntax.Throw(self.read(node["argument"]), start, end)

	def read_TryStatement(self, node, start, end):
		return syntax.Try(self.read(node["block"]), self.read(node.get("handler")), self.read(node.get("finalizer")), start, end)

	def read_CatchClause(self, node, start, end):
		param = self._nom(node["param"]) if node.get("param") else None
		return syntax.Catch(param, self.read(node["body"]), start, end)

	def read_SwitchStatement(self, node, start, end):
		cases = [self.read_SwitchCase(c, *_span(c)) for c in node.get("cases", ())]
		return syntax.Switch(self.read(node["discriminant"]), cases, start, end)

	def read_SwitchCase(self, node, start, end):
		return syntax.Case(self.read(node.get("test")), self._statements(node.get("consequent")), start, end)

	def read_WithStatement(self, node, start, end):
		return syntax.With(self.read(node["object"]), self.read(node["body"]), start, end)

	# Expressions

	def read_Identifier(self, node, start, end):
		return syntax.Lookup(self._nom(node))

	def read_Literal(self, node, start, end):
		if "regex" in node and node["regex"]: return syntax.Literal(node.get("raw"), start, end)
		return syntax.Literal(node.get("value"), start, end)

	def read_ThisExpression(self, node, start, end): return syntax.This(start, end)

	def read_ArrayExpression(self, node, start, end):
		return syntax.ArrayLit([self.read(e) for e in node.get("elements", ())], start, end)

	def read_ObjectExpression(self, node, start, end):
		return syntax.ObjectLit([self.read_Property(p, *_span(p)) for p in node.get("properties", ())], start, end)

	def read_Property(self, node, start, end):
		if node.get("type") != "Property": raise UnsupportedSyntax(UNSUPPORTED.get(node.get("type"), node.get("type")), start, end)
		if node.get("kind", "init") != "init": raise UnsupportedSyntax("getters and setters", start, end)
		if node.get("computed"): raise UnsupportedSyntax("computed property names", start, end)
		key = node["key"]
		if key.get("type") == "Identifier": name = key["name"]
		else:
			value = key.get("value")
			# esprima reads every number as a float; {1: x} still names "1".
			if isinstance(value, float) and value.is_integer(): value = int(value)
			name = str(value)
		return syntax.Property(name, self.read(node["value"]), start, end)

	def read_MemberExpression(self, node, start, end):
		obj = self.read(node["object"])
		if node.get("computed"):
			return syntax.Member(obj, self.read(node["property"]), True, start, end)
		prop = node["property"]
		return syntax.Member(obj, syntax.Literal(prop["name"], *_span(prop)), False, start, end)

	def read_AssignmentExpression(self, node, start, end):
		return syntax.Assign(node["operator"], self._target(node["left"]), self.read(node["right"]), start, end)

	def read_UpdateExpression(self, node, start, end):
		return syntax.Update(node["operator"], self._target(node["argument"]), bool(node.get("prefix")), start, end)

	def read_UnaryExpression(self, node, start, end):
		return syntax.UnaryExp(node["operator"], self.read(node["argument"]), start, end)

	def read_BinaryExpression(self, node, start, end):
		return syntax.BinExp(node["operator"], self.read(node["left"]), self.read(node["right"]), start, end)

	def read_LogicalExpression(self, node, start, end):
		assert node["operator"] in LOGICAL, node["operator"]
		return syntax.ShortCutExp(node["operator"], self.read(node["left"]), self.read(node["right"]), start, end)

	def read_ConditionalExpression(self, node, start, end):
		parts = [self.read(node[k]) for k in ("test", "consequent", "alternate")]
		return syntax.Cond(*parts, start, end)

	def read_CallExpression(self, node, start, end):
		if node.get("optional"): raise UnsupportedSyntax("optional chaining", start, end)
		return syntax.Call(self.read(node["callee"]), [self.read(a) for a in node.get("arguments", ())], start, end)

	def read_NewExpression(self, node, start, end):
		return syntax.New(self.read(node["callee"]), [self.read(a) for a in node.get("arguments", ())], start, end)

	def read_SequenceExpression(self, node, start, end):
		return syntax.SequenceExp([self.read(e) for e in node.get("expressions", ())], start, end)

	def read_FunctionExpression(self, node, start, end):
		return self._function(syntax.FunctionExpr, node, start, end)

	def read_ArrowFunctionExpression(self, node, start, end):
		return self._function(syntax.FunctionExpr, node, start, end, is_arrow=True)


def _span(node) -> tuple[int, int]:
	""" esprima says "range"; acorn and friends say "start" and "end". Take either. """
	if isinstance(node, dict):
		if isinstance(node.get("range"), (list, tuple)) and len(node["range"]) == 2:
			start, end = node["range"]
		else:
			start, end = node.get("start"), node.get("end")
		if isinstance(start, int) and isinstance(end, int): return start, end
	raise NotESTree("a node lacks source offsets: %.60r" % (node,))
