"""
The Scope Graph Builder: one top-down walk that opens a scope wherever
the language opens one, attaches every declaration to the scope that owns
it, and notes every reference for later resolution.

Scopes live in an arena and know their parent by index. Nothing points
downward except the list of child indices, so there are no cycles to mind.

Hoisting happens in exactly one place: `_attachment_scope`. Everything
else asks the graph where a name lives rather than re-deriving the rule.
"""
from typing import Iterator, Optional
from . import syntax
from .bindings import (
	Binding, BindingTable, DeclarationSite, Reference,
	VAR, FUNCTION, PARAM, CATCH, CALLEE, FUNCTION_SCOPED,
	READ, WRITE, READWRITE,
	DUPLICATE_BLOCK_BINDING, MERGED_REDECLARATION, SCOPE_RESOLUTION_CHANGE, DYNAMIC_SCOPE, UNBRACED_DECLARATION, GLOBAL_PROPERTY,
)
from .diagnostics import MalformedScope
from .ontology import Nom, Phrase
from .space import Layer, AlreadyExists

PROGRAM = "Program"
FUNCTION_SCOPE = "Function"
BLOCK = "Block"
LOOP = "Loop"
CATCH_CLAUSE = "CatchClause"

# Free names that hand out the global object, where top-level vars live as properties.
GLOBAL_OBJECT_NAMES = frozenset(["window", "self", "globalThis", "global", "frames"])

class Scope:
	id: int
	kind: str
	parent: Optional[int]
	children: list[int]
	bindings: Layer[Binding]
	node: syntax.Node
	function: int  # Nearest Function or Program scope, at or above this one.
	cases: list[tuple[int, int]]  # Spans of case clauses, when this is the body of a switch.

	def __init__(self, sid:int, kind:str, parent:Optional[int], node:syntax.Node, function:Optional[int]):
		self.id, self.kind, self.parent, self.node = sid, kind, parent, node
		self.function = sid if function is None else function
		self.children = []
		self.bindings = Layer()
		self.cases = []

	def __repr__(self): return "<%s scope #%d>" % (self.kind, self.id)

	@property
	def start(self) -> int: return self.node.start
	@property
	def end(self) -> int: return self.node.end

	def case_at(self, offset:int) -> Optional[int]:
		for index, (left, right) in enumerate(self.cases):
			if left <= offset < right: return index


class ScopeGraph:
	""" An arena of scopes. The Program scope is always number zero. """
	scopes: list[Scope]
	handles: dict[syntax.FunctionExpr, tuple[Nom, int]]  # Function expressions stored straight into a name.

	def __init__(self):
		self.scopes = []
		self.handles = {}

	def __getitem__(self, sid:int) -> Scope: return self.scopes[sid]
	def __len__(self): return len(self.scopes)
	def __iter__(self): return iter(self.scopes)

	@property
	def root(self) -> Scope: return self.scopes[0]

	def new_scope(self, kind:str, parent:Optional[int], node:syntax.Node) -> int:
		sid = len(self.scopes)
		function = None if kind in (PROGRAM, FUNCTION_SCOPE) else self.scopes[parent].function
		self.scopes.append(Scope(sid, kind, parent, node, function))
		if parent is not None: self.scopes[parent].children.append(sid)
		return sid

	def ancestors(self, sid:int) -> Iterator[int]:
		""" This scope, then its parent, and so on up to the root. """
		while sid is not None:
			yield sid
			sid = self.scopes[sid].parent

	def is_within(self, inner:int, outer:int) -> bool:
		return any(s == outer for s in self.ancestors(inner))

	def nearest_function(self, sid:int) -> int:
		return self.scopes[sid].function

	def lookup(self, name:str, sid:int, exclude:Optional[Binding]=None) -> Optional[Binding]:
		"""
		Resolve a name as seen from scope sid. With exclude, pretend that
		binding does not exist, which is how we ask "what if it moved?"
		"""
		for s in self.ancestors(sid):
			found = self.scopes[s].bindings.symbol(name)
			if found is not None and found is not exclude:
				return found

	def functions_between(self, sid:int, stop:int) -> list[int]:
		""" Function scopes from sid (inclusive) up to stop (exclusive), innermost first. """
		found = []
		for s in self.ancestors(sid):
			if s == stop: break
			if self.scopes[s].kind == FUNCTION_SCOPE: found.append(s)
		return found

	def loop_between(self, sid:int, stop:int) -> Optional[int]:
		""" Nearest Loop scope from sid (inclusive) up to stop (exclusive). """
		for s in self.ancestors(sid):
			if s == stop: return None
			if self.scopes[s].kind == LOOP: return s


class ScopeGraphBuilder(syntax.TopDown):
	"""
	This single top-down tree-walk does three things:

	* Open scopes and record how they nest.
	* Attach each declaration to its owning scope, hoisting where the language hoists.
	* Note every reference along with the scope it appears in.

	Resolution of references waits until the walk is done, because a name may
	be used textually before its (hoisted) declaration.
	"""
	graph: ScopeGraph
	table: BindingTable
	_pending: list[Reference]
	_var_sites: list[tuple[Binding, DeclarationSite]]
	_dynamic: list[int]
	_eval_calls: list[tuple[Nom, int]]
	_global_reach: list[Phrase]
	_enclosing: list[Phrase]

	def __init__(self, program:syntax.Program):
		if not isinstance(program, syntax.Program):
			raise MalformedScope("the root of the tree must be a Program, not %s" % type(program).__name__)
		self.graph = ScopeGraph()
		self.table = BindingTable()
		self._pending = []
		self._var_sites = []
		self._dynamic = []
		self._eval_calls = []
		self._global_reach = []
		self._enclosing = []

		root = self.graph.new_scope(PROGRAM, None, program)
		self.visit(program, root)
		self._check_hoisting_paths()
		self._resolve()
		self._taint_dynamic()
		self._mark_global_properties()
		self.table.sort_references()

	# Structural sanity

	def visit(self, node, scope:int):
		if not isinstance(node, syntax.Node) or not hasattr(self, "visit_"+type(node).__name__):
			culprit = node if isinstance(node, Phrase) else None
			raise MalformedScope("there is no scoping rule for %s" % type(node).__name__, culprit)
		self._check_child(node)
		self._enclosing.append(node)
		try: return super().visit(node, scope)
		finally: self._enclosing.pop()

	def _check_child(self, phrase:Phrase):
		left, right = phrase.span()
		if not (isinstance(left, int) and isinstance(right, int)) or not 0 <= left <= right:
			raise MalformedScope("%r has no sensible source span" % (phrase,), phrase)
		if self._enclosing:
			outer = self._enclosing[-1]
			if left < outer.left() or right > outer.right():
				raise MalformedScope("%r lies outside the %r that contains it" % (phrase, outer), phrase)

	# Declarations

	def _attachment_scope(self, kind:str, textual_scope:int) -> int:
		"""
		The hoisting rule, in one place: function-scoped declarations
		skip past any block, loop, or catch scope to the nearest function
		(or the program). Everything else stays where it was written.
		"""
		if kind in FUNCTION_SCOPED: return self.graph.nearest_function(textual_scope)
		else: return textual_scope

	def _declare(self, kind:str, site:DeclarationSite) -> Binding:
		self._check_child(site.nom)
		target = self._attachment_scope(kind, site.scope)
		layer = self.graph[target].bindings
		fresh = Binding(kind, target, site)
		try: layer.define(fresh)
		except AlreadyExists:
			existing = layer.symbol(fresh.name)
			if kind in FUNCTION_SCOPED and existing.kind in FUNCTION_SCOPED:
				# Legal legacy re-declaration: same binding, one more site.
				existing.merge(site)
				if existing.kind == VAR: existing.hazards.add(MERGED_REDECLARATION)
				return existing
			# Otherwise it would be an early error in the language proper.
			# Record it, refuse to pick a winner, and keep going.
			for b in (existing, fresh): b.hazards.add(DUPLICATE_BLOCK_BINDING)
			return self.table.add(fresh)
		else:
			return self.table.add(fresh)

	def _declaration(self, it:syntax.VarDecl, scope:int, unbraced=False, for_each_ready=None):
		self._enclosing.append(it)
		try:
			for d in it.declarators:
				self._check_child(d)
				if d.init is not None: self.visit(d.init, scope)
				if isinstance(d.init, syntax.FunctionExpr): self.graph.handles[d.init] = (d.nom, scope)
				ready = d.end if for_each_ready is None else for_each_ready
				site = DeclarationSite(d.nom, it, scope, d.init is not None, ready, unbraced, for_each_ready is not None)
				binding = self._declare(it.kind, site)
				if unbraced: binding.hazards.add(UNBRACED_DECLARATION)
				if it.kind == VAR:
					self.table.note_statement(it, binding)
					self._var_sites.append((binding, site))
		finally: self._enclosing.pop()

	def _substatement(self, stmt:syntax.Statement, scope:int):
		""" A statement in single-statement position: the body of an if, a loop, or a with. """
		if isinstance(stmt, syntax.VarDecl):
			self._check_child(stmt)
			self._declaration(stmt, scope, unbraced=True)
		else:
			self.visit(stmt, scope)

	def _function(self, it:syntax.Function, scope:int):
		inner = self.graph.new_scope(FUNCTION_SCOPE, scope, it)
		for p in it.params:
			self._declare(PARAM, DeclarationSite(p, None, inner, True, it.start))
		self.tour(it.body, inner)
		if it.nom is not None and isinstance(it, syntax.FunctionExpr):
			# A named function expression can see its own name, unless something closer hides it.
			if it.nom.text not in self.graph[inner].bindings:
				self._declare(CALLEE, DeclarationSite(it.nom, None, inner, True, it.start))

	def visit_VarDecl(self, it:syntax.VarDecl, scope:int):
		self._declaration(it, scope)

	def visit_FunctionDecl(self, it:syntax.FunctionDecl, scope:int):
		# Created upon entry to the enclosing block, so ready from its start.
		ready = self.graph[scope].start
		self._declare(FUNCTION, DeclarationSite(it.nom, None, scope, True, ready))
		self._function(it, scope)

	def visit_FunctionExpr(self, it:syntax.FunctionExpr, scope:int):
		self._function(it, scope)

	# References

	def _reference(self, nom:Nom, scope:int, kind:str):
		self._check_child(nom)
		self._pending.append(Reference(nom, scope, kind))

	def _target(self, target:syntax.Expression, scope:int, kind:str):
		if isinstance(target, syntax.Lookup):
			self._check_child(target)
			self._reference(target.nom, scope, kind)
		else:
			self.visit(target, scope)

	def visit_Lookup(self, it:syntax.Lookup, scope:int):
		self._reference(it.nom, scope, READ)

	def visit_This(self, it:syntax.This, scope:int):
		# Arrows borrow `this` from outside, so only an ordinary function stops the climb.
		for s in self.graph.ancestors(scope):
			node = self.graph[s].node
			if self.graph[s].kind == FUNCTION_SCOPE and not node.is_arrow: return
		self._global_reach.append(it)

	def visit_Assign(self, it:syntax.Assign, scope:int):
		self._target(it.target, scope, WRITE if it.op == "=" else READWRITE)
		self.visit(it.value, scope)
		if it.op == "=" and isinstance(it.target, syntax.Lookup) and isinstance(it.value, syntax.FunctionExpr):
			self.graph.handles[it.value] = (it.target.nom, scope)

	def visit_Update(self, it:syntax.Update, scope:int):
		self._target(it.target, scope, READWRITE)

	def visit_Call(self, it:syntax.Call, scope:int):
		if isinstance(it.fn_exp, syntax.Lookup) and it.fn_exp.nom.text == "eval":
			self._eval_calls.append((it.fn_exp.nom, scope))
		super().visit_Call(it, scope)

	# Scope-opening statements

	def visit_Block(self, it:syntax.Block, scope:int):
		self.tour(it.body, self.graph.new_scope(BLOCK, scope, it))

	def visit_If(self, it:syntax.If, scope:int):
		self.visit(it.test, scope)
		self._substatement(it.consequent, scope)
		if it.alternate is not None: self._substatement(it.alternate, scope)

	def visit_For(self, it:syntax.For, scope:int):
		loop = self.graph.new_scope(LOOP, scope, it)
		if isinstance(it.init, syntax.VarDecl):
			self._check_child(it.init)
			self._declaration(it.init, loop)
		elif it.init is not None:
			self.visit(it.init, loop)
		self.tour((it.test, it.update), loop)
		self._substatement(it.body, loop)

	def visit_ForIn(self, it:syntax.ForIn, scope:int):
		loop = self.graph.new_scope(LOOP, scope, it)
		if isinstance(it.head, syntax.VarDecl):
			self._check_child(it.head)
			self._declaration(it.head, loop, for_each_ready=it.iterable.end)
		else:
			self._target(it.head, loop, WRITE)
		self.visit(it.iterable, loop)
		self._substatement(it.body, loop)

	def visit_While(self, it:syntax.While, scope:int):
		loop = self.graph.new_scope(LOOP, scope, it)
		self.visit(it.test, loop)
		self._substatement(it.body, loop)

	def visit_DoWhile(self, it:syntax.DoWhile, scope:int):
		loop = self.graph.new_scope(LOOP, scope, it)
		self._substatement(it.body, loop)
		self.visit(it.test, loop)

	def visit_Catch(self, it:syntax.Catch, scope:int):
		inner = self.graph.new_scope(CATCH_CLAUSE, scope, it)
		if it.param is not None:
			self._declare(CATCH, DeclarationSite(it.param, None, inner, True, it.start))
		# The catch body shares the clause's scope: its declarations may not shadow the parameter.
		self._check_child(it.body)
		self._enclosing.append(it.body)
		try: self.tour(it.body.body, inner)
		finally: self._enclosing.pop()

	def visit_Switch(self, it:syntax.Switch, scope:int):
		self.visit(it.discriminant, scope)
		inner = self.graph.new_scope(BLOCK, scope, it)
		self.graph[inner].cases = [case.span() for case in it.cases]
		self.tour(it.cases, inner)

	def visit_With(self, it:syntax.With, scope:int):
		self._dynamic.append(scope)
		self.visit(it.obj, scope)
		self._substatement(it.body, scope)

	# Post-walk steps

	def _check_hoisting_paths(self):
		"""
		A var hoists through every scope between where it is written and where it lands.
		If one of those scopes already holds the same name, the declaration is in trouble.
		"""
		for binding, site in self._var_sites:
			for s in self.graph.ancestors(site.scope):
				if s == binding.declaring_scope: break
				other = self.graph[s].bindings.symbol(binding.name)
				if other is None: continue
				if other.kind == CATCH:
					binding.hazards.add(SCOPE_RESOLUTION_CHANGE)
				else:
					for b in (binding, other): b.hazards.add(DUPLICATE_BLOCK_BINDING)

	def _resolve(self):
		for r in self._pending:
			binding = self.graph.lookup(r.nom.text, r.scope)
			if binding is None: self.table.free.append(r)
			else: binding.references.append(r)

	def _taint_dynamic(self):
		""" with-statements and direct eval can reach any name in their function, and those beyond. """
		for nom, scope in self._eval_calls:
			if self.graph.lookup(nom.text, scope) is None:
				self._dynamic.append(scope)
		if not self._dynamic: return
		for binding in self.table:
			if any(self.graph.is_within(d, binding.declaring_scope) for d in self._dynamic):
				binding.hazards.add(DYNAMIC_SCOPE)

	def _mark_global_properties(self):
		"""
		A top-level var is also a property of the global object; a let is not.
		Once the script lays hands on that object, its top-level vars stay put.
		"""
		self._global_reach.extend(r.nom for r in self.table.free if r.nom.text in GLOBAL_OBJECT_NAMES)
		if not self._global_reach: return
		for binding in self.table.candidates():
			if binding.declaring_scope == self.graph.root.id:
				binding.hazards.add(GLOBAL_PROPERTY)


def build_scope_graph(program:syntax.Program) -> tuple[ScopeGraph, BindingTable]:
	builder = ScopeGraphBuilder(program)
	return builder.graph, builder.table
