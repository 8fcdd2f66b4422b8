"""
The Capture Analyzer. Pure analysis over a finished scope graph:
who captures what, which loop a binding lives in, and what would go
wrong if a var moved into the block where it is written.

The question behind every hazard here is the same: if this var became a
let right where it stands, would any reference see something different?

	* A reference outside that block would find some other binding, or none.
	* A reference that can run before the declaration would hit the dead zone.
	* A read at the top of a loop body would stop seeing last iteration's value.
	* A closure made inside a loop would capture a fresh binding per iteration.

Nothing here throws. No captures is a perfectly good answer.
"""
from typing import NamedTuple
from . import syntax
from .bindings import (
	Binding, BindingTable, Reference, READ, WRITE,
	FREE, SCOPE_RESOLUTION_CHANGE, TEMPORAL_DEAD_ZONE, LOOP_CARRIED_VALUE, ITERATION_SEMANTICS_CHANGE,
)
from .scope_graph import ScopeGraph

EARLIEST = float("-inf")
NEVER = float("inf")

class CaptureEdge(NamedTuple):
	binding: Binding
	closure_scope: int  # Outermost function scope between the binding's home and the reference.
	reference_kind: str  # READ or WRITE

class CaptureAnalysis:
	edges: list[CaptureEdge]
	_by_binding: dict[Binding, list[CaptureEdge]]

	def __init__(self, graph:ScopeGraph, table:BindingTable):
		self.graph = graph
		self.table = table
		self.edges = []
		self._by_binding = {}
		for binding in table:
			self._find_edges(binding)
		for binding in table.candidates():
			self._analyze(binding)

	def edges_of(self, binding:Binding) -> list[CaptureEdge]:
		return self._by_binding.get(binding, [])

	def _find_edges(self, binding:Binding):
		for r in binding.references:
			closures = self.graph.functions_between(r.scope, binding.declaring_scope)
			if closures:
				edge = CaptureEdge(binding, closures[-1], WRITE if r.is_write() else READ)
				self.edges.append(edge)
				self._by_binding.setdefault(binding, []).append(edge)

	def _analyze(self, binding:Binding):
		site = binding.declaration
		lowered = site.scope
		binding.enclosing_loop = self.graph.loop_between(lowered, binding.declaring_scope)

		covered = []
		for r in binding.references:
			if self.graph.is_within(r.scope, lowered): covered.append(r)
			else: binding.hazards.add(self._stray(binding, r))

		if any(self._too_early(binding, r) for r in covered):
			binding.hazards.add(TEMPORAL_DEAD_ZONE)

		loop = binding.enclosing_loop
		if loop is not None:
			captured = [r for r in covered if self._is_captured(binding, r)]
			# Reads from closures made in the body belong to the iteration hazard below.
			direct_reads = [r for r in covered if r.is_read() and not self._is_captured(binding, r)]
			if loop != lowered and not site.is_initialized() and direct_reads:
				binding.hazards.add(LOOP_CARRIED_VALUE)
			if captured:
				binding.hazards.add(ITERATION_SEMANTICS_CHANGE)

	def _stray(self, binding:Binding, r:Reference) -> str:
		""" Where would this reference go, were the binding confined to its block? """
		if self.graph.lookup(binding.name, r.scope, exclude=binding) is None: return FREE
		else: return SCOPE_RESOLUTION_CHANGE

	def _is_captured(self, binding:Binding, r:Reference) -> bool:
		return bool(self.graph.functions_between(r.scope, binding.declaring_scope))

	def _too_early(self, binding:Binding, r:Reference) -> bool:
		site = binding.declaration
		lowered = self.graph[site.scope]
		when = self._effective_position(r.scope, r.position(), site.scope, site.ready, set())
		if when < site.ready: return True
		if lowered.cases:
			# Control can jump straight into any case, skipping a declaration in another.
			return lowered.case_at(when) != lowered.case_at(site.nom.start)
		return False

	def _effective_position(self, scope:int, offset:float, region:int, ready:int, visiting:set[Binding]) -> float:
		"""
		The earliest offset (within the region) at which code at this spot could run.
		Code directly in the region runs where it stands; code inside a nested function
		runs no earlier than the function can first be called.
		"""
		closures = self.graph.functions_between(scope, region)
		if not closures: return offset
		return self._earliest_call(closures[-1], region, ready, visiting)

	def _earliest_call(self, function_scope:int, region:int, ready:int, visiting:set[Binding]) -> float:
		fn = self.graph[function_scope].node
		outer = self.graph[function_scope].parent
		if isinstance(fn, syntax.FunctionDecl):
			creation = self.graph[outer].start
			handle = fn.nom, outer
		else:
			creation = fn.start
			handle = self.graph.handles.get(fn)
		if creation >= ready or handle is None: return creation

		nom, where = handle
		binding = self.graph.lookup(nom.text, where)
		if binding is None: return creation  # Escapes into a global; assume the worst.
		if binding in visiting: return NEVER  # Already counting this path.
		visiting.add(binding)
		try:
			earliest = NEVER
			for r in binding.reads():
				if not self.graph.is_within(r.scope, region): return EARLIEST
				earliest = min(earliest, self._effective_position(r.scope, r.position(), region, ready, visiting))
			return earliest
		finally:
			visiting.discard(binding)
