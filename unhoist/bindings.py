"""
The Binding Table: every declared name, where it was declared,
which scope owns it, and every place it gets read or written.

Hazards are advisory tags that accumulate on bindings as the passes
learn things. They are not errors. The classifier decides what they mean.
"""
from typing import NamedTuple, Optional, Iterable
from . import syntax
from .ontology import Nom, Symbol

# Declaration kinds. VAR is the legacy form; LET and CONST are the targets.
VAR = "var"
LET = "let"
CONST = "const"
FUNCTION = "function"
PARAM = "param"
CATCH = "catch"
CALLEE = "callee"  # The name of a named function expression, seen from inside.

FUNCTION_SCOPED = frozenset([VAR, FUNCTION, PARAM, CALLEE])
BLOCK_SCOPED = frozenset([LET, CONST, CATCH])

# Reference kinds
READ = "read"
WRITE = "write"
READWRITE = "readwrite"

# Hazard tags
FREE = "Free"
DUPLICATE_BLOCK_BINDING = "DuplicateBlockBinding"
MERGED_REDECLARATION = "MergedRedeclaration"
DYNAMIC_SCOPE = "DynamicScope"
UNBRACED_DECLARATION = "UnbracedDeclaration"
SCOPE_RESOLUTION_CHANGE = "ScopeResolutionChange"
TEMPORAL_DEAD_ZONE = "TemporalDeadZoneHazard"
LOOP_CARRIED_VALUE = "LoopCarriedValue"
ITERATION_SEMANTICS_CHANGE = "IntentionalIterationSemanticsChange"
GLOBAL_PROPERTY = "GlobalProperty"  # A top-level var the script also reaches through the global object.


class DeclarationSite(NamedTuple):
	nom: Nom
	statement: Optional[syntax.VarDecl]  # None for parameters, functions, and such.
	scope: int  # The scope in which the declaration appears in the text.
	has_init: bool
	ready: int  # Offset from which the declared name holds its initial value.
	unbraced: bool = False  # As in: if (c) var x = 1;
	for_each: bool = False  # Head of a for-in or for-of loop.

	def is_initialized(self) -> bool:
		return self.has_init or self.for_each


class Reference(NamedTuple):
	nom: Nom
	scope: int
	kind: str

	def is_read(self) -> bool: return self.kind != WRITE
	def is_write(self) -> bool: return self.kind != READ
	def position(self) -> int: return self.nom.start


class Binding(Symbol):
	"""
	One declared identifier. The first declaration site wins;
	later function-scoped re-declarations merge in behind it.
	"""
	name: str
	kind: str
	declaring_scope: int
	sites: list[DeclarationSite]
	references: list[Reference]
	hazards: set[str]
	enclosing_loop: Optional[int]

	def __init__(self, kind:str, declaring_scope:int, site:DeclarationSite):
		super().__init__(site.nom)
		self.name = site.nom.text
		self.kind = kind
		self.declaring_scope = declaring_scope
		self.sites = [site]
		self.references = []
		self.hazards = set()
		self.enclosing_loop = None

	def __repr__(self): return "{%s %s}" % (self.kind, self.name)

	@property
	def declaration(self) -> DeclarationSite:
		return self.sites[0]

	@property
	def is_reassigned(self) -> bool:
		return any(r.is_write() for r in self.references)

	def is_candidate(self) -> bool:
		""" Only legacy function-scoped variables are up for lowering. """
		return self.kind == VAR

	def merge(self, site:DeclarationSite):
		self.sites.append(site)

	def reads(self) -> Iterable[Reference]:
		return (r for r in self.references if r.is_read())


class BindingTable:
	"""
	Everything the builder learned, in declaration order.
	Bindings that lost a duplicate-declaration fight are here too,
	even though no scope will admit to owning them.
	"""
	bindings: list[Binding]
	free: list[Reference]
	statements: dict[syntax.VarDecl, list[Binding]]

	def __init__(self):
		self.bindings = []
		self.free = []
		self.statements = {}

	def __len__(self): return len(self.bindings)
	def __iter__(self): return iter(self.bindings)

	def add(self, binding:Binding) -> Binding:
		self.bindings.append(binding)
		return binding

	def note_statement(self, statement:syntax.VarDecl, binding:Binding):
		""" Remember which binding each declarator of a var-statement feeds. """
		self.statements.setdefault(statement, []).append(binding)

	def candidates(self) -> list[Binding]:
		return [b for b in self.bindings if b.is_candidate()]

	def named(self, name:str) -> list[Binding]:
		return [b for b in self.bindings if b.name == name]

	def free_names(self) -> set[str]:
		return {r.nom.text for r in self.free}

	def sort_references(self):
		for b in self.bindings:
			b.references.sort(key=Reference.position)
		self.free.sort(key=Reference.position)
