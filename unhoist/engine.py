"""
The pipeline for one source unit, front to back:

	text -> syntax tree -> scope graph and binding table
	     -> capture analysis -> decisions -> rewrite plan

Each run owns everything it builds. Nothing is shared between units
except the Options, which cannot change, so units may run side by side.
"""
from pathlib import Path
from typing import NamedTuple, Optional
from esprima.error_handler import Error as EsprimaError
from . import syntax, front_end
from .bindings import Binding, BindingTable
from .capture import CaptureAnalysis, CaptureEdge
from .classifier import LoweringDecision, classify
from .diagnostics import Report, MalformedScope, InternalInvariantViolation, UnsupportedSyntax
from .emitter import RewriteEdit, emit_plan, apply_edits
from .location import SourceUnit
from .scope_graph import ScopeGraph, build_scope_graph

class Yuck(Exception):
	"""
	The first argument will be the name of the phase fraught with error.
	The end-user might not care about this, but it's handy for testing.
	"""
	pass

class Options(NamedTuple):
	allow_loop_capture_rebinding: bool = False

class Analysis:
	""" Everything learned about one program, in the order it was learned. """
	graph: ScopeGraph
	table: BindingTable
	edges: list[CaptureEdge]
	decisions: dict[Binding, LoweringDecision]
	edits: list[RewriteEdit]

	def __init__(self, program:syntax.Program, options:Options=Options()):
		self.program = program
		self.options = options
		self.graph, self.table = build_scope_graph(program)
		self.edges = CaptureAnalysis(self.graph, self.table).edges
		self.decisions = classify(self.table, options.allow_loop_capture_rebinding)
		self.edits = emit_plan(self.table, self.decisions)

	def decision(self, name:str) -> LoweringDecision:
		""" For the common case of exactly one var by that name. """
		found = [d for b, d in self.decisions.items() if b.name == name]
		if len(found) != 1: raise KeyError(name, len(found))
		return found[0]

	def decisions_in_order(self) -> list[LoweringDecision]:
		return sorted(self.decisions.values(), key=lambda d: d.binding.nom.start)


def analyze(program:syntax.Program, options:Options=Options()) -> Analysis:
	return Analysis(program, options)


def read_program(source:SourceUnit, report:Report, estree=False) -> syntax.Program:
	""" Parse a unit or explain why not. """
	try:
		if estree: return front_end.parse_estree(source.text)
		else: return front_end.parse_text(source.text)
	except EsprimaError as ex:
		report.parse_error(source, getattr(ex, "index", 0) or 0, getattr(ex, "description", None) or str(ex))
	except UnsupportedSyntax as ex:
		report.unsupported_syntax(source, ex.kind, ex.start, ex.end)
	except front_end.NotESTree as ex:
		report.not_estree(source, str(ex))
	raise Yuck("parse")


def analyze_unit(source:SourceUnit, report:Report, options:Options=Options(), estree=False) -> Analysis:
	program = read_program(source, report, estree)
	report.info("Parsed", source)
	try: analysis = Analysis(program, options)
	except MalformedScope as ex:
		report.malformed_scope(source, ex)
		raise Yuck("scope")
	except InternalInvariantViolation as ex:
		report.internal_defect(source, ex)
		raise Yuck("emit")
	report.info("%d var bindings, %d edits" % (len(analysis.decisions), len(analysis.edits)))
	for decision in analysis.decisions_in_order():
		report.advise(source, decision)
	return analysis


def rewrite_text(text:str, options:Options=Options(), path:Optional[Path]=None) -> str:
	""" Convenience for tests and scripts: analyze, apply the plan, return the new text. """
	report = Report()
	source = SourceUnit(text, path)
	try: analysis = analyze_unit(source, report, options)
	except Yuck:
		report.complain_to_console()
		raise
	return apply_edits(text, analysis.edits)
