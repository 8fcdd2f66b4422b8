"""
The Rewrite Plan Emitter. It turns decisions into edits and checks its own work.

A plan is all-or-nothing: any inconsistency here is a defect in the
passes upstream, so it raises rather than emit something half-right.
"""
from typing import NamedTuple, Sequence
from . import syntax
from .bindings import Binding, BindingTable
from .classifier import LoweringDecision
from .diagnostics import InternalInvariantViolation

class RewriteEdit(NamedTuple):
	position: tuple[int, int]
	old_keyword: str
	new_keyword: str
	hazard_notes: frozenset = frozenset()

	def as_dict(self):
		return {
			"start": self.position[0],
			"end": self.position[1],
			"old": self.old_keyword,
			"new": self.new_keyword,
			"notes": sorted(self.hazard_notes),
		}

	def __str__(self):
		text = "%d-%d: %s -> %s" % (self.position + (self.old_keyword, self.new_keyword))
		if self.hazard_notes: text += "  (accepted: %s)" % ", ".join(sorted(self.hazard_notes))
		return text


def _statement_edit(statement:syntax.VarDecl, members:Sequence[Binding], decisions:dict[Binding, LoweringDecision]):
	verdicts = []
	for b in members:
		if b not in decisions:
			if b.is_candidate(): raise InternalInvariantViolation("No decision for %r" % b)
			return None  # A parameter or function shares the name; the statement stays.
		verdicts.append(decisions[b])
	keywords = {v.keyword() for v in verdicts}
	if len(keywords) != 1:
		raise InternalInvariantViolation("Declarators of %r disagree: %s" % (statement, sorted(keywords)))
	keyword = keywords.pop()
	if keyword == statement.kind: return None
	notes = frozenset().union(*(v.accepted for v in verdicts))
	return RewriteEdit(statement.keyword_span(), statement.kind, keyword, notes)


def emit_plan(table:BindingTable, decisions:dict[Binding, LoweringDecision]) -> list[RewriteEdit]:
	for b in table.candidates():
		if b not in decisions: raise InternalInvariantViolation("No decision for %r" % b)
	plan = []
	for statement, members in table.statements.items():
		edit = _statement_edit(statement, members, decisions)
		if edit is not None: plan.append(edit)
	plan.sort(key=lambda e: e.position)
	for before, after in zip(plan, plan[1:]):
		if before.position[1] > after.position[0]:
			raise InternalInvariantViolation("Overlapping edits at %r and %r" % (before.position, after.position))
	return plan


def apply_edits(text:str, edits:Sequence[RewriteEdit]) -> str:
	""" Splice a plan into the text it was made from, last edit first so offsets stay put. """
	for edit in sorted(edits, key=lambda e: e.position, reverse=True):
		left, right = edit.position
		if text[left:right] != edit.old_keyword:
			raise ValueError("Expected %r at %d, found %r" % (edit.old_keyword, left, text[left:right]))
		text = text[:left] + edit.new_keyword + text[right:]
	return text
