"""
The Lowering Classifier: one decision per var binding.

Policy is a fixed precedence list. The first rule that matches wins,
so a binding with several hazards is kept for the most fundamental one.
Only one branch is negotiable, and only through Options.

After the per-binding pass, a second pass makes each var-statement speak
with one voice, because a statement has exactly one keyword to rewrite.
"""
from typing import NamedTuple
from .bindings import (
	Binding, BindingTable, VAR,
	FREE, DUPLICATE_BLOCK_BINDING, MERGED_REDECLARATION, DYNAMIC_SCOPE, GLOBAL_PROPERTY, UNBRACED_DECLARATION,
	SCOPE_RESOLUTION_CHANGE, TEMPORAL_DEAD_ZONE, LOOP_CARRIED_VALUE, ITERATION_SEMANTICS_CHANGE,
)

TO_BLOCK_CONST = "ToBlockConst"
TO_BLOCK_LET = "ToBlockLet"
KEEP = "KeepFunctionScoped"

NEVER_REASSIGNED = "NeverReassigned"
REASSIGNED = "Reassigned"
UNINITIALIZED = "Uninitialized"
SHARED_DECLARATION = "SharedDeclaration"

KEYWORD = {TO_BLOCK_CONST: "const", TO_BLOCK_LET: "let", KEEP: VAR}

# Hazards that settle the matter outright, in order of precedence.
BLOCKERS = (
	FREE, DUPLICATE_BLOCK_BINDING, MERGED_REDECLARATION, DYNAMIC_SCOPE, GLOBAL_PROPERTY, UNBRACED_DECLARATION,
	SCOPE_RESOLUTION_CHANGE, TEMPORAL_DEAD_ZONE, LOOP_CARRIED_VALUE,
)

class LoweringDecision(NamedTuple):
	binding: Binding
	value: str
	reason: str
	hazards: frozenset
	accepted: frozenset = frozenset()

	def keyword(self) -> str:
		return KEYWORD[self.value]

	def is_lowered(self) -> bool:
		return self.value != KEEP

	def demote(self, value:str, reason:str) -> "LoweringDecision":
		accepted = self.accepted if value != KEEP else frozenset()
		return self._replace(value=value, reason=reason, accepted=accepted)


def decide(binding:Binding, allow_loop_capture_rebinding:bool=False) -> LoweringDecision:
	hazards = frozenset(binding.hazards)
	for tag in BLOCKERS:
		if tag in hazards: return LoweringDecision(binding, KEEP, tag, hazards)
	accepted = frozenset()
	if ITERATION_SEMANTICS_CHANGE in hazards:
		if not allow_loop_capture_rebinding:
			return LoweringDecision(binding, KEEP, ITERATION_SEMANTICS_CHANGE, hazards)
		accepted = frozenset([ITERATION_SEMANTICS_CHANGE])
	if binding.is_reassigned:
		return LoweringDecision(binding, TO_BLOCK_LET, REASSIGNED, hazards, accepted)
	if not binding.declaration.is_initialized():
		return LoweringDecision(binding, TO_BLOCK_LET, UNINITIALIZED, hazards, accepted)
	return LoweringDecision(binding, TO_BLOCK_CONST, NEVER_REASSIGNED, hazards, accepted)


def classify(table:BindingTable, allow_loop_capture_rebinding:bool=False) -> dict[Binding, LoweringDecision]:
	"""
	Decide every var binding, then reconcile the bindings that share a statement.
	A binding may be mentioned by several statements only when it carries
	MergedRedeclaration, so it is already kept, and keeping is contagious.
	"""
	decisions = {b: decide(b, allow_loop_capture_rebinding) for b in table.candidates()}
	changed = True
	while changed:
		changed = False
		for statement, members in table.statements.items():
			verdicts = [decisions.get(b) for b in members]
			if any(v is None or not v.is_lowered() for v in verdicts):
				target = KEEP
			elif len({v.value for v in verdicts}) > 1:
				target = TO_BLOCK_LET
			else:
				continue
			for b, v in zip(members, verdicts):
				if v is not None and v.value != target and v.value != KEEP:
					decisions[b] = v.demote(target, SHARED_DECLARATION)
					changed = True
	return decisions
