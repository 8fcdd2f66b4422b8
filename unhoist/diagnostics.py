import sys, random
from itertools import groupby
from pathlib import Path
from typing import Optional, Sequence
from boozetools.support.failureprone import illustration

from .location import SourceUnit
from .ontology import Phrase

class TooManyIssues(Exception):
	pass

class MalformedScope(Exception):
	"""
	The syntax tree is structurally inconsistent, so no scope path to the root
	can be trusted. Fatal for that one source unit; nothing partial comes out.
	The optional second argument is the offending phrase.
	"""
	def phrase(self) -> Optional[Phrase]:
		return self.args[1] if len(self.args) > 1 else None

class InternalInvariantViolation(AssertionError):
	""" A defect in the engine itself. Users cannot cause this; only bugs can. """

class UnsupportedSyntax(Exception):
	""" The front end met a construct outside the subset the analyzer models. """
	def __init__(self, kind:str, start:int, end:int):
		super().__init__(kind, start, end)
		self.kind, self.start, self.end = kind, start, end

GRUMBLES = [
	"Drat", "Blast", "Fiddlesticks", "Horsefeathers", "Confound it",
	"Well, that's awkward", "Hold the phone", "Not so fast",
]

VERDICTS = [
	"These declarations stay exactly as they are.",
	"Nothing gets rewritten until this is sorted out.",
	"Better a var too many than a broken script.",
]

def _grumble() -> str:
	return "%s! %s" % (random.choice(GRUMBLES), random.choice(VERDICTS))

class Report:
	"""
	Collects the issues of one source unit, and the chatter that goes with them.
	Issues are things the user must fix before anything gets rewritten.
	Hazards are not issues: they only ever show up as advice.
	"""
	_issues : list["Pic"]

	def __init__(self, *, verbose:int=0, max_issues=10):
		self._verbose = verbose or 0
		self._issues = []
		self._max_issues = max_issues

	@property
	def issues(self) -> list["Pic"]: return self._issues

	def sick(self): return bool(self._issues)

	def issue(self, it:"Pic"):
		self._issues.append(it)
		if len(self._issues) >= self._max_issues:
			raise TooManyIssues(self)

	def info(self, *args, level=1):
		if self._verbose >= level:
			print(*args, file=sys.stderr)

	def complain_to_console(self):
		if not self._issues: return
		print(_grumble(), file=sys.stderr)
		for pic in self._issues:
			print("-" * 60, file=sys.stderr)
			print(pic.as_text(), file=sys.stderr)
		sys.stderr.flush()

	def assert_no_issues(self, message):
		if self._issues:
			self.complain_to_console()
			raise AssertionError(message + ": " + "; ".join(map(str, self._issues)))

	# Reading files:

	def no_such_file(self, path:Path):
		self.issue(Pic("I see no file called "+str(path), []))

	def broken_file(self, path:Path, why:str):
		self.issue(Pic("Something went pear-shaped while trying to read %s"%path, [], [why]))

	# Parsing:

	def parse_error(self, source:SourceUnit, offset:int, description:str):
		intro = "The parser could not make sense of this script."
		offset = max(0, min(offset, len(source.text)))
		self.issue(Pic(intro, [Annotation(source, (offset, offset), description)]))

	def unsupported_syntax(self, source:SourceUnit, kind:str, start:int, end:int):
		intro = "This uses %s, which is outside what I know how to analyze." % kind
		fits = 0 <= start <= end <= len(source.text)
		problem = [Annotation(source, (start, end), kind)] if fits else []
		footer = ["Destructuring, classes, templates, spread and modules are left to other tools."]
		self.issue(Pic(intro, problem, footer))

	def not_estree(self, source:SourceUnit, why:str):
		self.issue(Pic("This does not look like an ESTree document: "+why, []))

	# Analysis and checking:

	def malformed_scope(self, source:SourceUnit, ex:MalformedScope):
		intro = "The syntax tree does not hang together: " + str(ex.args[0])
		phrase = ex.phrase()
		problem = [Annotation(source, phrase.span())] if phrase is not None and _fits(source, phrase) else []
		self.issue(Pic(intro, problem))

	def internal_defect(self, source:SourceUnit, ex:InternalInvariantViolation):
		intro = "The rewrite plan for %s broke an internal rule. This is a bug in unhoist."%(source.path or "this script")
		self.issue(Pic(intro, [], [str(ex)]))

	def divergence(self, source:SourceUnit, before, after):
		intro = "Running the rewritten script does not match running the original."
		footer = ["before: %s"%(before,), " after: %s"%(after,)]
		self.issue(Pic(intro, [], footer))

	# Advice:

	def advise(self, source:SourceUnit, decision):
		""" With -v, one little picture per var binding, saying what became of it and why. """
		if not self._verbose: return
		binding = decision.binding
		caption = "%s: %s" % (decision.value, decision.reason)
		others = sorted(decision.hazards - {decision.reason})
		footer = ["also: " + ", ".join(others)] if others else []
		pic = Pic("About %r:" % binding.name, [Annotation(source, binding.nom.span(), caption)], footer)
		print(pic.as_text(), file=sys.stderr)

def _fits(source:SourceUnit, phrase:Phrase):
	left, right = phrase.span()
	return isinstance(left, int) and isinstance(right, int) and 0 <= left <= right <= len(source.text)

class Annotation:
	""" A caption pinned to a stretch of one source unit. """
	path: Optional[Path]
	slice: slice
	caption: str
	def __init__(self, source:SourceUnit, span:tuple[int, int], caption:str=""):
		self.source = source
		self.path = source.path
		self.slice = source.span(*span).slice
		self.caption = caption

	def illustrate(self) -> str:
		row, col = self.source.row_col(self.slice.start)
		line = self.source.source_text.line_of_text(row)
		width = max(1, min(self.slice.stop - self.slice.start, len(line) - col))
		return illustration(line, col, width, prefix='% 6d |' % row, caption=self.caption)

class Pic:
	""" One issue: an introduction, some illustrated source, and maybe a few closing remarks. """
	def __init__(self, intro:str, anns:Sequence[Annotation], footer=()):
		self._intro, self._anns, self._footer = intro, list(anns), list(footer)
	def __str__(self): return self._intro
	@property
	def description(self): return self._intro

	def as_text(self) -> str:
		lines = [self._intro, ""]
		for path, group in groupby(self._anns, key=lambda ann: ann.path):
			lines.append(str(path or "<text>"))
			lines.extend(ann.illustrate() for ann in group)
		return "\n".join(lines + self._footer)
