"""
Turns legacy `var` declarations into `let` or `const`, wherever doing so cannot change what a script does.

{0}

For example:

    unhoist script.js

will print the plan of edits for script.js, if any, or else try to explain why not.

    unhoist -p script.js

will print the rewritten script instead, and

    unhoist -h

will explain all the arguments.
"""
import sys, argparse, json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

parser = argparse.ArgumentParser(
	prog="unhoist",
	description="Safely lower var declarations to let and const.",
)
parser.add_argument("files", nargs="+", help="JavaScript sources (or ESTree JSON, with --estree).")
parser.add_argument('-a', "--allow-loop-capture-rebinding", action="store_true", help="Lower loop variables even where closures capture them, giving each iteration its own binding.")
output = parser.add_mutually_exclusive_group()
output.add_argument('-w', "--write", action="store_true", help="Rewrite the files in place.")
output.add_argument('-p', "--print", action="store_true", help="Print the rewritten source instead of the plan.")
parser.add_argument("--json", action="store_true", help="Print the plan as JSON.")
parser.add_argument("--estree", action="store_true", help="Inputs are ESTree documents in JSON, not JavaScript.")
parser.add_argument('-j', "--jobs", type=int, default=1, help="Analyze this many files at once.")
parser.add_argument('-v', "--verbose", action="count", default=0, help="Explain every decision. Say it twice for progress chatter.")
parser.add_argument("--verify", action="store_true", help="Run the script before and after rewriting, and insist they agree.")

class Result:
	""" What came of one file. Printing waits until every file is done, so output stays in order. """
	def __init__(self, path:Path, report):
		self.path = path
		self.report = report
		self.analysis = None
		self.rewritten = None
		self.failed = False
		self.gave_up = False

def process(path:Path, args) -> Result:
	from .diagnostics import Report, TooManyIssues
	from .engine import Options, Yuck, analyze_unit
	from .emitter import apply_edits
	from .location import SourceUnit
	report = Report(verbose=args.verbose)
	result = Result(path, report)
	try:
		try: text = path.read_text(encoding="utf-8")
		except FileNotFoundError:
			report.no_such_file(path)
			raise Yuck("read")
		except (OSError, UnicodeDecodeError) as ex:
			report.broken_file(path, str(ex))
			raise Yuck("read")
		source = SourceUnit(text, path)
		options = Options(allow_loop_capture_rebinding=args.allow_loop_capture_rebinding)
		result.analysis = analysis = analyze_unit(source, report, options, estree=args.estree)
		if not args.estree:
			result.rewritten = apply_edits(text, analysis.edits)
			if args.verify: verify(source, analysis.program, result.rewritten, report)
	except Yuck:
		result.failed = True
	except TooManyIssues:
		result.failed = result.gave_up = True
	return result

def verify(source, program, rewritten:str, report):
	""" Paired execution: the rewritten script has to look just like the original from outside. """
	from .engine import Yuck
	from .evaluator import run
	from .front_end import parse_text
	before = run(program)
	after = run(parse_text(rewritten))
	report.info("before:", before, level=2)
	if before != after:
		report.divergence(source, before, after)
		raise Yuck("verify")

def show(result:Result, args):
	if result.failed:
		result.report.complain_to_console()
		return
	analysis = result.analysis
	if args.write:
		if result.rewritten is not None and analysis.edits:
			result.path.write_text(result.rewritten, encoding="utf-8")
			print("%s: %d edits" % (result.path, len(analysis.edits)), file=sys.stderr)
	elif args.print and result.rewritten is not None:
		sys.stdout.write(result.rewritten)
	elif args.json:
		print(json.dumps({"file": str(result.path), "edits": [e.as_dict() for e in analysis.edits]}))
	else:
		for edit in analysis.edits:
			print("%s:%s" % (result.path, edit))

def run(args):
	paths = [Path(f) for f in args.files]
	if args.estree and (args.write or args.print):
		parser.error("--write and --print need JavaScript source, not ESTree.")
	with ThreadPoolExecutor(max_workers=max(1, args.jobs)) as pool:
		results = list(pool.map(lambda p: process(p, args), paths))
	status = 0
	for result in results:
		show(result, args)
		if result.failed:
			status = 1
			if result.gave_up:
				print("%s: stopped counting after %d issues." % (result.path, len(result.report.issues)), file=sys.stderr)
	return status

def main():
	if len(sys.argv) > 1:
		exit(run(parser.parse_args()))
	else:
		print(__doc__.strip().format(parser.format_usage()))
