import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr
from pathlib import Path

from unhoist import cmdline

class CommandLineTests(unittest.TestCase):

	def setUp(self):
		self._tmp = tempfile.TemporaryDirectory()
		self.folder = Path(self._tmp.name)

	def tearDown(self):
		self._tmp.cleanup()

	def _script(self, name, text) -> str:
		path = self.folder / name
		path.write_text(text, encoding="utf-8")
		return str(path)

	def _run(self, *argv):
		out, err = io.StringIO(), io.StringIO()
		with redirect_stdout(out), redirect_stderr(err):
			status = cmdline.run(cmdline.parser.parse_args(list(argv)))
		return status, out.getvalue(), err.getvalue()

	def test_plan(self):
		path = self._script("a.js", "var a = 1;\n")
		status, out, err = self._run(path)
		self.assertEqual(0, status)
		self.assertEqual("%s:0-3: var -> const\n" % path, out)

	def test_print(self):
		path = self._script("a.js", "var a = 1; var b; b = a;\n")
		status, out, err = self._run("-p", path)
		self.assertEqual(0, status)
		self.assertEqual("const a = 1; let b; b = a;\n", out)

	def test_json(self):
		path = self._script("a.js", "for (var i = 0; i < 3; i++) { setTimeout(() => console.log(i)); }")
		status, out, err = self._run("--json", "-a", path)
		plan = json.loads(out)
		self.assertEqual(path, plan["file"])
		self.assertEqual([{"start": 5, "end": 8, "old": "var", "new": "let", "notes": ["IntentionalIterationSemanticsChange"]}], plan["edits"])

	def test_write(self):
		path = self._script("a.js", "var a = 1;\n")
		status, out, err = self._run("-w", path)
		self.assertEqual(0, status)
		self.assertEqual("const a = 1;\n", Path(path).read_text(encoding="utf-8"))
		self.assertIn("1 edits", err)

	def test_write_leaves_kept_files_alone(self):
		text = "for (var i = 0; i < 3; i++) { setTimeout(() => console.log(i)); }"
		path = self._script("a.js", text)
		status, out, err = self._run("-w", path)
		self.assertEqual(0, status)
		self.assertEqual(text, Path(path).read_text(encoding="utf-8"))
		self.assertEqual("", err)

	def test_missing_file(self):
		status, out, err = self._run(str(self.folder / "nope.js"))
		self.assertEqual(1, status)
		self.assertIn("I see no file called", err)

	def test_parse_error(self):
		status, out, err = self._run(self._script("bad.js", "var = ;"))
		self.assertEqual(1, status)
		self.assertIn("could not make sense", err)

	def test_unsupported(self):
		status, out, err = self._run(self._script("d.js", "var {a} = o;"))
		self.assertEqual(1, status)
		self.assertIn("destructuring", err)

	def test_one_bad_file_does_not_spoil_the_rest(self):
		good = self._script("good.js", "var a = 1;")
		bad = self._script("bad.js", "var = ;")
		status, out, err = self._run("-j", "2", bad, good)
		self.assertEqual(1, status)
		self.assertEqual("%s:0-3: var -> const\n" % good, out)

	def test_order_is_kept(self):
		paths = [self._script("%d.js" % n, "var v%d = %d;" % (n, n)) for n in range(5)]
		status, out, err = self._run("-j", "3", *paths)
		self.assertEqual([p for p in paths], [line.split(":")[0] for line in out.splitlines()])

	def test_verify(self):
		path = self._script("a.js", "var a = 1, b; b = a + 1; console.log(a, b);")
		status, out, err = self._run("--verify", path)
		self.assertEqual(0, status)

	def test_estree(self):
		document = {
			"type": "Program", "start": 0, "end": 6, "body": [{
				"type": "VariableDeclaration", "kind": "var", "start": 0, "end": 6,
				"declarations": [{
					"type": "VariableDeclarator", "start": 4, "end": 5,
					"id": {"type": "Identifier", "name": "a", "start": 4, "end": 5}, "init": None,
				}],
			}],
		}
		path = self._script("a.json", json.dumps(document))
		status, out, err = self._run("--estree", path)
		self.assertEqual(0, status)
		self.assertEqual("%s:0-3: var -> let\n" % path, out)

	def test_estree_cannot_print(self):
		path = self._script("a.json", "{}")
		with self.assertRaises(SystemExit):
			self._run("--estree", "-p", path)

	def test_verbose_explains(self):
		path = self._script("a.js", "var a = 1;")
		status, out, err = self._run("-v", path)
		self.assertIn("ToBlockConst: NeverReassigned", err)


if __name__ == '__main__':
	unittest.main()
