"""
A tree-walking reference evaluator for the same subset of JavaScript the analyzer reads.

It exists to check rewrites by running both versions of a script and comparing
what each one prints, returns, and throws. So it models carefully the semantics
a keyword change can disturb:

	* var hoisting, with undefined until assigned,
	* let and const dead zones, and assignment to const,
	* fresh per-iteration bindings in `for (let ...)`,
	* closures, and timers that run them later.

Everything else is modelled just well enough to run ordinary test scripts.
Values map onto Python in the obvious way: null is None, undefined is UNDEFINED,
arrays are JSArray and plain objects are JSObject.
"""
import abc, heapq, math, random
from functools import partial
from typing import Any, NamedTuple, Optional
from . import syntax

class _Undefined:
	def __repr__(self): return "undefined"

UNDEFINED = _Undefined()
UNINITIALIZED = object()  # Occupant of a lexical binding still in its dead zone.
ABSENT = object()
NAN = float("nan")

class JSObject(dict):
	""" Plain objects. Keys are always strings. """
	def __eq__(self, other): return self is other
	def __ne__(self, other): return self is not other
	__hash__ = object.__hash__

class JSArray(list):
	def __eq__(self, other): return self is other
	def __ne__(self, other): return self is not other
	__hash__ = object.__hash__

class JSError(JSObject):
	def __init__(self, name:str, message:str=""):
		super().__init__(name=name, message=message)

class Thrown(Exception):
	""" A JavaScript exception in flight. The first argument is the thrown value. """
	@property
	def value(self): return self.args[0]

class ReturnSignal(Exception):
	@property
	def value(self): return self.args[0]

class BreakSignal(Exception): pass
class ContinueSignal(Exception): pass
class Exhausted(Exception): pass

def _throw(name:str, message:str):
	raise Thrown(JSError(name, message))

class Outcome(NamedTuple):
	""" What an observer could see of one run. """
	result: str  # The value of the last top-level expression statement, as a string.
	error: Optional[str]  # The uncaught exception, if any.
	log: list[str]  # Lines printed by console.log, in order.

###############################################################################
# Environments

class Cell:
	__slots__ = ("value", "const")
	def __init__(self, value, const=False):
		self.value, self.const = value, const

class _PropertyCell:
	""" Stands in for a binding when a with-statement makes a property look like a variable. """
	const = False
	def __init__(self, obj:JSObject, key:str): self._obj, self._key = obj, key
	@property
	def value(self): return self._obj[self._key]
	@value.setter
	def value(self, value): self._obj[self._key] = value

class Runtime:
	""" The per-run odds and ends: printed lines, pending timers, and a step budget. """
	def __init__(self, budget:int, seed:int):
		self.log = []
		self.tasks = []
		self.budget = budget
		self.rng = random.Random(seed)
		self._sequence = 0

	def tick(self):
		self.budget -= 1
		if self.budget < 0: raise Exhausted()

	def defer(self, fn, delay, args:list):
		heapq.heappush(self.tasks, (delay, self._sequence, fn, args))
		self._sequence += 1

class Frame:
	slots: dict[str, Cell]
	def __init__(self, parent:Optional["Frame"], this=ABSENT, runtime:Optional[Runtime]=None):
		self.parent = parent
		self.slots = {}
		self.runtime = runtime if parent is None else parent.runtime
		if this is ABSENT: this = UNDEFINED if parent is None else parent.this
		self.this = this

	def __contains__(self, name:str): return name in self.slots

	def declare(self, name:str, value, const=False):
		self.slots[name] = Cell(value, const)

	def find_here(self, name:str):
		return self.slots.get(name)

	def find(self, name:str):
		frame = self
		while frame is not None:
			cell = frame.find_here(name)
			if cell is not None: return cell
			frame = frame.parent

	def root(self) -> "Frame":
		frame = self
		while frame.parent is not None: frame = frame.parent
		return frame

	def copy(self) -> "Frame":
		""" A sibling with the same bindings, but fresh cells: one loop iteration's worth. """
		twin = Frame(self.parent, this=self.this)
		twin.slots = {k: Cell(c.value, c.const) for k, c in self.slots.items()}
		return twin

class _WithFrame(Frame):
	def __init__(self, parent:Frame, obj):
		super().__init__(parent)
		self.obj = obj
	def find_here(self, name:str):
		if isinstance(self.obj, JSObject) and name in self.obj: return _PropertyCell(self.obj, name)

def _read(name:str, env:Frame):
	cell = env.find(name)
	if cell is None: _throw("ReferenceError", "%s is not defined" % name)
	if cell.value is UNINITIALIZED: _throw("ReferenceError", "Cannot access '%s' before initialization" % name)
	return cell.value

def _write(name:str, value, env:Frame):
	cell = env.find(name)
	if cell is None: env.root().declare(name, value)  # Sloppy mode: an implicit global.
	elif cell.value is UNINITIALIZED: _throw("ReferenceError", "Cannot access '%s' before initialization" % name)
	elif cell.const: _throw("TypeError", "Assignment to constant variable.")
	else: cell.value = value

###############################################################################
# Procedures

class Procedure(abc.ABC):
	""" A run-time object that can be applied with arguments. """
	@abc.abstractmethod
	def apply(self, this, args:list) -> Any:
		pass

class Closure(Procedure):
	""" A function value tied to its natal environment. """
	def __init__(self, static_link:Frame, fn:syntax.Function):
		self._static_link = static_link
		self._fn = fn

	def __str__(self):
		return "function %s() { [code] }" % (self._fn.nom.text if self._fn.nom else "")

	def apply(self, this, args:list):
		fn = self._fn
		frame = Frame(self._static_link, this=self._static_link.this if fn.is_arrow else this)
		for index, p in enumerate(fn.params):
			frame.declare(p.text, args[index] if index < len(args) else UNDEFINED)
		if not fn.is_arrow and "arguments" not in frame: frame.declare("arguments", JSArray(args))
		_enter_function(fn.body, frame)
		try: _run_statements(fn.body, frame)
		except ReturnSignal as r: return r.value
		return UNDEFINED

class Primitive(Procedure):
	""" Host functions: plain Python callables. They never see `this`. """
	def __init__(self, fn:callable):
		self._fn = fn
	def __str__(self): return "function () { [native code] }"
	def apply(self, this, args:list):
		return self._fn(*args)

def call(fn, this, args:list):
	if not isinstance(fn, Procedure): _throw("TypeError", "%s is not a function" % to_string(fn))
	return fn.apply(this, args)

###############################################################################
# Conversions and operators

def _is_number(v) -> bool:
	return isinstance(v, (int, float)) and not isinstance(v, bool)

def truthy(v) -> bool:
	if v is UNDEFINED or v is None: return False
	if isinstance(v, bool): return v
	if _is_number(v): return not (v == 0 or v != v)
	if isinstance(v, str): return v != ""
	return True

def to_number(v):
	if isinstance(v, bool): return int(v)
	if _is_number(v): return v
	if v is None: return 0
	if isinstance(v, str):
		text = v.strip()
		if not text: return 0
		try: return int(text) if text.lstrip("+-").isdigit() else float(text)
		except ValueError: return NAN
	if isinstance(v, JSArray): return to_number(to_string(v))
	return NAN

def to_int32(v) -> int:
	n = to_number(v)
	if n != n or n in (math.inf, -math.inf): return 0
	n = int(n) & 0xFFFFFFFF
	return n - 0x100000000 if n & 0x80000000 else n

def to_string(v) -> str:
	if isinstance(v, str): return v
	if v is UNDEFINED: return "undefined"
	if v is None: return "null"
	if isinstance(v, bool): return "true" if v else "false"
	if isinstance(v, int): return str(v)
	if isinstance(v, float):
		if v != v: return "NaN"
		if v in (math.inf, -math.inf): return "Infinity" if v > 0 else "-Infinity"
		if v.is_integer() and abs(v) < 1e21: return str(int(v))
		return repr(v)
	if isinstance(v, JSError):
		message = to_string(v.get("message", ""))
		return to_string(v.get("name", "Error")) + (": " + message if message else "")
	if isinstance(v, JSArray): return ",".join("" if x is None or x is UNDEFINED else to_string(x) for x in v)
	if isinstance(v, JSObject): return "[object Object]"
	return str(v)

def type_of(v) -> str:
	if v is UNDEFINED: return "undefined"
	if isinstance(v, bool): return "boolean"
	if _is_number(v): return "number"
	if isinstance(v, str): return "string"
	if isinstance(v, Procedure): return "function"
	return "object"

def _to_primitive(v):
	return to_string(v) if isinstance(v, (JSObject, JSArray, Procedure)) else v

def strict_equals(a, b) -> bool:
	if _is_number(a) and _is_number(b): return a == b
	if isinstance(a, (JSObject, JSArray, Procedure)) or isinstance(b, (JSObject, JSArray, Procedure)): return a is b
	return type(a) is type(b) and a == b

def loose_equals(a, b) -> bool:
	nullish_a, nullish_b = a is None or a is UNDEFINED, b is None or b is UNDEFINED
	if nullish_a or nullish_b: return nullish_a and nullish_b
	if type_of(a) == type_of(b) and not (_is_number(a) or _is_number(b)): return strict_equals(a, b)
	if isinstance(a, bool): return loose_equals(int(a), b)
	if isinstance(b, bool): return loose_equals(a, int(b))
	if _is_number(a) and _is_number(b): return a == b
	if _is_number(a) and isinstance(b, str): return a == to_number(b)
	if isinstance(a, str) and _is_number(b): return to_number(a) == b
	if isinstance(a, (JSObject, JSArray)): return loose_equals(_to_primitive(a), b)
	if isinstance(b, (JSObject, JSArray)): return loose_equals(a, _to_primitive(b))
	return False

def _add(a, b):
	a, b = _to_primitive(a), _to_primitive(b)
	if isinstance(a, str) or isinstance(b, str): return to_string(a) + to_string(b)
	return to_number(a) + to_number(b)

def _arithmetic(op):
	return lambda a, b: op(to_number(a), to_number(b))

def _divide(a, b):
	a, b = to_number(a), to_number(b)
	if b == 0:
		if a == 0 or a != a: return NAN
		return math.copysign(math.inf, a) * math.copysign(1, b)
	quotient = a / b
	return int(quotient) if isinstance(a, int) and isinstance(b, int) and quotient.is_integer() else quotient

def _remainder(a, b):
	a, b = to_number(a), to_number(b)
	if b == 0 or a != a or b != b or a in (math.inf, -math.inf): return NAN
	result = math.fmod(a, b)
	return int(result) if isinstance(a, int) and isinstance(b, int) else result

def _compare(op):
	def compare(a, b):
		a, b = _to_primitive(a), _to_primitive(b)
		if isinstance(a, str) and isinstance(b, str): return op(a, b)
		a, b = to_number(a), to_number(b)
		if a != a or b != b: return False
		return op(a, b)
	return compare

def _bitwise(op):
	return lambda a, b: to_int32(op(to_int32(a), to_int32(b)))

def _unsigned_shift(a, b):
	return (to_int32(a) & 0xFFFFFFFF) >> (to_int32(b) & 31)

def _has_property(key, obj):
	if isinstance(obj, JSArray): return key == "length" or (to_string(key).isdigit() and int(to_string(key)) < len(obj))
	if isinstance(obj, JSObject): return to_string(key) in obj
	_throw("TypeError", "Cannot use 'in' operator to search for '%s' in %s" % (to_string(key), to_string(obj)))

BINARY = {
	"+": _add,
	"-": _arithmetic(lambda a, b: a - b),
	"*": _arithmetic(lambda a, b: a * b),
	"**": _arithmetic(lambda a, b: a ** b),
	"/": _divide,
	"%": _remainder,
	"==": loose_equals,
	"!=": lambda a, b: not loose_equals(a, b),
	"===": strict_equals,
	"!==": lambda a, b: not strict_equals(a, b),
	"<": _compare(lambda a, b: a < b),
	"<=": _compare(lambda a, b: a <= b),
	">": _compare(lambda a, b: a > b),
	">=": _compare(lambda a, b: a >= b),
	"&": _bitwise(lambda a, b: a & b),
	"|": _bitwise(lambda a, b: a | b),
	"^": _bitwise(lambda a, b: a ^ b),
	"<<": _bitwise(lambda a, b: a << (b & 31)),
	">>": _bitwise(lambda a, b: a >> (b & 31)),
	">>>": _unsigned_shift,
	"in": _has_property,
}

UNARY = {
	"!": lambda v: not truthy(v),
	"-": lambda v: -to_number(v),
	"+": to_number,
	"~": lambda v: ~to_int32(v),
	"typeof": type_of,
	"void": lambda v: UNDEFINED,
}

###############################################################################
# Properties

def _array_push(arr:JSArray, *items):
	arr.extend(items)
	return len(arr)

def _array_pop(arr:JSArray):
	return arr.pop() if arr else UNDEFINED

def _array_join(arr:JSArray, separator=","):
	separator = "," if separator is UNDEFINED else to_string(separator)
	return separator.join("" if x is None or x is UNDEFINED else to_string(x) for x in arr)

def _array_index_of(arr:JSArray, item=UNDEFINED):
	return next((i for i, x in enumerate(arr) if strict_equals(x, item)), -1)

def _array_for_each(arr:JSArray, fn=UNDEFINED):
	for index, x in enumerate(list(arr)): call(fn, UNDEFINED, [x, index, arr])
	return UNDEFINED

def _array_map(arr:JSArray, fn=UNDEFINED):
	return JSArray(call(fn, UNDEFINED, [x, index, arr]) for index, x in enumerate(list(arr)))

ARRAY_METHODS = {
	"push": _array_push,
	"pop": _array_pop,
	"join": _array_join,
	"indexOf": _array_index_of,
	"forEach": _array_for_each,
	"map": _array_map,
}

STRING_METHODS = {
	"charAt": lambda s, i=0: s[int(to_number(i))] if 0 <= to_number(i) < len(s) else "",
	"indexOf": lambda s, sub=UNDEFINED: s.find(to_string(sub)),
	"toUpperCase": lambda s: s.upper(),
	"toLowerCase": lambda s: s.lower(),
}

def _index(key:str) -> Optional[int]:
	return int(key) if key.isdigit() else None

def get_property(obj, key:str):
	if obj is UNDEFINED or obj is None:
		_throw("TypeError", "Cannot read properties of %s (reading '%s')" % (to_string(obj), key))
	if isinstance(obj, JSArray):
		if key == "length": return len(obj)
		index = _index(key)
		if index is not None: return obj[index] if index < len(obj) else UNDEFINED
		if key in ARRAY_METHODS: return Primitive(partial(ARRAY_METHODS[key], obj))
		return UNDEFINED
	if isinstance(obj, str):
		if key == "length": return len(obj)
		index = _index(key)
		if index is not None: return obj[index] if index < len(obj) else UNDEFINED
		if key in STRING_METHODS: return Primitive(partial(STRING_METHODS[key], obj))
		return UNDEFINED
	if isinstance(obj, JSObject):
		if key in obj: return obj[key]
		if key == "hasOwnProperty": return Primitive(lambda k=UNDEFINED: to_string(k) in obj)
		return UNDEFINED
	if isinstance(obj, Procedure) and key == "call":
		return Primitive(lambda this=UNDEFINED, *args: obj.apply(this, list(args)))
	return UNDEFINED

def set_property(obj, key:str, value):
	if obj is UNDEFINED or obj is None:
		_throw("TypeError", "Cannot set properties of %s (setting '%s')" % (to_string(obj), key))
	if isinstance(obj, JSArray):
		index = _index(key)
		if key == "length":
			size = int(to_number(value))
			del obj[size:]
			obj.extend([UNDEFINED] * (size - len(obj)))
		elif index is not None:
			obj.extend([UNDEFINED] * (index + 1 - len(obj)))
			obj[index] = value
	elif isinstance(obj, JSObject):
		obj[key] = value

def _keys(obj) -> list[str]:
	if isinstance(obj, JSArray) or isinstance(obj, str): return [str(i) for i in range(len(obj))]
	if isinstance(obj, JSObject): return list(obj.keys())
	return []

def _items(obj):
	if isinstance(obj, JSArray):
		index = 0
		while index < len(obj):
			yield obj[index]
			index += 1
	elif isinstance(obj, str):
		yield from obj
	else:
		_throw("TypeError", "%s is not iterable" % to_string(obj))

###############################################################################
# Expressions

def evaluate(expr:syntax.Expression, env:Frame):
	try: fn = EVALUATE[type(expr)]
	except KeyError: raise NotImplementedError(type(expr), expr)
	else: return fn(expr, env)

def _eval_literal(expr:syntax.Literal, env:Frame):
	return expr.value

def _eval_lookup(expr:syntax.Lookup, env:Frame):
	return _read(expr.nom.text, env)

def _eval_this(expr:syntax.This, env:Frame):
	return env.this

def _eval_array_lit(expr:syntax.ArrayLit, env:Frame):
	return JSArray(UNDEFINED if e is None else evaluate(e, env) for e in expr.elements)

def _eval_object_lit(expr:syntax.ObjectLit, env:Frame):
	obj = JSObject()
	for p in expr.properties: obj[p.key] = evaluate(p.value, env)
	return obj

def _key(expr:syntax.Member, env:Frame) -> str:
	if expr.computed: return to_string(evaluate(expr.prop, env))
	else: return expr.prop.value

def _eval_member(expr:syntax.Member, env:Frame):
	obj = evaluate(expr.obj, env)
	return get_property(obj, _key(expr, env))

def _combine(op:str, old, value_expr:syntax.Expression, env:Frame):
	""" Compound assignment. The logical forms may skip the right-hand side entirely. """
	if op == "&&=": return evaluate(value_expr, env) if truthy(old) else old
	if op == "||=": return old if truthy(old) else evaluate(value_expr, env)
	if op == "??=": return evaluate(value_expr, env) if old is None or old is UNDEFINED else old
	return BINARY[op[:-1]](old, evaluate(value_expr, env))

def _eval_assign(expr:syntax.Assign, env:Frame):
	target = expr.target
	if isinstance(target, syntax.Lookup):
		name = target.nom.text
		value = evaluate(expr.value, env) if expr.op == "=" else _combine(expr.op, _read(name, env), expr.value, env)
		_write(name, value, env)
	else:
		obj = evaluate(target.obj, env)
		key = _key(target, env)
		value = evaluate(expr.value, env) if expr.op == "=" else _combine(expr.op, get_property(obj, key), expr.value, env)
		set_property(obj, key, value)
	return value

def _eval_update(expr:syntax.Update, env:Frame):
	step = 1 if expr.op == "++" else -1
	target = expr.target
	if isinstance(target, syntax.Lookup):
		old = to_number(_read(target.nom.text, env))
		_write(target.nom.text, old + step, env)
	else:
		obj = evaluate(target.obj, env)
		key = _key(target, env)
		old = to_number(get_property(obj, key))
		set_property(obj, key, old + step)
	return old + step if expr.prefix else old

def _eval_unary_exp(expr:syntax.UnaryExp, env:Frame):
	if expr.op == "typeof" and isinstance(expr.arg, syntax.Lookup) and env.find(expr.arg.nom.text) is None:
		return "undefined"
	if expr.op == "delete":
		if isinstance(expr.arg, syntax.Member):
			obj = evaluate(expr.arg.obj, env)
			if isinstance(obj, JSObject): obj.pop(_key(expr.arg, env), None)
		return True
	return UNARY[expr.op](evaluate(expr.arg, env))

def _eval_bin_exp(expr:syntax.BinExp, env:Frame):
	lhs = evaluate(expr.lhs, env)
	rhs = evaluate(expr.rhs, env)
	try: op = BINARY[expr.op]
	except KeyError: raise NotImplementedError(expr.op)
	return op(lhs, rhs)

def _eval_shortcut_exp(expr:syntax.ShortCutExp, env:Frame):
	lhs = evaluate(expr.lhs, env)
	if expr.op == "&&": return evaluate(expr.rhs, env) if truthy(lhs) else lhs
	if expr.op == "||": return lhs if truthy(lhs) else evaluate(expr.rhs, env)
	return evaluate(expr.rhs, env) if lhs is None or lhs is UNDEFINED else lhs

def _eval_cond(expr:syntax.Cond, env:Frame):
	sequel = expr.then_part if truthy(evaluate(expr.if_part, env)) else expr.else_part
	return evaluate(sequel, env)

def _eval_call(expr:syntax.Call, env:Frame):
	if isinstance(expr.fn_exp, syntax.Member):
		this = evaluate(expr.fn_exp.obj, env)
		fn = get_property(this, _key(expr.fn_exp, env))
	else:
		this, fn = UNDEFINED, evaluate(expr.fn_exp, env)
	args = [evaluate(a, env) for a in expr.args]
	return call(fn, this, args)

def _eval_new(expr:syntax.New, env:Frame):
	fn = evaluate(expr.fn_exp, env)
	args = [evaluate(a, env) for a in expr.args]
	if not isinstance(fn, Procedure): _throw("TypeError", "%s is not a constructor" % to_string(fn))
	obj = JSObject()
	result = fn.apply(obj, args)
	return result if isinstance(result, (JSObject, JSArray, Procedure)) else obj

def _eval_sequence(expr:syntax.SequenceExp, env:Frame):
	value = UNDEFINED
	for e in expr.exprs: value = evaluate(e, env)
	return value

def _eval_function_expr(expr:syntax.FunctionExpr, env:Frame):
	if expr.nom is None: return Closure(env, expr)
	# A named function expression sees its own name in a little scope of its own.
	env = Frame(env)
	closure = Closure(env, expr)
	env.declare(expr.nom.text, closure)
	return closure

###############################################################################
# Statements

class _VarCollector(syntax.TopDown):
	""" Finds the names a function body hoists, without wandering into nested functions. """
	def __init__(self):
		self.names = []
	def visit_VarDecl(self, it:syntax.VarDecl, env):
		if it.kind == "var": self.names.extend(d.nom.text for d in it.declarators)
	def visit_FunctionDecl(self, it:syntax.FunctionDecl, env):
		self.names.append(it.nom.text)
	def visit_FunctionExpr(self, it:syntax.FunctionExpr, env): pass

def _enter_function(body, frame:Frame):
	collector = _VarCollector()
	collector.tour(body, None)
	for name in collector.names:
		if name not in frame: frame.declare(name, UNDEFINED)
	_enter_block(body, frame, nested=False)

def _enter_block(body, frame:Frame, nested=True):
	"""
	Create the lexical bindings of a block, dead until their declarations run,
	and the functions it declares, which are live from the start.
	"""
	for stmt in body:
		if isinstance(stmt, syntax.VarDecl) and stmt.kind != "var":
			for d in stmt.declarators: frame.declare(d.nom.text, UNINITIALIZED, stmt.kind == "const")
		elif isinstance(stmt, syntax.FunctionDecl):
			closure = Closure(frame, stmt)
			frame.declare(stmt.nom.text, closure)
			# The legacy reading also hands a block's function to the enclosing function's var.
			if nested: _write(stmt.nom.text, closure, frame.parent)

def _run_statements(body, env:Frame):
	for stmt in body: execute(stmt, env)

def execute(stmt:syntax.Statement, env:Frame):
	env.runtime.tick()
	try: fn = EXECUTE[type(stmt)]
	except KeyError: raise NotImplementedError(type(stmt), stmt)
	else: return fn(stmt, env)

def _exec_empty(stmt:syntax.Empty, env:Frame): pass
def _exec_function_decl(stmt:syntax.FunctionDecl, env:Frame): pass

def _exec_expr_stmt(stmt:syntax.ExprStmt, env:Frame):
	return evaluate(stmt.expr, env)

def _exec_var_decl(stmt:syntax.VarDecl, env:Frame):
	for d in stmt.declarators:
		if stmt.kind == "var":
			if d.init is not None: _write(d.nom.text, evaluate(d.init, env), env)
		else:
			value = UNDEFINED if d.init is None else evaluate(d.init, env)
			if d.nom.text in env: env.slots[d.nom.text].value = value
			else: env.declare(d.nom.text, value, stmt.kind == "const")

def _exec_block(stmt:syntax.Block, env:Frame):
	inner = Frame(env)
	_enter_block(stmt.body, inner)
	_run_statements(stmt.body, inner)

def _exec_if(stmt:syntax.If, env:Frame):
	if truthy(evaluate(stmt.test, env)): execute(stmt.consequent, env)
	elif stmt.alternate is not None: execute(stmt.alternate, env)

def _run_body(body:syntax.Statement, env:Frame) -> bool:
	""" One pass through a loop body. False means break out of the loop. """
	try: execute(body, env)
	except BreakSignal: return False
	except ContinueSignal: pass
	return True

def _exec_while(stmt:syntax.While, env:Frame):
	while truthy(evaluate(stmt.test, env)):
		if not _run_body(stmt.body, env): break

def _exec_do_while(stmt:syntax.DoWhile, env:Frame):
	while _run_body(stmt.body, env) and truthy(evaluate(stmt.test, env)):
		pass

def _exec_for(stmt:syntax.For, env:Frame):
	head = Frame(env)
	fresh_each_time = False
	if isinstance(stmt.init, syntax.VarDecl):
		if stmt.init.kind != "var":
			_enter_block([stmt.init], head)
			fresh_each_time = stmt.init.kind == "let"
		execute(stmt.init, head)
	elif stmt.init is not None:
		evaluate(stmt.init, head)
	frame = head.copy() if fresh_each_time else head
	while stmt.test is None or truthy(evaluate(stmt.test, frame)):
		if not _run_body(stmt.body, frame): break
		if fresh_each_time: frame = frame.copy()
		if stmt.update is not None: evaluate(stmt.update, frame)

def _exec_for_in(stmt:syntax.ForIn, env:Frame):
	subject = evaluate(stmt.iterable, env)
	if stmt.is_of: items = _items(subject)
	else: items = iter(_keys(subject))
	head = stmt.head
	for item in items:
		frame = env
		if isinstance(head, syntax.VarDecl):
			name = head.declarators[0].nom.text
			if head.kind == "var": _write(name, item, env)
			else:
				frame = Frame(env)
				frame.declare(name, item, head.kind == "const")
		elif isinstance(head, syntax.Lookup):
			_write(head.nom.text, item, env)
		else:
			set_property(evaluate(head.obj, env), _key(head, env), item)
		if not _run_body(stmt.body, frame): break

def _exec_return(stmt:syntax.Return, env:Frame):
	raise ReturnSignal(UNDEFINED if stmt.arg is None else evaluate(stmt.arg, env))

def _exec_break(stmt:syntax.Break, env:Frame): raise BreakSignal()
def _exec_continue(stmt:syntax.Continue, env:Frame): raise ContinueSignal()

def _exec_throw(stmt:syntax.Throw, env:Frame):
	raise Thrown(evaluate(stmt.arg, env))

def _exec_try(stmt:syntax.Try, env:Frame):
	try:
		try: execute(stmt.block, env)
		except Thrown as ex:
			if stmt.handler is None: raise
			handler = stmt.handler
			frame = Frame(env)
			if handler.param is not None: frame.declare(handler.param.text, ex.value)
			_enter_block(handler.body.body, frame)
			_run_statements(handler.body.body, frame)
	finally:
		if stmt.finalizer is not None: execute(stmt.finalizer, env)

def _exec_switch(stmt:syntax.Switch, env:Frame):
	subject = evaluate(stmt.discriminant, env)
	frame = Frame(env)
	for case in stmt.cases: _enter_block(case.body, frame)
	start = None
	for index, case in enumerate(stmt.cases):
		if case.test is not None and strict_equals(subject, evaluate(case.test, frame)):
			start = index
			break
	else:
		start = next((i for i, case in enumerate(stmt.cases) if case.test is None), None)
	if start is None: return
	try:
		for case in stmt.cases[start:]: _run_statements(case.body, frame)
	except BreakSignal: pass

def _exec_with(stmt:syntax.With, env:Frame):
	execute(stmt.body, _WithFrame(env, evaluate(stmt.obj, env)))

###############################################################################
# Running whole programs

def _standard_hosts(runtime:Runtime) -> dict:
	def log(*args):
		runtime.log.append(" ".join(to_string(a) for a in args))
		return UNDEFINED

	def set_timeout(fn=UNDEFINED, delay=0, *args):
		delay = to_number(delay)
		runtime.defer(fn, 0 if delay != delay else delay, list(args))
		return len(runtime.tasks)

	def floor(x=UNDEFINED):
		n = to_number(x)
		return n if n != n or n in (math.inf, -math.inf) else math.floor(n)

	def error_type(name):
		return Primitive(lambda message=UNDEFINED: JSError(name, "" if message is UNDEFINED else to_string(message)))

	return {
		"undefined": UNDEFINED,
		"NaN": NAN,
		"Infinity": math.inf,
		"console": JSObject(log=Primitive(log)),
		"setTimeout": Primitive(set_timeout),
		"Math": JSObject(
			floor=Primitive(floor),
			abs=Primitive(lambda x=UNDEFINED: abs(to_number(x))),
			max=Primitive(lambda *xs: max(map(to_number, xs), default=-math.inf)),
			min=Primitive(lambda *xs: min(map(to_number, xs), default=math.inf)),
			random=Primitive(runtime.rng.random),
		),
		"String": Primitive(lambda v="": to_string(v)),
		"Number": Primitive(lambda v=0: to_number(v)),
		"Error": error_type("Error"),
		"TypeError": error_type("TypeError"),
		"ReferenceError": error_type("ReferenceError"),
	}

def _host_value(value):
	return Primitive(value) if callable(value) and not isinstance(value, Procedure) else value

def _describe(value) -> str:
	return to_string(value) if isinstance(value, JSError) else "Uncaught " + to_string(value)

def _guarded(thunk) -> Optional[str]:
	""" Run something, and say what went wrong, if anything. """
	try: thunk()
	except Thrown as ex: return _describe(ex.value)
	except Exhausted: return "Step budget exhausted"
	except RecursionError: return "RangeError: Maximum call stack size exceeded"

def run(program:syntax.Program, hosts:Optional[dict]=None, budget:int=100000, seed:int=0) -> Outcome:
	"""
	Run a script to completion, then run whatever timers it set, shortest delay first.
	Extra hosts (name -> value) join or override the standard ones; plain Python
	callables among them become host functions.
	"""
	runtime = Runtime(budget, seed)
	root = Frame(None, runtime=runtime)
	for name, value in _standard_hosts(runtime).items(): root.declare(name, value)
	for name, value in (hosts or {}).items(): root.declare(name, _host_value(value))
	script = Frame(root)
	completion = UNDEFINED

	def main():
		nonlocal completion
		_enter_function(program.body, script)
		for stmt in program.body:
			value = execute(stmt, script)
			if isinstance(stmt, syntax.ExprStmt): completion = value

	error = _guarded(main)
	while runtime.tasks and runtime.budget > 0:
		delay, sequence, fn, args = heapq.heappop(runtime.tasks)
		failure = _guarded(partial(call, fn, UNDEFINED, args))
		error = error or failure
	return Outcome(to_string(completion), error, list(runtime.log))


EVALUATE = {}
EXECUTE = {}
for _k, _v in list(globals().items()):
	if _k.startswith("_eval_"):
		_t = _v.__annotations__["expr"]
		assert isinstance(_t, type), (_k, _t)
		EVALUATE[_t] = _v
	elif _k.startswith("_exec_"):
		_t = _v.__annotations__["stmt"]
		assert isinstance(_t, type), (_k, _t)
		EXECUTE[_t] = _v
