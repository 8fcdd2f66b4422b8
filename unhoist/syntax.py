"""
The set of syntax nodes the analyzer understands, in simple form.
The front end calls these constructors bottom-up while transducing
whatever its parser produced. Every node knows its source offsets.

Identifier occurrences come in three flavors, told apart by where they sit:
	* a Declarator's nom (or a parameter, catch parameter, function name) declares,
	* a Lookup reads,
	* a Lookup as the target of an Assign or Update writes (or reads-and-writes).

Class-level type annotations make peace with the IDE wherever later passes add fields.
"""
from typing import Optional, Sequence
from boozetools.support.foundation import Visitor
from .ontology import Phrase, Nom

class Node(Phrase):
	start: int
	end: int
	def left(self): return self.start
	def right(self): return self.end
	def at(self, start:int, end:int):
		self.start, self.end = start, end
		return self

class Statement(Node): pass
class Expression(Node): pass

#######################################################################
# Expressions

class Literal(Expression):
	def __init__(self, value, start, end):
		self.value = value
		self.at(start, end)
	def __repr__(self): return "<lit %r>" % (self.value,)

class Lookup(Expression):
	nom: Nom
	def __init__(self, nom:Nom):
		self.nom = nom
		self.at(nom.start, nom.end)
	def __repr__(self): return "<ref:%s>" % self.nom.text

class This(Expression):
	def __init__(self, start, end): self.at(start, end)

class ArrayLit(Expression):
	def __init__(self, elements:Sequence[Optional[Expression]], start, end):
		self.elements = elements
		self.at(start, end)

class Property(Node):
	""" One key:value member of an object literal. The key is not a reference. """
	def __init__(self, key:str, value:Expression, start, end):
		self.key, self.value = key, value
		self.at(start, end)

class ObjectLit(Expression):
	def __init__(self, properties:Sequence[Property], start, end):
		self.properties = properties
		self.at(start, end)

class Member(Expression):
	"""
	obj.prop or obj[prop]. For the dotted form, prop is a string Literal.
	Either way, the property is never a reference to a binding.
	"""
	def __init__(self, obj:Expression, prop:Expression, computed:bool, start, end):
		self.obj, self.prop, self.computed = obj, prop, computed
		self.at(start, end)

class Assign(Expression):
	""" op is "=" for plain assignment, or a compound like "+=". """
	def __init__(self, op:str, target:Expression, value:Expression, start, end):
		assert isinstance(target, (Lookup, Member)), target
		self.op, self.target, self.value = op, target, value
		self.at(start, end)

class Update(Expression):
	def __init__(self, op:str, target:Expression, prefix:bool, start, end):
		assert isinstance(target, (Lookup, Member)), target
		self.op, self.target, self.prefix = op, target, prefix
		self.at(start, end)

class UnaryExp(Expression):
	def __init__(self, op:str, arg:Expression, start, end):
		self.op, self.arg = op, arg
		self.at(start, end)

class BinExp(Expression):
	def __init__(self, op:str, lhs:Expression, rhs:Expression, start, end):
		self.op, self.lhs, self.rhs = op, lhs, rhs
		self.at(start, end)

class ShortCutExp(Expression):
	""" The && || ?? family, which may skip the right-hand side. """
	def __init__(self, op:str, lhs:Expression, rhs:Expression, start, end):
		self.op, self.lhs, self.rhs = op, lhs, rhs
		self.at(start, end)

class Cond(Expression):
	def __init__(self, if_part, then_part, else_part, start, end):
		self.if_part, self.then_part, self.else_part = if_part, then_part, else_part
		self.at(start, end)

class Call(Expression):
	def __init__(self, fn_exp:Expression, args:Sequence[Expression], start, end):
		self.fn_exp, self.args = fn_exp, args
		self.at(start, end)

class New(Expression):
	def __init__(self, fn_exp:Expression, args:Sequence[Expression], start, end):
		self.fn_exp, self.args = fn_exp, args
		self.at(start, end)

class SequenceExp(Expression):
	def __init__(self, exprs:Sequence[Expression], start, end):
		self.exprs = exprs
		self.at(start, end)

class Function(Expression):
	"""
	Shared shape of every function-like thing.
	Arrow functions with an expression body get a synthetic Return around it.
	"""
	nom: Optional[Nom]
	params: Sequence[Nom]
	body: Sequence[Statement]
	def __init__(self, nom:Optional[Nom], params:Sequence[Nom], body:Sequence[Statement], start, end, is_arrow=False):
		self.nom, self.params, self.body, self.is_arrow = nom, params, body, is_arrow
		self.at(start, end)
	def __repr__(self):
		return "<%s %s>" % (type(self).__name__, self.nom.text if self.nom else "(anonymous)")

class FunctionExpr(Function): pass

#######################################################################
# Statements

class FunctionDecl(Function, Statement):
	nom: Nom

class Declarator(Node):
	def __init__(self, nom:Nom, init:Optional[Expression], start, end):
		self.nom, self.init = nom, init
		self.at(start, end)

class VarDecl(Statement):
	"""
	A declaration statement: kind is "var", "let", or "const".
	The keyword itself always occupies the first len(kind) characters.
	"""
	def __init__(self, kind:str, declarators:Sequence[Declarator], start, end):
		assert kind in ("var", "let", "const"), kind
		self.kind, self.declarators = kind, declarators
		self.at(start, end)
	def keyword_span(self) -> tuple[int, int]:
		return self.start, self.start + len(self.kind)
	def __repr__(self):
		return "<%s %s>" % (self.kind, ", ".join(d.nom.text for d in self.declarators))

class ExprStmt(Statement):
	def __init__(self, expr:Expression, start, end):
		self.expr = expr
		self.at(start, end)

class Block(Statement):
	def __init__(self, body:Sequence[Statement], start, end):
		self.body = body
		self.at(start, end)

class Empty(Statement):
	def __init__(self, start, end): self.at(start, end)

class If(Statement):
	def __init__(self, test, consequent:Statement, alternate:Optional[Statement], start, end):
		self.test, self.consequent, self.alternate = test, consequent, alternate
		self.at(start, end)

class For(Statement):
	def __init__(self, init, test, update, body:Statement, start, end):
		self.init, self.test, self.update, self.body = init, test, update, body
		self.at(start, end)

class ForIn(Statement):
	""" Covers for-in and (with is_of) for-of. The head is a VarDecl or an assignable target. """
	def __init__(self, head, iterable:Expression, body:Statement, is_of:bool, start, end):
		self.head, self.iterable, self.body, self.is_of = head, iterable, body, is_of
		self.at(start, end)

class While(Statement):
	def __init__(self, test, body:Statement, start, end):
		self.test, self.body = test, body
		self.at(start, end)

class DoWhile(Statement):
	def __init__(self, body:Statement, test, start, end):
		self.body, self.test = body, test
		self.at(start, end)

class Return(Statement):
	def __init__(self, arg:Optional[Expression], start, end):
		self.arg = arg
		self.at(start, end)

class Break(Statement):
	def __init__(self, start, end): self.at(start, end)

class Continue(Statement):
	def __init__(self, start, end): self.at(start, end)

class Throw(Statement):
	def __init__(self, arg:Expression, start, end):
		self.arg = arg
		self.at(start, end)

class Catch(Node):
	def __init__(self, param:Optional[Nom], body:Block, start, end):
		self.param, self.body = param, body
		self.at(start, end)

class Try(Statement):
	def __init__(self, block:Block, handler:Optional[Catch], finalizer:Optional[Block], start, end):
		self.block, self.handler, self.finalizer = block, handler, finalizer
		self.at(start, end)

class Case(Node):
	""" test is None for the default clause """
	def __init__(self, test:Optional[Expression], body:Sequence[Statement], start, end):
		self.test, self.body = test, body
		self.at(start, end)

class Switch(Statement):
	def __init__(self, discriminant:Expression, cases:Sequence[Case], start, end):
		self.discriminant, self.cases = discriminant, cases
		self.at(start, end)

class With(Statement):
	def __init__(self, obj:Expression, body:Statement, start, end):
		self.obj, self.body = obj, body
		self.at(start, end)

class Program(Node):
	def __init__(self, body:Sequence[Statement], start, end):
		self.body = body
		self.at(start, end)

#######################################################################

class TopDown(Visitor):
	"""
	Convenience base-class to handle the dreary bits of a
	perfectly ordinary top-down walk through a syntax tree.
	Subclasses override whatever they care about; env is passed along untouched.
	"""

	def tour(self, items, env):
		for i in items:
			if i is not None: self.visit(i, env)

	def visit_Literal(self, it:Literal, env): pass
	def visit_This(self, it:This, env): pass
	def visit_Lookup(self, it:Lookup, env): pass
	def visit_Empty(self, it:Empty, env): pass
	def visit_Break(self, it:Break, env): pass
	def visit_Continue(self, it:Continue, env): pass

	def visit_ArrayLit(self, it:ArrayLit, env): self.tour(it.elements, env)
	def visit_ObjectLit(self, it:ObjectLit, env): self.tour(it.properties, env)
	def visit_Property(self, it:Property, env): self.visit(it.value, env)

	def visit_Member(self, it:Member, env):
		self.visit(it.obj, env)
		if it.computed: self.visit(it.prop, env)

	def visit_Assign(self, it:Assign, env):
		self.visit(it.target, env)
		self.visit(it.value, env)

	def visit_Update(self, it:Update, env): self.visit(it.target, env)
	def visit_UnaryExp(self, it:UnaryExp, env): self.visit(it.arg, env)

	def visit_BinExp(self, it:BinExp, env):
		self.visit(it.lhs, env)
		self.visit(it.rhs, env)

	def visit_ShortCutExp(self, it:ShortCutExp, env):
		self.visit(it.lhs, env)
		self.visit(it.rhs, env)

	def visit_Cond(self, it:Cond, env):
		self.visit(it.if_part, env)
		self.visit(it.then_part, env)
		self.visit(it.else_part, env)

	def visit_Call(self, it:Call, env):
		self.visit(it.fn_exp, env)
		self.tour(it.args, env)

	def visit_New(self, it:New, env):
		self.visit(it.fn_exp, env)
		self.tour(it.args, env)

	def visit_SequenceExp(self, it:SequenceExp, env): self.tour(it.exprs, env)

	def visit_FunctionExpr(self, it:FunctionExpr, env): self.tour(it.body, env)
	def visit_FunctionDecl(self, it:FunctionDecl, env): self.tour(it.body, env)

	def visit_Declarator(self, it:Declarator, env):
		if it.init is not None: self.visit(it.init, env)

	def visit_VarDecl(self, it:VarDecl, env): self.tour(it.declarators, env)
	def visit_ExprStmt(self, it:ExprStmt, env): self.visit(it.expr, env)
	def visit_Block(self, it:Block, env): self.tour(it.body, env)
	def visit_Program(self, it:Program, env): self.tour(it.body, env)

	def visit_If(self, it:If, env):
		self.visit(it.test, env)
		self.visit(it.consequent, env)
		if it.alternate is not None: self.visit(it.alternate, env)

	def visit_For(self, it:For, env):
		self.tour((it.init, it.test, it.update), env)
		self.visit(it.body, env)

	def visit_ForIn(self, it:ForIn, env):
		self.visit(it.head, env)
		self.visit(it.iterable, env)
		self.visit(it.body, env)

	def visit_While(self, it:While, env):
		self.visit(it.test, env)
		self.visit(it.body, env)

	def visit_DoWhile(self, it:DoWhile, env):
		self.visit(it.body, env)
		self.visit(it.test, env)

	def visit_Return(self, it:Return, env):
		if it.arg is not None: self.visit(it.arg, env)

	def visit_Throw(self, it:Throw, env): self.visit(it.arg, env)

	def visit_Try(self, it:Try, env):
		self.visit(it.block, env)
		if it.handler is not None: self.visit(it.handler, env)
		if it.finalizer is not None: self.visit(it.finalizer, env)

	def visit_Catch(self, it:Catch, env): self.visit(it.body, env)

	def visit_Switch(self, it:Switch, env):
		self.visit(it.discriminant, env)
		self.tour(it.cases, env)

	def visit_Case(self, it:Case, env):
		if it.test is not None: self.visit(it.test, env)
		self.tour(it.body, env)

	def visit_With(self, it:With, env):
		self.visit(it.obj, env)
		self.visit(it.body, env)
