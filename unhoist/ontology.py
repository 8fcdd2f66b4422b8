"""
These most-fundamental classes in the syntax class hierarchy
are separate from the rest to avoid various circular-import
scenarios. Later passes hang their findings off of the things
defined here, so they need to stay small and boring.

Positions are character offsets into the text of one source unit.
A phrase covers the half-open interval [left, right).
"""

class Phrase:
	def left(self) -> int:
		""" Return the offset of the first character of this phrase """
		raise NotImplementedError(type(self))
	def right(self) -> int:
		""" Return the offset just past the last character of this phrase """
		raise NotImplementedError(type(self))
	def span(self) -> tuple[int, int]: return self.left(), self.right()

class Nom(Phrase):
	""" Representing the occurrence of a name anywhere. """
	def __init__(self, text:str, start:int, end:int):
		assert isinstance(text, str)
		assert isinstance(start, int) and isinstance(end, int), (start, end)
		self.text, self.start, self.end = text, start, end
	def __repr__(self): return "<Name %r @%d>" % (self.text, self.start)
	def key(self): return self.text
	def left(self): return self.start
	def right(self): return self.end

class Symbol(Phrase):
	"""
	Any named-and-declared thing that may be found in some scope.
	Thus, variables, parameters, functions, that sort of thing.
	"""
	nom: Nom

	def __init__(self, nom:Nom): self.nom = nom
	def __repr__(self): return "{%s:%s}" % (self.nom.text, type(self).__name__)

	def left(self): return self.nom.left()
	def right(self): return self.nom.right()
