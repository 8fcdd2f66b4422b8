"""
The name-table each scope owns. Looking upward through enclosing
scopes is the scope graph's business; a Layer only knows its own names.
"""

from typing import Generic, Optional, TypeVar
from .ontology import Symbol

T = TypeVar("T", bound=Symbol)

class AlreadyExists(KeyError): pass

class Layer(Generic[T]):
	"""
	One binding per name, in the order they were declared.
	A second claim on a name is refused; the caller decides whether
	that means a legal merge or a collision.
	"""
	_by_name: dict[str, T]

	def __init__(self):
		self._by_name = {}

	def __contains__(self, name: str) -> bool:
		return name in self._by_name

	def __len__(self): return len(self._by_name)

	def symbol(self, name: str) -> Optional[T]:
		return self._by_name.get(name)

	def define(self, symbol: T) -> T:
		name = symbol.nom.key()
		if name in self._by_name: raise AlreadyExists(name)
		self._by_name[name] = symbol
		return symbol
