"""
A light-weight way to pass around and illustrate spans within a source unit.
Each analysis gets its own SourceUnit, so nothing here is shared between runs.
"""
from functools import cached_property
from pathlib import Path
from typing import NamedTuple, Optional
from boozetools.support.failureprone import SourceText

class Span(NamedTuple):
	""" Aimed at whatever prints error messages """
	path: Optional[Path]
	slice: slice

class SourceUnit:
	""" The text of one script, with the path it came from (if any). """
	def __init__(self, text:str, path:Optional[Path]=None):
		assert isinstance(path, Path) or path is None
		self.text = text
		self.path = path

	def __repr__(self): return "<SourceUnit %s>" % (self.path or "<text>")

	@cached_property
	def source_text(self) -> SourceText:
		return SourceText(self.text, filename=str(self.path or "<text>"))

	def span(self, start:int, end:int) -> Span:
		assert 0 <= start <= end <= len(self.text), (start, end)
		return Span(self.path, slice(start, end))

	def row_col(self, offset:int) -> tuple[int, int]:
		return self.source_text.find_row_col(offset)
