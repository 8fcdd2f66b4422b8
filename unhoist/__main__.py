"""
So that `python -m unhoist script.js` works the same as the `unhoist` console script.
"""
from .cmdline import main

main()
