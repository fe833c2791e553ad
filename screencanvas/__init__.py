"""screencanvas — turn a model's description of a UI screenshot into editable
canvas layers.

  raw text ─► repair ─► spec (strict) ─► render (canvas host)
"""

__version__ = "0.1.0"
