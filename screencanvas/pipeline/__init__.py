"""Pipeline stages — repair, spec, coords.

A generated document passes through the stages in order:

  repair   — extract JSON from model text, coerce and alias fields, drop or
             reclassify nodes that cannot survive validation
  spec     — strict validation into typed dataclasses (all-or-nothing)
  coords   — per-frame choice between relative and absolute child coordinates,
             consulted by the renderer while it walks the tree
"""
