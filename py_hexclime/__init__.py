"""
Hexagonal climate model for procedural world building.

Computes continentality, evaporation, rainfall and watershed flow over a
toroidal hexagonal grid from an externally generated elevation field.
"""

__version__ = "0.1.0"
