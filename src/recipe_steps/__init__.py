"""
Recipe Steps - step graph integrity and arithmetic for recipe authoring.

Keeps step numbering contiguous, step-output dependencies pointing backward,
ingredient lists free of duplicates and scaled quantities readable.
"""

__version__ = "0.1.0"
