"""
Block metadata storage layer.

Slot-oriented queries over the relational block metadata tables.
"""

__version__ = "2.0.4"
