"""
langfactory: catalog-driven language records with versioned publishing.

Editors maintain a catalog of two-valued entries, compose step sequences
from it, fill per-position outputs, and publish the resulting
``(identifier, value)`` pairs into a namespace whose active records keep a
full archive of superseded values.
"""

__version__ = "0.1.0"
