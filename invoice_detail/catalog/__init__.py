"""
Field Catalog Module.

Static enumeration of invoice detail fields with their filter bits,
group membership and composite shapes.
"""

from .fields import CANONICAL_FIELDS, FieldCatalog, FieldDescriptor, FieldKind

__all__ = ['CANONICAL_FIELDS', 'FieldCatalog', 'FieldDescriptor', 'FieldKind']
