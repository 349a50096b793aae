"""
Invoice Detail Field Catalog.

The canonical enumeration of invoice detail fields understood by the
detection service. Every field owns a unique bit; the request filter is
the bitwise OR of the requested fields' bits, and 0 asks for all fields.

The enumeration is append-only: new fields get new bit positions and
existing bits are never reassigned. Which fields a deployment uses is a
configuration concern (``catalog.active_fields``), not a protocol one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from config import get_config
from invoice_detail.utils.logger import get_logger
from invoice_detail.utils.exceptions import ConfigurationError, UnknownFieldError

logger = get_logger(__name__)


class FieldKind(Enum):
    """How a field is shaped in the prediction response and merged table."""
    SINGLE = "single"
    GROUP = "group"
    CONSTITUENT = "constituent"
    COMPOSITE = "composite"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    A named invoice detail field.

    Attributes:
        name: Field name as used by the service (``TypeName``).
        bit_value: Filter bit, a power of two.
        kind: Response/merge shape of the field.
        group: For constituents, the name of the owning group field.
    """
    name: str
    bit_value: int
    kind: FieldKind = FieldKind.SINGLE
    group: Optional[str] = None


def _single(name: str, bit: int) -> FieldDescriptor:
    return FieldDescriptor(name, 1 << bit)


def _composite(name: str, bit: int) -> FieldDescriptor:
    return FieldDescriptor(name, 1 << bit, FieldKind.COMPOSITE)


def _group(name: str, bit: int) -> FieldDescriptor:
    return FieldDescriptor(name, 1 << bit, FieldKind.GROUP)


def _member(name: str, bit: int, group: str) -> FieldDescriptor:
    return FieldDescriptor(name, 1 << bit, FieldKind.CONSTITUENT, group)


# Append new fields at the end. Never reorder or reuse a bit.
CANONICAL_FIELDS: Tuple[FieldDescriptor, ...] = (
    _single("InvoiceId", 0),
    _composite("Sender", 1),
    _single("InvoiceDate", 2),
    _single("SenderVatId", 3),
    _single("GrandTotalAmount", 4),
    _single("CurrencyCode", 5),
    _single("DocumentType", 6),
    _composite("Receiver", 7),
    _single("ReceiverVatId", 8),
    _single("Iban", 9),
    _single("Bic", 10),
    _single("DeliveryDate", 11),
    _single("SenderOrderId", 12),
    _single("SenderOrderDate", 13),
    _single("ReceiverOrderId", 14),
    _single("ReceiverOrderDate", 15),
    _composite("LineItem", 16),
    _single("DeliveryNoteId", 17),
    _single("CustomerId", 18),
    _group("VatGroup", 19),
    _member("VatRate", 20, "VatGroup"),
    _member("VatAmount", 21, "VatGroup"),
    _member("NetAmount", 22, "VatGroup"),
    _group("BankGroup", 23),
    _member("BankCode", 24, "BankGroup"),
    _member("BankAccount", 25, "BankGroup"),
    _group("DiscountGroup", 26),
    _member("DiscountDate", 27, "DiscountGroup"),
    _member("DiscountStart", 28, "DiscountGroup"),
    _member("DiscountDuration", 29, "DiscountGroup"),
    _member("DiscountPercent", 30, "DiscountGroup"),
    _group("DueDateGroup", 31),
    _member("DueDateDate", 32, "DueDateGroup"),
    _member("DueDateStart", 33, "DueDateGroup"),
    _member("DueDateDuration", 34, "DueDateGroup"),
    _single("SenderTaxId", 35),
    _single("ReceiverTaxId", 36),
)


class FieldCatalog:
    """
    Lookup and mask building over the canonical field enumeration.

    A catalog may be restricted to an allow-list of active fields. Names
    outside the allow-list are rejected exactly like unregistered names.

    Example:
        >>> catalog = FieldCatalog()
        >>> catalog.name_to_bit("GrandTotalAmount")
        16
        >>> catalog.names_to_mask({"Sender", "Receiver"})
        130
        >>> catalog.names_to_mask(set())
        0
    """

    def __init__(
        self,
        active_fields: Optional[Iterable[str]] = None,
        fields: Tuple[FieldDescriptor, ...] = CANONICAL_FIELDS
    ) -> None:
        """
        Initialize the catalog.

        Args:
            active_fields: Allow-list of field names. None or empty
                activates every field.
            fields: Field enumeration, canonical by default.

        Raises:
            ConfigurationError: If the enumeration is inconsistent or the
                allow-list names an unregistered field.
        """
        self._fields: Dict[str, FieldDescriptor] = {}
        seen_bits: Set[int] = set()

        for descriptor in fields:
            bit = descriptor.bit_value
            if descriptor.name in self._fields:
                raise ConfigurationError(f"Duplicate field name: {descriptor.name}")
            if bit <= 0 or bit & (bit - 1) or bit in seen_bits:
                raise ConfigurationError(
                    f"Invalid or reused bit for field {descriptor.name}: {bit}"
                )
            seen_bits.add(bit)
            self._fields[descriptor.name] = descriptor

        active = list(active_fields or [])
        unknown = [name for name in active if name not in self._fields]
        if unknown:
            raise ConfigurationError(
                "Active field list contains unknown fields",
                {"unknown_fields": unknown}
            )
        self._active = set(active) if active else set(self._fields)

        logger.debug(f"FieldCatalog initialized with {len(self._active)} active fields")

    @classmethod
    def from_config(cls) -> 'FieldCatalog':
        """Build the catalog from ``catalog.active_fields`` in settings."""
        return cls(get_config("catalog.active_fields", []))

    def get(self, name: str) -> FieldDescriptor:
        """
        Resolve an active field descriptor by name.

        Raises:
            UnknownFieldError: If the name is unregistered or inactive.
        """
        if name not in self._active:
            raise UnknownFieldError(name, self.active_names())
        return self._fields[name]

    def name_to_bit(self, name: str) -> int:
        """Return the filter bit of an active field."""
        return self.get(name).bit_value

    def names_to_mask(self, names: Iterable[str]) -> int:
        """
        Build a request filter mask.

        An empty collection gives 0, which the service reads as
        "return all fields".
        """
        mask = 0
        for name in names:
            mask |= self.name_to_bit(name)
        return mask

    def is_active(self, name: str) -> bool:
        return name in self._active

    def active_fields(self) -> List[FieldDescriptor]:
        """Active descriptors in catalog order."""
        return [d for d in self._fields.values() if d.name in self._active]

    def active_names(self) -> List[str]:
        return [d.name for d in self.active_fields()]

    def groups(self) -> Dict[str, List[str]]:
        """
        Map each active group to its ordered constituent names.

        Example:
            >>> FieldCatalog().groups()["BankGroup"]
            ['BankCode', 'BankAccount']
        """
        groups = {
            d.name: [] for d in self.active_fields() if d.kind is FieldKind.GROUP
        }
        for descriptor in self._fields.values():
            if descriptor.kind is FieldKind.CONSTITUENT and descriptor.group in groups:
                groups[descriptor.group].append(descriptor.name)
        return groups

    def composites(self, requested: Optional[Iterable[str]] = None) -> Set[str]:
        """
        Composite fields to emit for a request.

        An empty request means every active composite.
        """
        available = {
            d.name for d in self.active_fields() if d.kind is FieldKind.COMPOSITE
        }
        requested = set(requested or [])
        if not requested:
            return available
        return available & requested

    def merge_columns(self) -> List[str]:
        """
        Column order of the merged table, without the leading FileName.

        Constituents do not get columns of their own; their values live
        in the owning group's column.
        """
        return [
            d.name for d in self.active_fields()
            if d.kind is not FieldKind.CONSTITUENT
        ]
