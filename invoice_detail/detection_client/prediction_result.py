"""
Prediction Result Data Classes.

Typed view of the detection service's response. The service answers
with PascalCase JSON; ``from_dict`` constructors accept that shape and
keep scores and coordinates as numbers. String rendering happens only
when rows are written.

Response shape:
    {
        "InvoiceState": "Success",
        "InvoiceDetailTypePredictions": [ <field>, ... ],
        "PredictionGroups": [ {"InvoiceDetailTypePredictions": [ <field>, ... ]}, ... ],
        "Sender": <party>, "Receiver": <party>,
        "LineItemTable": {"LineItems": [ <line item>, ... ]},
        "ResultPdf": "<base64>"
    }
"""

import base64
import binascii
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _expect(value: Any, kind: type, what: str) -> Any:
    """Return ``value`` if it has the expected JSON shape; None becomes empty."""
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise ValueError(f"{what} must be a JSON {kind.__name__}, got {type(value).__name__}")
    return value


def _bounding_box(data: Dict[str, Any]) -> Dict[str, float]:
    # Some service versions nest the box, others inline it.
    box = _expect(data.get("BoundingBox"), dict, "BoundingBox") or data
    return {
        'x': _as_float(box.get("X")),
        'y': _as_float(box.get("Y")),
        'width': _as_float(box.get("Width")),
        'height': _as_float(box.get("Height")),
    }


class InvoiceState(Enum):
    """Processing state reported by the service for one document."""
    UNDEFINED = "Undefined"
    SUCCESS = "Success"
    FAILED = "Failed"

    @classmethod
    def parse(cls, raw: Any) -> 'InvoiceState':
        """
        Parse a state given as a name ("Failed") or integer code.

        Integer codes follow declaration order: 0 Undefined, 1 Success,
        2 Failed. Anything unrecognized is Undefined.
        """
        if isinstance(raw, bool):
            return cls.UNDEFINED
        if isinstance(raw, int):
            members = list(cls)
            return members[raw] if 0 <= raw < len(members) else cls.UNDEFINED
        if isinstance(raw, str):
            for member in cls:
                if member.value.lower() == raw.strip().lower():
                    return member
        return cls.UNDEFINED


@dataclass
class PredictionField:
    """
    A single extracted value with its location on the page.

    Attributes:
        type_id: Field bit of the detail type.
        type_name: Detail type name, e.g. "GrandTotalAmount".
        text: Text as it appears on the document.
        value: Normalized value.
        score: Detection score.
        x, y, width, height: Bounding box.
        confidence: Extra confidence figure, -1 when not applicable.
    """
    type_id: int = 0
    type_name: str = ""
    text: str = ""
    value: str = ""
    score: float = 0.0
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    confidence: float = -1.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['PredictionField']:
        """Build a field from the service payload; None stays None."""
        if not data:
            return None
        _expect(data, dict, "Prediction")
        return cls(
            type_id=_as_int(data.get("TypeId")),
            type_name=_as_text(data.get("TypeName")),
            text=_as_text(data.get("Text")),
            value=_as_text(data.get("Value")),
            score=_as_float(data.get("Score")),
            confidence=_as_float(data.get("Confidence"), -1.0),
            **_bounding_box(data)
        )


def _leaf_list(data: Dict[str, Any], *keys: str) -> List[PredictionField]:
    """Collect a repeated leaf that may be sent as a list or a single object."""
    for key in keys:
        raw = data.get(key)
        if raw is None:
            continue
        items = raw if isinstance(raw, list) else [raw]
        return [f for f in (PredictionField.from_dict(item) for item in items) if f]
    return []


@dataclass
class Address:
    """Postal address of a party; every part is optional."""
    street: Optional[PredictionField] = None
    zip_code: Optional[PredictionField] = None
    city: Optional[PredictionField] = None
    country: Optional[PredictionField] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Address':
        data = _expect(data, dict, "Address")
        return cls(
            street=PredictionField.from_dict(data.get("Street")),
            zip_code=PredictionField.from_dict(data.get("ZipCode")),
            city=PredictionField.from_dict(data.get("City")),
            country=PredictionField.from_dict(data.get("Country")),
        )

    def parts(self) -> List[Optional[PredictionField]]:
        return [self.street, self.zip_code, self.city, self.country]


@dataclass
class Party:
    """
    Sender or receiver block.

    The party's own score and bounding box describe the whole block;
    sub-fields carry their own values.
    """
    location: PredictionField
    name: Optional[PredictionField] = None
    address: Address = field(default_factory=Address)
    website_urls: List[PredictionField] = field(default_factory=list)
    emails: List[PredictionField] = field(default_factory=list)
    phone: Optional[PredictionField] = None
    fax: Optional[PredictionField] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['Party']:
        if not data:
            return None
        _expect(data, dict, "Party")
        return cls(
            location=PredictionField.from_dict(data),
            name=PredictionField.from_dict(data.get("Name")),
            address=Address.from_dict(data.get("Address")),
            website_urls=_leaf_list(data, "WebsiteUrls", "WebsiteUrl"),
            emails=_leaf_list(data, "Emails", "Email"),
            phone=PredictionField.from_dict(data.get("Phone")),
            fax=PredictionField.from_dict(data.get("Fax")),
        )


@dataclass
class LineItem:
    """One row of the invoice's line item table."""
    location: PredictionField
    item_id: Optional[PredictionField] = None
    description: Optional[PredictionField] = None
    quantity: Optional[PredictionField] = None
    unit_price: Optional[PredictionField] = None
    total_amount: Optional[PredictionField] = None
    order_id: Optional[PredictionField] = None
    delivery_id: Optional[PredictionField] = None
    position_number: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        data = _expect(data, dict, "LineItem")
        position = data.get("PositionNumber")
        if isinstance(position, dict):
            position = position.get("Value")
        return cls(
            location=PredictionField.from_dict(data) or PredictionField(),
            item_id=PredictionField.from_dict(data.get("ItemId")),
            description=PredictionField.from_dict(data.get("Description")),
            quantity=PredictionField.from_dict(data.get("Quantity")),
            unit_price=PredictionField.from_dict(data.get("UnitPrice")),
            total_amount=PredictionField.from_dict(data.get("TotalAmount")),
            order_id=PredictionField.from_dict(data.get("OrderId")),
            delivery_id=PredictionField.from_dict(data.get("DeliveryId")),
            position_number=_as_text(position),
        )

    def parts(self) -> List[Optional[PredictionField]]:
        return [
            self.item_id,
            self.description,
            self.quantity,
            self.unit_price,
            self.total_amount,
            self.order_id,
            self.delivery_id,
        ]


@dataclass
class PredictionResult:
    """
    Decoded detection response for one document.

    Attributes:
        invoice_state: Service-side processing state.
        predictions: Singleton field predictions, in response order.
        groups: Repeating group instances, each an ordered field list.
        sender: Sender block, if returned.
        receiver: Receiver block, if returned.
        line_items: Line item table rows, in response order.
        result_pdf: Annotated PDF rendered by the service, if requested.
        raw: The decoded JSON payload as received.

    Example:
        >>> result = PredictionResult.from_dict(response.json())
        >>> result.is_failed
        False
    """
    invoice_state: InvoiceState = InvoiceState.UNDEFINED
    predictions: List[PredictionField] = field(default_factory=list)
    groups: List[List[PredictionField]] = field(default_factory=list)
    sender: Optional[Party] = None
    receiver: Optional[Party] = None
    line_items: List[LineItem] = field(default_factory=list)
    result_pdf: Optional[bytes] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_failed(self) -> bool:
        return self.invoice_state is InvoiceState.FAILED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PredictionResult':
        """
        Create a PredictionResult from the decoded response body.

        Raises:
            ValueError: If the body or one of its sections does not have
                the expected shape, or ResultPdf is not valid base64.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Response body must be a JSON object, got {type(data).__name__}")

        predictions = [
            f for f in (
                PredictionField.from_dict(item)
                for item in _expect(data.get("InvoiceDetailTypePredictions"), list,
                                    "InvoiceDetailTypePredictions")
            ) if f
        ]

        groups = []
        for group in _expect(data.get("PredictionGroups"), list, "PredictionGroups"):
            group = _expect(group, dict, "PredictionGroup")
            inner = _expect(group.get("InvoiceDetailTypePredictions"), list,
                            "PredictionGroup.InvoiceDetailTypePredictions")
            groups.append([
                f for f in (PredictionField.from_dict(item) for item in inner) if f
            ])

        table = _expect(data.get("LineItemTable"), dict, "LineItemTable")
        line_items = [
            LineItem.from_dict(item)
            for item in _expect(table.get("LineItems"), list, "LineItems")
        ]

        result_pdf = None
        if data.get("ResultPdf"):
            try:
                result_pdf = base64.b64decode(_expect(data["ResultPdf"], str, "ResultPdf"), validate=True)
            except binascii.Error as e:
                raise ValueError(f"ResultPdf is not valid base64: {e}") from e

        return cls(
            invoice_state=InvoiceState.parse(data.get("InvoiceState")),
            predictions=predictions,
            groups=groups,
            sender=Party.from_dict(data.get("Sender")),
            receiver=Party.from_dict(data.get("Receiver")),
            line_items=line_items,
            result_pdf=result_pdf,
            raw=deepcopy(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Full result as received, suitable for JSON serialization."""
        return deepcopy(self.raw)

    def __repr__(self) -> str:
        return (
            f"PredictionResult("
            f"state={self.invoice_state.value}, "
            f"fields={len(self.predictions)}, "
            f"groups={len(self.groups)}, "
            f"line_items={len(self.line_items)})"
        )
