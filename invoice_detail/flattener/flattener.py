"""
Result Flattener Module.

Turns one document's nested PredictionResult into an ordered list of
FlatRows. Fields arrive in three shapes and each is unrolled its own way:

    1. Singleton predictions: one row each, in response order.
    2. Prediction groups: one row per inner prediction, groups
       concatenated in response order (never interleaved).
    3. Composites: one row per Sender/Receiver block and one row per
       line item, their sub-fields serialized into Text and Value.

Row order depends only on the PredictionResult. The merger re-derives
group membership from that order, so nothing here may pad or reorder.
"""

from typing import Callable, Iterable, List, Optional

from invoice_detail.utils.logger import get_logger
from invoice_detail.utils.helpers import single_line
from invoice_detail.detection_client.prediction_result import (
    LineItem,
    Party,
    PredictionField,
    PredictionResult,
)
from .flat_row import FlatRow

logger = get_logger(__name__)

SENDER_TYPE_ID = 2
RECEIVER_TYPE_ID = 128
LINE_ITEM_TYPE_ID = 65536

COMPOSITE_SEPARATOR = ";"
REPEATED_LEAF_SEPARATOR = ","
POSITION_PREFIX = "PositionNumber|"


def _part(field: Optional[PredictionField], attribute: str) -> str:
    if field is None:
        return ""
    return single_line(getattr(field, attribute))


def _repeated(fields: List[PredictionField], attribute: str) -> str:
    return REPEATED_LEAF_SEPARATOR.join(_part(f, attribute) for f in fields)


class ResultFlattener:
    """
    Flattens prediction results into per-document rows.

    Example:
        >>> flattener = ResultFlattener()
        >>> rows = flattener.flatten(result, {"Sender", "LineItem"})
        >>> rows[0].type_name
        'InvoiceId'
    """

    def flatten(
        self,
        result: PredictionResult,
        include_composites: Optional[Iterable[str]] = None
    ) -> List[FlatRow]:
        """
        Flatten one result.

        Args:
            result: Decoded detection response.
            include_composites: Composite names to emit ("Sender",
                "Receiver", "LineItem"). None or empty emits none.

        Returns:
            Rows in deterministic order.
        """
        composites = set(include_composites or [])

        rows = [FlatRow.from_field(f) for f in result.predictions]

        for group in result.groups:
            rows.extend(FlatRow.from_field(f) for f in group)

        if "Sender" in composites and result.sender is not None:
            rows.append(self._party_row(result.sender, SENDER_TYPE_ID, "Sender"))

        if "Receiver" in composites and result.receiver is not None:
            rows.append(self._party_row(result.receiver, RECEIVER_TYPE_ID, "Receiver"))

        if "LineItem" in composites:
            rows.extend(self._line_item_row(item) for item in result.line_items)

        logger.debug(
            f"Flattened {len(result.predictions)} singletons, "
            f"{len(result.groups)} groups into {len(rows)} rows"
        )
        return rows

    def _party_row(self, party: Party, type_id: int, type_name: str) -> FlatRow:
        def serialize(attribute: str) -> str:
            parts = [_part(party.name, attribute)]
            parts.extend(_part(p, attribute) for p in party.address.parts())
            parts.append(_repeated(party.website_urls, attribute))
            parts.append(_repeated(party.emails, attribute))
            parts.append(_part(party.phone, attribute))
            parts.append(_part(party.fax, attribute))
            return COMPOSITE_SEPARATOR.join(parts)

        return self._composite_row(party.location, type_id, type_name, serialize)

    def _line_item_row(self, item: LineItem) -> FlatRow:
        def serialize(attribute: str) -> str:
            parts = [_part(p, attribute) for p in item.parts()]
            parts.append(POSITION_PREFIX + single_line(item.position_number))
            return COMPOSITE_SEPARATOR.join(parts)

        return self._composite_row(item.location, LINE_ITEM_TYPE_ID, "LineItem", serialize)

    @staticmethod
    def _composite_row(
        location: PredictionField,
        type_id: int,
        type_name: str,
        serialize: Callable[[str], str]
    ) -> FlatRow:
        # Score and box describe the whole block, not its sub-fields.
        return FlatRow(
            type_id=type_id,
            type_name=type_name,
            text=serialize("text"),
            value=serialize("value"),
            score=location.score,
            x=location.x,
            y=location.y,
            width=location.width,
            height=location.height,
            confidence=location.confidence,
        )
