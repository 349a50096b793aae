"""
Flat Row Data Class.

One line of a per-document CSV. Numbers stay typed until the row is
rendered for output.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from invoice_detail.utils.helpers import format_number
from invoice_detail.detection_client.prediction_result import PredictionField


# Header names of the per-document CSV, in file order.
CSV_COLUMNS = [
    "Type", "TypeName", "Text", "Value", "Score",
    "X", "Y", "Width", "Height", "Confidence",
]


@dataclass(frozen=True)
class FlatRow:
    """
    A flattened prediction.

    Attributes mirror PredictionField; ``type_id`` is written under the
    ``Type`` header.
    """
    type_id: int
    type_name: str
    text: str
    value: str
    score: float = 0.0
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    confidence: float = -1.0

    @classmethod
    def from_field(cls, field: PredictionField) -> 'FlatRow':
        """Copy a prediction verbatim."""
        return cls(
            type_id=field.type_id,
            type_name=field.type_name,
            text=field.text,
            value=field.value,
            score=field.score,
            x=field.x,
            y=field.y,
            width=field.width,
            height=field.height,
            confidence=field.confidence,
        )

    def to_strings(self, columns: Optional[Sequence[str]] = None) -> List[str]:
        """
        Render the row for a CSV with the given header subset.

        Raises:
            KeyError: If a column name is not a known CSV column.
        """
        rendered = {
            "Type": str(self.type_id),
            "TypeName": self.type_name,
            "Text": self.text,
            "Value": self.value,
            "Score": format_number(self.score),
            "X": format_number(self.x),
            "Y": format_number(self.y),
            "Width": format_number(self.width),
            "Height": format_number(self.height),
            "Confidence": format_number(self.confidence),
        }
        return [rendered[name] for name in (columns or CSV_COLUMNS)]
