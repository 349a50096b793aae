"""Shared fixtures for the invoice detail client tests."""

import pytest

from config import ConfigurationManager
from invoice_detail.detection_client.prediction_result import PredictionResult


@pytest.fixture(autouse=True)
def fresh_config():
    """Load settings.yaml from scratch for every test."""
    ConfigurationManager.reset()
    yield ConfigurationManager()
    ConfigurationManager.reset()


def field(type_id, type_name, value, text=None, score=0.9, **extra):
    data = {
        "TypeId": type_id,
        "TypeName": type_name,
        "Text": value if text is None else text,
        "Value": value,
        "Score": score,
        "X": 10,
        "Y": 20,
        "Width": 100,
        "Height": 12,
    }
    data.update(extra)
    return data


@pytest.fixture
def sample_payload():
    """A successful response with singletons, groups and composites."""
    return {
        "InvoiceState": "Success",
        "InvoiceDetailTypePredictions": [
            field(1, "InvoiceId", "RE-2024-001"),
            field(16, "GrandTotalAmount", "123.45", text="123,45 EUR"),
        ],
        "PredictionGroups": [
            {"InvoiceDetailTypePredictions": [
                field(1 << 20, "VatRate", "20"),
                field(1 << 21, "VatAmount", "18.50"),
                field(1 << 22, "NetAmount", "92.50"),
            ]},
            {"InvoiceDetailTypePredictions": [
                field(1 << 24, "BankCode", "12000"),
                field(1 << 25, "BankAccount", "4711"),
            ]},
        ],
        "Sender": {
            "Score": 0.75, "X": 5, "Y": 6, "Width": 200, "Height": 60,
            "Name": {"Text": "ACME GmbH", "Value": "ACME GmbH"},
            "Address": {
                "Street": {"Text": "Main St 1", "Value": "Main Street 1"},
                "ZipCode": {"Text": "1010", "Value": "1010"},
                "City": {"Text": "Wien", "Value": "Vienna"},
                "Country": {"Text": "AT", "Value": "Austria"},
            },
            "WebsiteUrls": [{"Text": "acme.at", "Value": "acme.at"}],
            "Emails": [
                {"Text": "a@acme.at", "Value": "a@acme.at"},
                {"Text": "b@acme.at", "Value": "b@acme.at"},
            ],
            "Phone": {"Text": "+43 1", "Value": "+431"},
        },
        "LineItemTable": {"LineItems": [
            {
                "Score": 0.8, "X": 1, "Y": 2, "Width": 3, "Height": 4,
                "ItemId": {"Text": "A-1", "Value": "A-1"},
                "Description": {"Text": "Widget\r\nlarge", "Value": "Widget\nlarge"},
                "Quantity": {"Text": "2", "Value": "2"},
                "UnitPrice": {"Text": "5,00", "Value": "5.00"},
                "TotalAmount": {"Text": "10,00", "Value": "10.00"},
                "PositionNumber": 1,
            },
        ]},
    }


@pytest.fixture
def sample_result(sample_payload):
    return PredictionResult.from_dict(sample_payload)
