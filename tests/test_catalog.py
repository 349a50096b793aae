"""Tests for the invoice detail field catalog."""

import pytest

from invoice_detail.catalog import CANONICAL_FIELDS, FieldCatalog, FieldDescriptor, FieldKind
from invoice_detail.utils.exceptions import ConfigurationError, UnknownFieldError


class TestCanonicalFields:
    """The static enumeration itself."""

    def test_bits_are_distinct_powers_of_two(self):
        bits = [d.bit_value for d in CANONICAL_FIELDS]
        assert len(bits) == len(set(bits))
        assert all(bit > 0 and bit & (bit - 1) == 0 for bit in bits)

    def test_names_are_unique(self):
        names = [d.name for d in CANONICAL_FIELDS]
        assert len(names) == len(set(names))

    def test_fixed_anchor_bits(self):
        catalog = FieldCatalog()
        assert catalog.name_to_bit("Sender") == 2
        assert catalog.name_to_bit("GrandTotalAmount") == 16
        assert catalog.name_to_bit("Receiver") == 128
        assert catalog.name_to_bit("LineItem") == 65536

    def test_every_constituent_points_to_a_group(self):
        groups = {d.name for d in CANONICAL_FIELDS if d.kind is FieldKind.GROUP}
        for descriptor in CANONICAL_FIELDS:
            if descriptor.kind is FieldKind.CONSTITUENT:
                assert descriptor.group in groups


class TestFieldCatalog:
    """Lookups and mask building."""

    def test_names_to_mask_ors_bits(self):
        assert FieldCatalog().names_to_mask({"Sender", "Receiver"}) == 130

    def test_empty_request_means_all_fields(self):
        assert FieldCatalog().names_to_mask(set()) == 0
        assert FieldCatalog().names_to_mask([]) == 0

    def test_unknown_name_raises(self):
        with pytest.raises(UnknownFieldError) as exc_info:
            FieldCatalog().name_to_bit("InvoiceNumber")
        assert exc_info.value.name == "InvoiceNumber"

    def test_allow_list_accepts_every_listed_name(self):
        allowed = ["InvoiceId", "GrandTotalAmount", "VatGroup"]
        catalog = FieldCatalog(allowed)
        bits = [catalog.name_to_bit(name) for name in allowed]
        assert len(set(bits)) == len(bits)

    def test_allow_list_rejects_inactive_name(self):
        catalog = FieldCatalog(["GrandTotalAmount"])
        with pytest.raises(UnknownFieldError):
            catalog.names_to_mask(["InvoiceId"])

    def test_allow_list_with_unregistered_name_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            FieldCatalog(["NoSuchField"])

    def test_duplicate_bits_rejected(self):
        fields = (FieldDescriptor("A", 1), FieldDescriptor("B", 1))
        with pytest.raises(ConfigurationError):
            FieldCatalog(fields=fields)

    def test_from_config_uses_settings(self, fresh_config):
        fresh_config.set("catalog.active_fields", ["Iban", "Bic"])
        catalog = FieldCatalog.from_config()
        assert catalog.active_names() == ["Iban", "Bic"]


class TestGroupsAndColumns:
    """Group definitions and merged column order."""

    def test_group_constituents_in_order(self):
        groups = FieldCatalog().groups()
        assert groups == {
            "VatGroup": ["VatRate", "VatAmount", "NetAmount"],
            "BankGroup": ["BankCode", "BankAccount"],
            "DiscountGroup": ["DiscountDate", "DiscountStart", "DiscountDuration", "DiscountPercent"],
            "DueDateGroup": ["DueDateDate", "DueDateStart", "DueDateDuration"],
        }

    def test_merge_columns_fold_constituents(self):
        columns = FieldCatalog().merge_columns()
        assert "VatGroup" in columns
        assert "VatRate" not in columns
        assert "Bic" in columns
        assert columns[0] == "InvoiceId"

    def test_restricted_catalog_still_knows_group_members(self):
        catalog = FieldCatalog(["GrandTotalAmount", "BankGroup"])
        assert catalog.groups() == {"BankGroup": ["BankCode", "BankAccount"]}
        assert catalog.merge_columns() == ["GrandTotalAmount", "BankGroup"]

    def test_composites_default_to_all(self):
        assert FieldCatalog().composites() == {"Sender", "Receiver", "LineItem"}
        assert FieldCatalog().composites(["Sender", "GrandTotalAmount"]) == {"Sender"}
