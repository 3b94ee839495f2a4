"""Unit tests for merchant reference generation and parsing"""

from src.domain.merchant_ref import generate_merchant_ref, parse_merchant_ref, MerchantRefInfo


class TestGenerateMerchantRef:

    def test_canonical_format(self):
        ref = generate_merchant_ref(42, 5, now_ms=1717000000000)

        assert ref.startswith("INV1717000000000")
        assert ref.endswith("_U42_Q5")
        assert len(ref) == len("INV") + 13 + 6 + len("_U42_Q5")

    def test_generated_ref_parses_back(self):
        ref = generate_merchant_ref(987654, 25)

        assert parse_merchant_ref(ref) == MerchantRefInfo(user_id=987654, quantity=25)

    def test_refs_differ_between_calls(self):
        refs = {generate_merchant_ref(1, 1, now_ms=1717000000000 + i) for i in range(20)}

        assert len(refs) == 20


class TestParseMerchantRef:

    def test_legacy_single_item(self):
        assert parse_merchant_ref("INV/42/WIN-INSTALL-5/1717000000") == MerchantRefInfo(
            user_id=42, quantity=5
        )

    def test_legacy_multiple_items_are_summed(self):
        info = parse_merchant_ref("INV/7/WIN-INSTALL-3/WIN-INSTALL-2")

        assert info == MerchantRefInfo(user_id=7, quantity=5)

    def test_legacy_without_quantity_is_rejected(self):
        assert parse_merchant_ref("INV/7/nothing") is None

    def test_legacy_with_non_numeric_user_is_rejected(self):
        assert parse_merchant_ref("INV/abc/WIN-INSTALL-3") is None

    def test_foreign_reference_is_rejected(self):
        assert parse_merchant_ref("ORDER-123") is None
        assert parse_merchant_ref("INV1717_U42_Q5") is None

    def test_empty_reference_is_rejected(self):
        assert parse_merchant_ref("") is None
