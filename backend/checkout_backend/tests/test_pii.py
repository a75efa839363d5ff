"""
PII masking used by the application loggers.
"""
import pytest

from checkout_backend.utils.pii import PIIProtection


class TestMaskEmail:
    @pytest.mark.parametrize(
        "email, masked",
        [
            ("john.doe@example.com", "jo******@example.com"),
            ("ab@example.com", "a*@example.com"),
            ("not-an-email", "not-an-email"),
            (None, ""),
        ],
    )
    def test_mask_email(self, email, masked):
        assert PIIProtection.mask_email(email) == masked


class TestScrubDict:
    def test_nested_payload(self):
        payload = {
            "email": "jane@example.com",
            "phone": "555-0100",
            "order": {"po_number": 19480, "first_name": "Jane"},
            "shipping_address": {"city": "Springfield"},
        }

        scrubbed = PIIProtection.scrub_pii_from_dict(payload)

        assert scrubbed == {
            "email": "ja**@example.com",
            "phone": "[REDACTED]",
            "order": {"po_number": 19480, "first_name": "[REDACTED]"},
            "shipping_address": "[REDACTED]",
        }

    def test_validation_errors_with_list_indexes(self):
        errors = {"items": {0: {"addons": ["Object with code=bad does not exist."]}}}

        assert PIIProtection.scrub_pii_from_dict(errors) == errors

    def test_dicts_inside_lists(self):
        payload = {"contacts": [{"email": "jane@example.com", "phone": "555-0100"}, "note"]}

        scrubbed = PIIProtection.scrub_pii_from_dict(payload)

        assert scrubbed == {"contacts": [{"email": "ja**@example.com", "phone": "[REDACTED]"}, "note"]}
