"""
Tests for phone normalization helpers and request payload coercion
"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from waitlist.schemas.otp import SendOTPRequest, VerifyOTPRequest
from waitlist.schemas.profiles import AdminListRequest, LaunchNotifySetRequest
from waitlist.utils.phone import (
    full_phone_number,
    get_phone_last4,
    identity_key,
    normalize_country_code,
    normalize_digits,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("(987) 654-3210", "9876543210"),
        ("98765 43210", "9876543210"),
        (9876543210, "9876543210"),
        (None, ""),
        ("abc", ""),
    ],
)
def test_normalize_digits(raw, expected):
    assert normalize_digits(raw) == expected


def test_country_code_is_only_trimmed():
    assert normalize_country_code("  +91 ") == "+91"
    assert normalize_country_code(None) == ""


def test_full_number_and_identity_key():
    assert full_phone_number("+91", "9876543210") == "+919876543210"
    assert identity_key("user_1", "+91", "9876543210") == "user_1::+919876543210"


def test_phone_last4():
    assert get_phone_last4("+919876543210") == "3210"
    assert get_phone_last4("12") == "12"


def test_send_request_normalizes_fields():
    request = SendOTPRequest.model_validate(
        {"userId": " user_1 ", "countryCode": " +1 ", "phoneNumber": "555-123-4567"}
    )

    assert request.user_id == "user_1"
    assert request.country_code == "+1"
    assert request.phone_number == "5551234567"


def test_send_request_defaults_missing_fields_to_empty():
    request = SendOTPRequest.model_validate({})

    assert (request.user_id, request.country_code, request.phone_number) == ("", "", "")


def test_send_request_rejects_non_scalar_identity():
    with pytest.raises(PydanticValidationError):
        SendOTPRequest.model_validate({"userId": ["user_1"]})


def test_verify_request_contact_fields_only_include_strings():
    request = VerifyOTPRequest.model_validate(
        {
            "userId": "user_1",
            "countryCode": "+1",
            "phoneNumber": "5551234567",
            "otp": " 12-34 ",
            "email": " a@example.com ",
            "address": 42,
            "churchName": "Grace",
        }
    )

    assert request.otp == "1234"
    assert request.contact_fields() == {"email": "a@example.com", "churchName": "Grace"}


@pytest.mark.parametrize("raw,expected", [(25, 25.0), ("25", 25.0), ("abc", None), (True, None), (None, None)])
def test_admin_list_limit_is_lenient(raw, expected):
    assert AdminListRequest.model_validate({"requesterUserId": "u", "limit": raw}).limit == expected


@pytest.mark.parametrize(
    "raw,expected",
    [(None, False), (True, True), (False, False), (1, True), (0, False), ("yes", True), ("", False), ({}, True), ([], True)],
)
def test_launch_notify_flag_is_loose(raw, expected):
    request = LaunchNotifySetRequest.model_validate({"userId": "u", "launchNotifyOptIn": raw})

    assert request.launch_notify_opt_in is expected
