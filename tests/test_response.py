"""Tests for reply templates and wildcard matching."""

from __future__ import annotations

import pytest

from nec_projector import NecProjectorError
from nec_projector.protocol import (
    WILDCARD,
    NecResponse,
    UNKNOWN_RESPONSE_NAME,
    response_templates,
    get_response_template,
    get_matching_response_name,
    is_success_response_for,
    create_success_response,
    create_failure_response,
)

from mocks import status_reply


def test_nibbles():
    assert NecResponse(bytes.fromhex("22 00 00 00 00 22")).indicates_success
    assert NecResponse(bytes.fromhex("a2 00 00 00 02 02 0d b3")).indicates_failure
    garbage = NecResponse(b"\x55\x00")
    assert not garbage.indicates_success and not garbage.indicates_failure


def test_matches_is_symmetric_and_reflexive():
    template = get_response_template("power_on_success")
    reply = NecResponse(bytes.fromhex("22 00 01 02 00 25"))
    assert template.matches(reply)
    assert reply.matches(template)
    assert reply.matches(reply)
    assert template.matches(template)


def test_matches_requires_equal_length():
    template = get_response_template("power_on_success")
    assert not template.matches(bytes.fromhex("22 00 00 00 00"))
    assert not template.matches(bytes.fromhex("22 00 00 00 00 22 00"))


def test_wildcard_on_either_side():
    a = NecResponse(bytes([0x20, WILDCARD, 0x01]))
    b = NecResponse(bytes([0x20, 0x99, WILDCARD]))
    assert a.matches(b) and b.matches(a)
    assert not a.matches(bytes([0x21, 0x99, 0x01]))


def test_error_code_and_checksum():
    reply = create_failure_response("select_input", (0x02, 0x0D))
    assert reply.raw_data == bytes.fromhex("a2 03 00 00 02 02 0d b6")
    assert reply.error_code == (0x02, 0x0D)
    assert reply.checksum_valid
    assert create_success_response("power_on").error_code is None
    assert not NecResponse(bytes.fromhex("22 00 00 00 00 23")).checksum_valid


def test_template_catalog_order():
    names = [template.name for template in response_templates]
    assert len(names) == 28
    assert names[0] == "power_on_success"
    assert names[13] == "get_serial_number_success"
    assert names[14] == "power_on_failure"
    assert names.index("get_status_failure") < names.index("get_serial_number_failure")


def test_matching_response_names():
    assert get_matching_response_name(status_reply()) == "get_status_success"
    assert get_matching_response_name(create_success_response("select_input", b"\x00")) == "select_input_success"
    assert get_matching_response_name(create_failure_response("power_off", (0x00, 0x00))) == "power_off_failure"
    assert get_matching_response_name(b"\x00\x01\x02") == UNKNOWN_RESPONSE_NAME


def test_serial_number_failure_reports_as_status_failure():
    reply = create_failure_response("get_serial_number", (0x00, 0x01))
    assert get_matching_response_name(reply) == "get_status_failure"


def test_is_success_response_for():
    assert is_success_response_for(status_reply(), "get_status")
    assert not is_success_response_for(status_reply(), "get_serial_number")
    assert not is_success_response_for(create_failure_response("get_model_number", (0x00, 0x01)), "get_model_number")


def test_create_success_response_checks_data_length():
    with pytest.raises(NecProjectorError):
        create_success_response("get_status", b"\x04")


def test_unknown_template_name():
    with pytest.raises(NecProjectorError):
        get_response_template("power_on_maybe")


def test_filled_success_templates_match():
    for template in response_templates[:14]:
        filled = bytes(0x00 if b == WILDCARD else b for b in template.raw_data)
        reply = NecResponse(filled)
        assert reply.indicates_success, template.name
        assert template.matches(reply), template.name
