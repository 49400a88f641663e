"""
Tests for the cookie and header text forms of a session token.
"""
from __future__ import annotations

import pytest

from slopcheck.tokens import (
    CookieToken,
    HeaderToken,
    decode_cookie,
    decode_header,
    encode_cookie,
    encode_header,
)


def test_encode_forms():
    token = CookieToken(session_id="abc-_9", issued_at=1700000000000, signature="sig_-x")
    assert encode_cookie(token) == "abc-_9.1700000000000.sig_-x"
    assert encode_header(token.header()) == "abc-_9.1700000000000"


def test_decode_cookie():
    assert decode_cookie("abc.123.sig") == CookieToken("abc", 123, "sig")


def test_decode_header():
    assert decode_header("abc.123") == HeaderToken("abc", 123)


def test_cookie_header_projection_matches_header_decode():
    cookie = decode_cookie("sid.42.sig")
    assert cookie.header() == decode_header("sid.42")


@pytest.mark.parametrize("value", [
    None,
    "",
    "abc.123",             # too few fields
    "abc.123.sig.extra",   # too many fields
    ".123.sig",            # empty session id
    "abc..sig",            # empty issued_at
    "abc.123.",            # empty signature
    "abc.12x.sig",         # non-numeric issued_at
    "abc.-5.sig",          # sign not allowed
    "abc.NaN.sig",
    "abc." + "9" * 5000 + ".sig",  # issued_at too long
])
def test_decode_cookie_rejects(value):
    assert decode_cookie(value) is None


@pytest.mark.parametrize("value", [
    None,
    "",
    "abc",
    "abc.123.sig",
    ".123",
    "abc.",
    "abc. 123",
    "abc.١٢٣",  # non-ASCII digits
    "abc." + "9" * 5000,
])
def test_decode_header_rejects(value):
    assert decode_header(value) is None
