"""HTTP status classification."""

from __future__ import annotations

import httpx
import pytest

from bot_provisioning.http_status import (
    HttpStatusClass,
    classify_response,
    classify_status,
    status_code_of,
)
from bot_provisioning.inmemory import FakeResponse


@pytest.mark.parametrize(
    ('status', 'expected'),
    [
        (200, HttpStatusClass.OK_OR_CREATED),
        (201, HttpStatusClass.OK_OR_CREATED),
        (202, HttpStatusClass.ACCEPTED),
        (204, HttpStatusClass.OTHER),
        (301, HttpStatusClass.OTHER),
        (404, HttpStatusClass.OTHER),
        (500, HttpStatusClass.OTHER),
        (None, HttpStatusClass.OTHER),
    ],
)
def test_classify_status(status, expected):
    assert classify_status(status) is expected


def test_classification_is_pure():
    for status in (200, 202, 503):
        assert classify_status(status) is classify_status(status)


def test_bool_is_never_a_status():
    assert classify_status(True) is HttpStatusClass.OTHER  # type: ignore[arg-type]


@pytest.mark.parametrize('status', [200.0, 202.0, '200', b'200'])
def test_non_int_is_never_a_status(status):
    assert classify_status(status) is HttpStatusClass.OTHER  # type: ignore[arg-type]


class TestStatusCodeOf:
    def test_reads_httpx_response(self):
        assert status_code_of(httpx.Response(202)) == 202

    def test_reads_status_attribute(self):
        class Legacy:
            status = 201

        assert status_code_of(Legacy()) == 201

    def test_parses_digit_strings(self):
        assert status_code_of(FakeResponse(' 200 ')) == 200  # type: ignore[arg-type]

    @pytest.mark.parametrize('raw', [None, 'OK', 2.0, False])
    def test_unreadable_values_are_none(self, raw):
        assert status_code_of(FakeResponse(raw)) is None  # type: ignore[arg-type]

    def test_missing_response_is_none(self):
        assert status_code_of(None) is None

    def test_object_without_status_is_none(self):
        assert status_code_of(object()) is None


def test_classify_response_never_trusts_malformed_responses():
    assert classify_response(FakeResponse(None)) is HttpStatusClass.OTHER
    assert classify_response(None) is HttpStatusClass.OTHER
    assert classify_response(FakeResponse(200)) is HttpStatusClass.OK_OR_CREATED
