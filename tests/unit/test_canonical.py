#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import pytest

from aws_s3_sigv4 import Field, Fields
from aws_s3_sigv4.canonical import (
    HEADERS_EXCLUDED_FROM_SIGNING,
    canonicalize_headers,
    canonicalize_query,
)
from aws_s3_sigv4.interfaces.http import FieldPosition


@pytest.mark.parametrize(
    "query,expected",
    [
        (None, ""),
        ("", ""),
        ("lifecycle", "lifecycle="),
        ("max-keys=2&prefix=J", "max-keys=2&prefix=J"),
        ("prefix=J&max-keys=2", "max-keys=2&prefix=J"),
        ("b=2&a=1&c=3", "a=1&b=2&c=3"),
        ("key=a%2Fb", "key=a%2Fb"),
        ("key=a/b", "key=a%2Fb"),
        ("key=a+b", "key=a%20b"),
        ("key=a%20b", "key=a%20b"),
        ("k%C3%A9y=v%C3%A9", "k%C3%A9y=v%C3%A9"),
        ("a=", "a="),
        ("versionId=abc~._-", "versionId=abc~._-"),
    ],
)
def test_canonicalize_query(query: str | None, expected: str) -> None:
    assert canonicalize_query(query) == expected


def test_canonicalize_query_keeps_order_of_repeated_keys() -> None:
    assert canonicalize_query("a=2&b=0&a=1&a=3") == "a=2&a=1&a=3&b=0"


def test_canonicalize_query_sorts_by_encoded_key() -> None:
    # "é" sorts after "~" as text, but its encoding starts with "%".
    assert canonicalize_query("~=1&%C3%A9=2") == "%C3%A9=2&~=1"


@pytest.mark.parametrize(
    "query",
    [
        "b=2&a=1",
        "prefix=photos/2024&delimiter=/",
        "a=b c&a=é&z=",
        "lifecycle",
    ],
)
def test_canonicalize_query_is_idempotent(query: str) -> None:
    once = canonicalize_query(query)
    assert canonicalize_query(once) == once


def test_canonicalize_headers() -> None:
    fields = Fields(
        [
            Field(name="X-Amz-Date", values=["20130524T000000Z"]),
            Field(name="Host", values=["examplebucket.s3.amazonaws.com"]),
            Field(name="Range", values=["bytes=0-9"]),
        ]
    )
    signed, block = canonicalize_headers(fields)
    assert signed == "host;range;x-amz-date"
    assert block == (
        "host:examplebucket.s3.amazonaws.com\n"
        "range:bytes=0-9\n"
        "x-amz-date:20130524T000000Z\n"
    )


@pytest.mark.parametrize(
    "name",
    ["Authorization", "AUTHORIZATION", "Content-Length", "user-agent", "User-Agent"],
)
def test_canonicalize_headers_excludes_reserved_names(name: str) -> None:
    fields = Fields(
        [Field(name="host", values=["example.com"]), Field(name=name, values=["x"])]
    )
    signed, block = canonicalize_headers(fields)
    assert signed == "host"
    assert block == "host:example.com\n"


def test_excluded_headers_are_exactly_three() -> None:
    assert set(HEADERS_EXCLUDED_FROM_SIGNING) == {
        "authorization",
        "content-length",
        "user-agent",
    }


def test_canonicalize_headers_trims_and_joins_values_in_order() -> None:
    fields = Fields([Field(name="X-Amz-Meta-Tag", values=["  b ", "\ta", "c  d"])])
    signed, block = canonicalize_headers(fields)
    assert signed == "x-amz-meta-tag"
    assert block == "x-amz-meta-tag:b,a,c  d\n"


def test_canonicalize_headers_groups_names_case_insensitively() -> None:
    fields = [
        Field(name="X-Custom", values=["one"]),
        Field(name="host", values=["example.com"]),
        Field(name="x-custom", values=["two"]),
    ]
    signed, block = canonicalize_headers(fields)
    assert signed == "host;x-custom"
    assert block == "host:example.com\nx-custom:one,two\n"


def test_canonicalize_headers_skips_trailers() -> None:
    fields = Fields(
        [
            Field(name="host", values=["example.com"]),
            Field(name="x-amz-checksum", values=["abc"], kind=FieldPosition.TRAILER),
        ]
    )
    assert canonicalize_headers(fields) == ("host", "host:example.com\n")


def test_canonicalize_headers_empty() -> None:
    assert canonicalize_headers(Fields()) == ("", "")


def test_canonicalize_headers_output_is_sorted() -> None:
    names = ["zeta", "alpha", "x-amz-date", "Mid", "host", "b-header"]
    fields = Fields([Field(name=name, values=["v"]) for name in names])
    signed, block = canonicalize_headers(fields)
    lowered = sorted(name.lower() for name in names)
    assert signed.split(";") == lowered
    assert [line.split(":")[0] for line in block.splitlines()] == lowered
    assert block.endswith("\n")
