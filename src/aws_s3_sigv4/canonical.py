# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Iterable
from urllib.parse import parse_qsl

from .encoding import UNRESERVED, percent_encode
from .interfaces.http import Field, FieldPosition

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = (
    "authorization",
    "content-length",
    "user-agent",
)


def canonicalize_query(query: str | None) -> str:
    """Build the SigV4 canonical query string.

    Keys and values are decoded, re-encoded with the strict unreserved policy, and
    sorted by encoded key. Pairs sharing a key keep their original relative order.

    :param query: The raw query component of the request URI.
    """
    if not query:
        return ""

    query_parts = [
        (percent_encode(key, UNRESERVED), percent_encode(value, UNRESERVED))
        for key, value in parse_qsl(query, keep_blank_values=True)
    ]
    query_parts.sort(key=lambda part: part[0])
    return "&".join(f"{key}={value}" for key, value in query_parts)


def canonicalize_headers(fields: Iterable[Field]) -> tuple[str, str]:
    """Build the signed header list and canonical header block.

    :param fields: The request fields. Trailers and the names in
        ``HEADERS_EXCLUDED_FROM_SIGNING`` are skipped.
    :returns: A tuple of ``(signed_headers, canonical_headers)``. Every line of
        ``canonical_headers`` is terminated by a newline, including the last.
    """
    grouped: dict[str, list[str]] = {}
    for field in fields:
        if field.kind is not FieldPosition.HEADER:
            continue
        name = field.name.lower()
        if name in HEADERS_EXCLUDED_FROM_SIGNING:
            continue
        grouped.setdefault(name, []).extend(field.values)

    names = sorted(grouped)
    signed_headers = ";".join(names)
    canonical_headers = "".join(
        f"{name}:{','.join(value.strip() for value in grouped[name])}\n"
        for name in names
    )
    return signed_headers, canonical_headers
