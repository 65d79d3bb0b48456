# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Percent-encoding with explicit sets of unreserved bytes.

SigV4 is stricter than :func:`urllib.parse.quote`'s defaults: spaces are always
``%20``, ``/`` is only left alone where a policy says so, and every other byte
outside the unreserved set is escaped with upper-case hex digits.
"""

from collections.abc import Iterator
from string import ascii_letters, digits

type EncodingPolicy = frozenset[int]
"""The set of byte values that are left unescaped."""

UNRESERVED: EncodingPolicy = frozenset((ascii_letters + digits + "-._~").encode())
"""RFC 3986 unreserved characters. Used for query keys and values."""

UNRESERVED_WITH_SLASH: EncodingPolicy = UNRESERVED | frozenset(b"/")
"""Unreserved characters plus ``/``. Used for object keys in request paths."""


def iter_percent_encode(value: str, policy: EncodingPolicy) -> Iterator[str]:
    """Lazily percent-encode ``value``.

    Yields runs of unescaped characters and one ``%XY`` triplet per escaped byte of
    the UTF-8 representation, so multi-byte code points are escaped byte by byte.

    :param value: The text to encode.
    :param policy: The byte values exempt from escaping.
    """
    run = bytearray()
    for byte in value.encode("utf-8"):
        if byte in policy:
            run.append(byte)
            continue
        if run:
            yield run.decode("ascii")
            run.clear()
        yield f"%{byte:02X}"
    if run:
        yield run.decode("ascii")


def percent_encode(value: str, policy: EncodingPolicy = UNRESERVED) -> str:
    """Percent-encode ``value`` into a single string.

    :param value: The text to encode.
    :param policy: The byte values exempt from escaping.
    """
    return "".join(iter_percent_encode(value, policy))
