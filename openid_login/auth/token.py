"""Compact serialization codec for signed ID tokens."""

import binascii
import json
import re
from dataclasses import dataclass
from typing import Any

from jwt.utils import base64url_decode

from openid_login.exceptions import MalformedToken

_BASE64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class CompactToken:
    """A decoded, not yet verified, compact-serialized token.

    ``signed_input`` is the literal ``header.payload`` substring of the wire
    token. It is never rebuilt from the parsed JSON because re-serialization
    does not reproduce the signed bytes.
    """

    header: dict[str, Any]
    payload: dict[str, Any]
    signature: bytes
    signed_input: bytes

    @property
    def key_id(self) -> str:
        """Key identifier from the ``kid`` header field."""
        kid = self.header.get("kid")
        if not isinstance(kid, str):
            raise MalformedToken("Token header is missing a string 'kid'")
        return kid

    @property
    def algorithm(self) -> str:
        """Signature algorithm from the ``alg`` header field."""
        alg = self.header.get("alg")
        if not isinstance(alg, str):
            raise MalformedToken("Token header is missing a string 'alg'")
        return alg


def _decode_segment(segment: str, name: str) -> bytes:
    if not _BASE64URL_PATTERN.match(segment):
        raise MalformedToken(f"Token {name} is not valid base64url")
    try:
        return base64url_decode(segment)
    except (binascii.Error, ValueError) as e:
        raise MalformedToken(f"Token {name} is not valid base64url") from e


def _reject_constant(constant: str) -> Any:
    raise ValueError(f"{constant} is not a valid JSON value")


def _decode_object(data: bytes, name: str) -> dict[str, Any]:
    try:
        # NaN and Infinity are Python extensions, not JSON
        value = json.loads(data.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedToken(f"Token {name} is not valid JSON") from e
    if not isinstance(value, dict):
        raise MalformedToken(f"Token {name} is not a JSON object")
    return value


def decode(compact: str) -> CompactToken:
    """Parse a ``header.payload.signature`` token into its parts.

    Pure parse: no signature or claim is checked here.

    Raises:
        MalformedToken: If the token does not have three segments, a segment
            is not unpadded base64url, or the header or payload is not a
            JSON object.
    """
    segments = compact.split(".")
    if len(segments) != 3:
        raise MalformedToken(
            f"Token must have 3 segments, found {len(segments)}"
        )
    header_segment, payload_segment, signature_segment = segments

    header = _decode_object(_decode_segment(header_segment, "header"), "header")
    payload = _decode_object(_decode_segment(payload_segment, "payload"), "payload")
    signature = _decode_segment(signature_segment, "signature")

    return CompactToken(
        header=header,
        payload=payload,
        signature=signature,
        signed_input=f"{header_segment}.{payload_segment}".encode("ascii"),
    )
