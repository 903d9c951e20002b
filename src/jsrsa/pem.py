"""PEM (RFC 7468 textual encoding) support on plain strings.

Handles the delimited base64 blocks keys travel in. The label is reported back but never trusted for dispatch; the
resolver decides what the payload is.

Typical usage example:

    label, der = decode_pem(text)
    text = encode_pem("PUBLIC KEY", der)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import re

PEM_LABELS = {
    "PKCS1_PRIV": "RSA PRIVATE KEY",
    "PKCS1_PUB": "RSA PUBLIC KEY",
    "PKCS8": "PRIVATE KEY",
    "SPKI": "PUBLIC KEY",
}

_BLOCK = re.compile(r"-----BEGIN ([^\r\n-]*)-----(.*?)-----END \1-----", re.DOTALL)
_LINE_LENGTH = 64


def decode_pem(text: str) -> tuple[str, bytes]:
    """Decodes the first PEM block found in `text`.

    Encapsulated header lines (``Proc-Type: ...``) are skipped, all whitespace inside the body is ignored.

    Args:
        text: A string containing a PEM block.

    Returns:
        The block label and the decoded payload.

    Raises:
        ValueError: If no block is present or the body is not strict base64.
    """
    match = _BLOCK.search(text.strip())
    if match is None:
        raise ValueError("No PEM block found.")
    label, body = match.groups()
    lines = [line.strip() for line in body.strip().splitlines()]
    payload = "".join(line for line in lines if ":" not in line)
    if not payload:
        raise ValueError(f"PEM block {label} is empty.")
    try:
        return label, base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"PEM block {label} does not contain valid base64.") from exc


def encode_pem(label: str, data: bytes) -> str:
    """Wraps `data` into a PEM block.

    Args:
        label: The block label, e.g. ``PUBLIC KEY``.
        data: The DER payload.

    Returns:
        The PEM text, base64 broken at 64 columns and terminated by a newline.
    """
    payload = base64.b64encode(data).decode("ascii")
    res = "\n".join(payload[i:i + _LINE_LENGTH] for i in range(0, len(payload), _LINE_LENGTH))
    res += "\n" if res else ""
    return f"-----BEGIN {label}-----\n{res}-----END {label}-----\n"
