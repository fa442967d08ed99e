"""Signed metadata envelope.

Wire form:
{
  "signed": { ... role payload ... },
  "signatures": [ {"keyid": "<hex>", "sig": "<hex>"}, ... ]
}

The payload is kept as opaque JSON bytes. Signatures are computed over the
canonical JSON of the payload, never over these bytes directly, so the
envelope may be re-serialized with any key order or whitespace.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Tuple

from pydantic import ValidationError

from ..crypto.cjson import canonicalize, loads
from ..errors import DecodeError, EnvelopeDecodeError, PayloadDecodeError
from .model import RoleMetadata

_HEX = re.compile(r"[0-9a-fA-F]*")


@dataclass(frozen=True)
class SignatureEntry:
    keyid: str
    sig: bytes

    def to_dict(self) -> dict:
        return {"keyid": self.keyid, "sig": self.sig.hex()}


def _parse_signature(i: int, item: Any) -> SignatureEntry:
    if not isinstance(item, dict):
        raise EnvelopeDecodeError(f"signature {i} is not an object")
    keyid = item.get("keyid")
    sig = item.get("sig")
    if not isinstance(keyid, str) or not isinstance(sig, str):
        raise EnvelopeDecodeError(f"signature {i} needs string keyid and sig")
    if not _HEX.fullmatch(sig):
        raise EnvelopeDecodeError(f"signature {i} is not hex encoded")
    try:
        return SignatureEntry(keyid=keyid, sig=bytes.fromhex(sig))
    except ValueError as e:
        raise EnvelopeDecodeError(f"signature {i} is not hex encoded") from e


@dataclass(frozen=True)
class SignedEnvelope:
    signed: bytes
    signatures: Tuple[SignatureEntry, ...] = ()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "SignedEnvelope":
        try:
            doc = loads(raw)
        except DecodeError as e:
            raise EnvelopeDecodeError(f"envelope is not valid JSON: {e}") from e
        return cls.from_obj(doc)

    @classmethod
    def from_obj(cls, doc: Any) -> "SignedEnvelope":
        if not isinstance(doc, dict):
            raise EnvelopeDecodeError("envelope must be a JSON object")
        if "signed" not in doc:
            raise EnvelopeDecodeError("envelope has no 'signed' payload")
        sigs = doc.get("signatures")
        if sigs is None:
            sigs = []
        if not isinstance(sigs, list):
            raise EnvelopeDecodeError("'signatures' must be a list")
        try:
            payload = json.dumps(doc["signed"], ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            raise EnvelopeDecodeError(f"'signed' payload cannot be re-encoded: {e}") from e
        return cls(
            signed=payload,
            signatures=tuple(_parse_signature(i, s) for i, s in enumerate(sigs)),
        )

    def payload(self) -> Any:
        return loads(self.signed)

    def canonical_payload(self) -> bytes:
        """Exact bytes the signatures were produced over."""
        return canonicalize(self.payload())

    def role_metadata(self) -> RoleMetadata:
        try:
            return RoleMetadata.model_validate(self.payload())
        except ValidationError as e:
            raise PayloadDecodeError(f"payload is not role metadata: {e}") from e

    def canonical_value(self) -> bytes:
        """Canonical JSON of the whole envelope, for identity comparisons."""
        return canonicalize({
            "signed": self.payload(),
            "signatures": [s.to_dict() for s in self.signatures],
        })


__all__ = ["SignatureEntry", "SignedEnvelope"]
