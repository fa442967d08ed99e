"""TUF signature and public key capabilities.

``Signature`` wraps any signed TUF metadata document; ``PublicKey`` wraps a
root document together with the trust database bootstrapped from it. Both
expose ``canonical_value()``; ``Signature.verify(artifact, key)`` checks the
document against a ``PublicKey``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, BinaryIO, List, Optional

from .. import config
from ..errors import (
    EnvelopeDecodeError,
    TypeMismatchError,
    UninitializedError,
    UninitializedTrustError,
)
from ..metadata.envelope import SignedEnvelope
from ..verify.bootstrap import bootstrap_trust
from ..verify.db import TrustDatabase
from ..verify.verifier import verify


def _read_all(source: bytes | BinaryIO, limit: Optional[int] = None) -> bytes:
    limit = config.MAX_METADATA_BYTES if limit is None else limit
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
    else:
        data = source.read(limit + 1)
        if isinstance(data, str):
            data = data.encode("utf-8")
    if len(data) > limit:
        raise EnvelopeDecodeError(f"metadata exceeds {limit} bytes")
    return data


@dataclass(frozen=True)
class Signature:
    envelope: Optional[SignedEnvelope] = None
    role: str = ""
    version: int = 0

    def canonical_value(self) -> bytes:
        if self.envelope is None:
            raise UninitializedError("tuf manifest has not been initialized")
        return self.envelope.canonical_value()

    def verify(self, artifact: Any, key: Any) -> None:
        """Verify this document against the trust database held by ``key``.

        ``artifact`` is accepted for interface compatibility and ignored: the
        signed content is the metadata itself.
        """
        if not isinstance(key, PublicKey):
            raise TypeMismatchError(f"invalid public key type for: {type(key).__name__}")
        if key.database is None or key.database.is_empty():
            raise UninitializedTrustError("tuf root has not been initialized")
        if self.envelope is None:
            raise UninitializedError("tuf manifest has not been initialized")
        verify(self.envelope, self.role, key.database, 0)


def new_signature(source: bytes | BinaryIO) -> Signature:
    """Decode a signed TUF manifest and label it with its role and version."""
    envelope = SignedEnvelope.from_bytes(_read_all(source))
    meta = envelope.role_metadata()
    return Signature(envelope=envelope, role=meta.type, version=meta.version)


@dataclass(frozen=True)
class PublicKey:
    # the signed root is kept to derive the canonical value
    root: Optional[SignedEnvelope] = None
    database: Optional[TrustDatabase] = None

    def canonical_value(self) -> bytes:
        if self.root is None:
            raise UninitializedError("tuf root has not been initialized")
        return self.root.canonical_value()

    def spec_version(self) -> str:
        if self.root is None:
            raise UninitializedError("tuf root has not been initialized")
        return self.root.role_metadata().spec_version

    def email_addresses(self) -> List[str]:
        return []


def new_public_key(source: bytes | BinaryIO) -> PublicKey:
    """Bootstrap a trust database from a root.json.

    Raises UntrustedRootError if the root is not signed by a threshold of its
    own root keys; no handle exists in that case.
    """
    envelope, _, db = bootstrap_trust(_read_all(source))
    return PublicKey(root=envelope, database=db)


__all__ = ["Signature", "PublicKey", "new_signature", "new_public_key"]
