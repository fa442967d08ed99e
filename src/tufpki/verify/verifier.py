"""Threshold signature verification of signed metadata against a trust database."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import FrozenSet, Optional

from .. import config
from ..crypto.alg_registry import verify_alg
from ..errors import (
    ExpiredMetadataError,
    InsufficientSignaturesError,
    NoSignaturesError,
    StaleVersionError,
    WrongMetadataTypeError,
)
from ..metadata.envelope import SignedEnvelope
from ..metadata.model import RoleMetadata
from ..utils.logging import get_logger
from .db import TrustDatabase

log = get_logger()


@dataclass(frozen=True)
class VerificationResult:
    role: str
    threshold: int
    signed: FrozenSet[str]

    @property
    def verified(self) -> bool:
        return len(self.signed) >= self.threshold

    @property
    def missing(self) -> int:
        return max(0, self.threshold - len(self.signed))


def verify_signatures(envelope: SignedEnvelope, role: str, db: TrustDatabase) -> VerificationResult:
    """Check that a threshold of distinct authorized keys signed the payload.

    Signatures by unknown or unauthorized keys and signatures that fail to
    verify are not errors; they just do not count. Raises
    InsufficientSignaturesError when the count stays below the threshold.
    """
    role_data = db.get_role(role)
    if not envelope.signatures:
        raise NoSignaturesError(role, role_data.threshold)

    msg = envelope.canonical_payload()

    signed = set()
    # A key is counted once even if several ids map to the same public key
    seen_fingerprints = set()
    for entry in envelope.signatures:
        if not role_data.authorizes(entry.keyid):
            log.debug("ignoring signature by key %s: not authorized for %s", entry.keyid, role)
            continue
        key = db.get_key(entry.keyid)
        if key is None:
            log.debug("ignoring signature by key %s: not registered", entry.keyid)
            continue
        if entry.keyid in signed or key.material.fingerprint in seen_fingerprints:
            continue
        if not verify_alg(key.material, entry.sig, msg):
            log.debug("ignoring signature by key %s: does not verify %s", entry.keyid, role)
            continue
        signed.add(entry.keyid)
        seen_fingerprints.add(key.material.fingerprint)

    result = VerificationResult(role=role, threshold=role_data.threshold, signed=frozenset(signed))
    if not result.verified:
        raise InsufficientSignaturesError(role, result.threshold, len(result.signed))
    return result


def _check_type(role: str, meta_type: str) -> None:
    if role.lower() in config.TOP_LEVEL_ROLES:
        if meta_type.lower() != role.lower():
            raise WrongMetadataTypeError(role, meta_type)
    elif meta_type.lower() != "targets":
        # delegated roles only ever sign targets metadata
        raise WrongMetadataTypeError(role, meta_type)


def _is_expired(expires: Optional[datetime], now: datetime) -> bool:
    if expires is None:
        return False
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires < now


def verify(
    envelope: SignedEnvelope,
    role: str,
    db: TrustDatabase,
    min_version: int = 0,
    *,
    check_expiry: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> RoleMetadata:
    """Verify signatures, then the typed header of the payload.

    min_version=0 leaves the version unconstrained. Expiry is only checked
    when check_expiry (default: config.ENFORCE_EXPIRY) is true.
    """
    verify_signatures(envelope, role, db)

    meta = envelope.role_metadata()
    _check_type(role, meta.type)

    # off unless enabled: a pinned root stays usable after its expires date
    if check_expiry is None:
        check_expiry = config.ENFORCE_EXPIRY
    if check_expiry:
        current = now or datetime.now(timezone.utc)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        if _is_expired(meta.expires, current):
            raise ExpiredMetadataError(role, meta.expires)

    if min_version > 0 and meta.version < min_version:
        raise StaleVersionError(meta.version, min_version)
    return meta


__all__ = ["VerificationResult", "verify_signatures", "verify"]
