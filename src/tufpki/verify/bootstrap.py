"""Build a trust database from a self-signed root document."""
from __future__ import annotations

from typing import Tuple

from pydantic import ValidationError

from ..errors import DecodeError, RootDecodeError, UntrustedRootError, VerificationError, WrongKeyIDError
from ..metadata.envelope import SignedEnvelope
from ..metadata.model import RootModel
from ..utils.logging import get_logger
from .db import TrustDatabase, TrustDatabaseBuilder
from .verifier import verify

log = get_logger()

ROOT_ROLE = "root"


def decode_root(envelope: SignedEnvelope) -> RootModel:
    try:
        return RootModel.model_validate(envelope.payload())
    except ValidationError as e:
        raise RootDecodeError(f"payload is not a root document: {e}") from e
    except DecodeError as e:
        raise RootDecodeError(str(e)) from e


def bootstrap_trust(source: bytes | SignedEnvelope) -> Tuple[SignedEnvelope, RootModel, TrustDatabase]:
    """Decode a root envelope, register its keys and roles, then require the
    root to be signed by a threshold of its own root keys.

    Returns (envelope, root, database); the database is only returned once
    the root verified against it.
    """
    envelope = source if isinstance(source, SignedEnvelope) else SignedEnvelope.from_bytes(source)
    root = decode_root(envelope)

    builder = TrustDatabaseBuilder()
    for key_id, key in root.keys.items():
        try:
            builder.add_key(key_id, key)
        except WrongKeyIDError as e:
            # TAP-12: https://github.com/theupdateframework/taps/blob/master/tap12.md
            log.warning("skipping root key %s: %s", key_id, e.reason)
    for name, role in root.roles.items():
        builder.add_role(name, role)
    db = builder.build()

    try:
        verify(envelope, ROOT_ROLE, db, 0)
    except VerificationError as e:
        raise UntrustedRootError(f"root is not signed by its own root keys: {e}") from e

    log.info(
        "trusted root v%d: %d keys, %d roles", root.version, len(db.keys), len(db.roles)
    )
    return envelope, root, db


__all__ = ["bootstrap_trust", "decode_root", "ROOT_ROLE"]
