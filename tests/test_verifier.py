from datetime import datetime, timezone

import pytest

from tufpki.errors import (
    ExpiredMetadataError,
    InsufficientSignaturesError,
    NoSignaturesError,
    StaleVersionError,
    UnknownRoleError,
    WrongMetadataTypeError,
)
from tufpki.crypto.digest import key_id_for
from tufpki.metadata.envelope import SignatureEntry, SignedEnvelope
from tufpki.verify.db import TrustDatabaseBuilder
from tufpki.verify.verifier import verify, verify_signatures


@pytest.fixture
def db(keyring):
    """K1..K4 registered; 'targets' needs 3 of K1..K4, 'timestamp' needs K1,
    'claimed' is a delegated targets role needing K2."""
    b = TrustDatabaseBuilder()
    for name in ("K1", "K2", "K3", "K4"):
        b.add_key(keyring[name].key_id, keyring[name].entry)
    ids = lambda *names: [keyring[n].key_id for n in names]
    b.add_role("targets", {"keyids": ids("K1", "K2", "K3", "K4"), "threshold": 3})
    b.add_role("timestamp", {"keyids": ids("K1"), "threshold": 1})
    b.add_role("claimed", {"keyids": ids("K2"), "threshold": 1})
    return b.build()


@pytest.fixture
def signed(keyring, make_envelope, dump):
    def _signed(payload, *names):
        return SignedEnvelope.from_bytes(dump(make_envelope(payload, [keyring[n] for n in names])))
    return _signed


def test_threshold_met(db, signed, make_meta):
    env = signed(make_meta("targets", 5), "K1", "K2", "K3")
    result = verify_signatures(env, "targets", db)
    assert result.verified
    assert result.missing == 0
    assert len(result.signed) == 3
    meta = verify(env, "targets", db)
    assert meta.version == 5


def test_threshold_minus_one_fails(db, signed, make_meta):
    env = signed(make_meta("targets"), "K1", "K2")
    with pytest.raises(InsufficientSignaturesError) as ei:
        verify(env, "targets", db)
    assert ei.value.threshold == 3
    assert ei.value.valid == 2


def test_duplicate_signatures_count_once(db, signed, make_meta):
    env = signed(make_meta("targets"), "K1", "K2", "K2", "K2")
    with pytest.raises(InsufficientSignaturesError) as ei:
        verify_signatures(env, "targets", db)
    assert ei.value.valid == 2


def test_same_key_under_two_ids_counts_once(keyring, signed, make_meta):
    k1, k2 = keyring["K1"], keyring["K2"]
    alias_entry = dict(k1.entry, keyid_hash_algorithms=["sha256"])
    alias_id = key_id_for(alias_entry)
    assert alias_id != k1.key_id
    b = TrustDatabaseBuilder()
    b.add_key(k1.key_id, k1.entry)
    b.add_key(alias_id, alias_entry)
    b.add_key(k2.key_id, k2.entry)
    b.add_role("targets", {"keyids": [k1.key_id, alias_id, k2.key_id], "threshold": 2})
    db = b.build()

    env = signed(make_meta("targets"), "K1")
    aliased = SignedEnvelope(
        signed=env.signed,
        signatures=env.signatures + (SignatureEntry(keyid=alias_id, sig=env.signatures[0].sig),),
    )
    with pytest.raises(InsufficientSignaturesError):
        verify_signatures(aliased, "targets", db)


def test_unauthorized_extra_signature_is_ignored(db, signed, make_meta, keyring):
    payload = make_meta("timestamp")
    assert verify(signed(payload, "K1"), "timestamp", db).type == "timestamp"
    # K2 is registered but not authorized for timestamp, K5 is not registered at all
    assert verify(signed(payload, "K1", "K2", "K5"), "timestamp", db).type == "timestamp"
    with pytest.raises(InsufficientSignaturesError):
        verify(signed(payload, "K2", "K5"), "timestamp", db)


def test_invalid_signature_is_ignored(db, signed, make_meta):
    env = signed(make_meta("targets"), "K1", "K2", "K3", "K4")
    sigs = list(env.signatures)
    sigs[0] = SignatureEntry(keyid=sigs[0].keyid, sig=b"\x00" * 64)
    tampered = SignedEnvelope(signed=env.signed, signatures=tuple(sigs))
    assert len(verify_signatures(tampered, "targets", db).signed) == 3
    sigs[1] = SignatureEntry(keyid=sigs[1].keyid, sig=b"")
    tampered = SignedEnvelope(signed=env.signed, signatures=tuple(sigs))
    with pytest.raises(InsufficientSignaturesError):
        verify_signatures(tampered, "targets", db)


def test_payload_change_breaks_signatures(db, keyring, make_meta, make_envelope, dump):
    doc = make_envelope(make_meta("timestamp", 1), [keyring["K1"]])
    doc["signed"]["version"] = 2
    with pytest.raises(InsufficientSignaturesError):
        verify(SignedEnvelope.from_bytes(dump(doc)), "timestamp", db)


def test_no_signatures(db, make_meta, dump):
    env = SignedEnvelope.from_bytes(dump({"signed": make_meta("timestamp"), "signatures": []}))
    with pytest.raises(NoSignaturesError):
        verify(env, "timestamp", db)


def test_unknown_role(db, signed, make_meta):
    with pytest.raises(UnknownRoleError):
        verify(signed(make_meta("mirror"), "K1"), "mirror", db)


def test_version_floor(db, signed, make_meta):
    env = signed(make_meta("timestamp", 3), "K1")
    assert verify(env, "timestamp", db, min_version=3).version == 3
    assert verify(env, "timestamp", db, min_version=0).version == 3
    with pytest.raises(StaleVersionError) as ei:
        verify(env, "timestamp", db, min_version=4)
    assert (ei.value.version, ei.value.min_version) == (3, 4)


def test_insufficient_signatures_reported_before_version(db, signed, make_meta):
    env = signed(make_meta("targets", 1), "K1")
    with pytest.raises(InsufficientSignaturesError):
        verify(env, "targets", db, min_version=10)


def test_metadata_type_must_match_top_level_role(db, signed, make_meta):
    env = signed(make_meta("snapshot"), "K1")
    with pytest.raises(WrongMetadataTypeError):
        verify(env, "timestamp", db)
    assert verify(signed(make_meta("Timestamp"), "K1"), "timestamp", db).type == "Timestamp"


def test_delegated_role_only_signs_targets(db, signed, make_meta):
    assert verify(signed(make_meta("targets"), "K2"), "claimed", db).type == "targets"
    with pytest.raises(WrongMetadataTypeError):
        verify(signed(make_meta("timestamp"), "K2"), "claimed", db)


def test_expiry_is_opt_in(db, signed, make_meta):
    env = signed(make_meta("timestamp"), "K1")
    later = datetime(2031, 1, 1, tzinfo=timezone.utc)
    earlier = datetime(2029, 1, 1, tzinfo=timezone.utc)
    assert verify(env, "timestamp", db, check_expiry=False, now=later).version == 1
    assert verify(env, "timestamp", db, check_expiry=True, now=earlier).version == 1
    with pytest.raises(ExpiredMetadataError):
        verify(env, "timestamp", db, check_expiry=True, now=later)


def test_expiry_default_comes_from_config(db, signed, make_meta, monkeypatch):
    from tufpki import config
    env = signed(make_meta("timestamp"), "K1")
    later = datetime(2031, 1, 1, tzinfo=timezone.utc)
    monkeypatch.setattr(config, "ENFORCE_EXPIRY", False)
    assert verify(env, "timestamp", db, now=later).version == 1
    monkeypatch.setattr(config, "ENFORCE_EXPIRY", True)
    with pytest.raises(ExpiredMetadataError):
        verify(env, "timestamp", db, now=later)
