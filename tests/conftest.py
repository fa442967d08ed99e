import json
from typing import Dict, Iterable, List, Tuple

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives import serialization

from tufpki.crypto.cjson import canonicalize
from tufpki.crypto.digest import key_id_for

EXPIRES = "2030-01-01T00:00:00Z"


class SigningKey:
    """Deterministic Ed25519 test key in root.json form."""

    def __init__(self, seed: int):
        self.sk = Ed25519PrivateKey.from_private_bytes(bytes([seed]) * 32)
        pub = self.sk.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.entry = {"keytype": "ed25519", "scheme": "ed25519", "keyval": {"public": pub.hex()}}
        self.key_id = key_id_for(self.entry)

    def sign(self, payload) -> Dict[str, str]:
        return {"keyid": self.key_id, "sig": self.sk.sign(canonicalize(payload)).hex()}


def meta(role: str, version: int = 1, **extra) -> dict:
    d = {"_type": role, "spec_version": "1.0.0", "version": version, "expires": EXPIRES}
    d.update(extra)
    return d


def root_payload(keys: Iterable[SigningKey], roles: Dict[str, Tuple[List[SigningKey], int]], version: int = 1) -> dict:
    return meta(
        "root",
        version,
        consistent_snapshot=False,
        keys={k.key_id: k.entry for k in keys},
        roles={
            name: {"keyids": [k.key_id for k in members], "threshold": threshold}
            for name, (members, threshold) in roles.items()
        },
    )


def envelope(payload, signers: Iterable[SigningKey]) -> dict:
    return {"signed": payload, "signatures": [k.sign(payload) for k in signers]}


def to_bytes(doc) -> bytes:
    return json.dumps(doc).encode()


@pytest.fixture(scope="session")
def keyring() -> Dict[str, SigningKey]:
    return {f"K{i}": SigningKey(i) for i in range(1, 6)}


@pytest.fixture
def standard_root(keyring):
    """root.json payload: K1..K3 declared, root needs 2 of K1..K3,
    timestamp/snapshot/targets each need K1."""
    k1, k2, k3 = keyring["K1"], keyring["K2"], keyring["K3"]
    return root_payload(
        [k1, k2, k3],
        {
            "root": ([k1, k2, k3], 2),
            "timestamp": ([k1], 1),
            "snapshot": ([k1, k2], 1),
            "targets": ([k1, k2], 2),
        },
    )


@pytest.fixture
def make_envelope():
    return envelope


@pytest.fixture
def make_meta():
    return meta


@pytest.fixture
def make_root():
    return root_payload


@pytest.fixture
def dump():
    return to_bytes
