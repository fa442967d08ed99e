"""Key type registry for TUF metadata signatures.

Supported key types (keytype / scheme):
  - ed25519 / ed25519
  - ecdsa-sha2-nistp256 (alias: ecdsa) / ecdsa-sha2-nistp256
  - rsa / rsassa-pss-sha256

The registry exposes two primary helpers:
  get_public_material(keytype, scheme, keyval) -> PublicMaterial with a usable public key
  verify_alg(material, signature, message) -> bool

Key value expectations (the "keyval" object of a root key entry):
  ed25519: { "public": "<hex of the raw 32 byte key>" }
  ecdsa:   { "public": "-----BEGIN PUBLIC KEY-----..." } or the hex of the
           uncompressed P-256 point
  rsa:     { "public": "-----BEGIN PUBLIC KEY-----..." }

Signatures are raw bytes (already hex-decoded from the envelope):
  ed25519 is the 64 byte signature, ecdsa is DER over SHA-256, rsa is
  RSASSA-PSS with MGF1/SHA-256 and any salt length.

A key that cannot be loaded raises ValueError; a signature that does not
verify simply returns False.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

KEYTYPE_ED25519 = "ed25519"
KEYTYPE_ECDSA_P256 = "ecdsa-sha2-nistp256"
KEYTYPE_RSA = "rsa"

# keytype -> accepted schemes; the first one is assumed when a key omits its scheme
SCHEMES: Dict[str, tuple] = {
    KEYTYPE_ED25519: ("ed25519",),
    KEYTYPE_ECDSA_P256: ("ecdsa-sha2-nistp256",),
    "ecdsa": ("ecdsa-sha2-nistp256",),
    KEYTYPE_RSA: ("rsassa-pss-sha256",),
}


@dataclass(frozen=True)
class PublicMaterial:
    keytype: str
    scheme: str
    ed25519_pk: ed25519.Ed25519PublicKey | None = None
    ecdsa_p256_pk: ec.EllipticCurvePublicKey | None = None
    rsa_pk: rsa.RSAPublicKey | None = None
    # sha256 over the SubjectPublicKeyInfo DER; equal for the same key under any id
    fingerprint: str = ""


def _spki_fingerprint(pk) -> str:
    der = pk.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return hashlib.sha256(der).hexdigest()


def _public_value(keyval: Any) -> str:
    if not isinstance(keyval, dict):
        raise ValueError("keyval must be an object")
    public = keyval.get("public")
    if not isinstance(public, str) or not public:
        raise ValueError("keyval.public must be a non-empty string")
    return public


def _load_ed25519(public: str) -> ed25519.Ed25519PublicKey:
    try:
        raw = bytes.fromhex(public)
    except ValueError as e:
        raise ValueError("ed25519 public key must be hex encoded") from e
    if len(raw) != 32:
        raise ValueError(f"ed25519 public key must be 32 bytes, got {len(raw)}")
    return ed25519.Ed25519PublicKey.from_public_bytes(raw)


def _load_ecdsa_p256(public: str) -> ec.EllipticCurvePublicKey:
    if public.lstrip().startswith("-----BEGIN"):
        pk = serialization.load_pem_public_key(public.encode())
    else:
        try:
            pk = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), bytes.fromhex(public))
        except ValueError as e:
            raise ValueError("ecdsa public key must be PEM or a hex encoded P-256 point") from e
    if not isinstance(pk, ec.EllipticCurvePublicKey) or not isinstance(pk.curve, ec.SECP256R1):
        raise ValueError("ecdsa public key is not on P-256")
    return pk


def _load_rsa(public: str) -> rsa.RSAPublicKey:
    pk = serialization.load_pem_public_key(public.encode())
    if not isinstance(pk, rsa.RSAPublicKey):
        raise ValueError("rsa public key PEM does not hold an RSA key")
    return pk


def get_public_material(keytype: str, scheme: str, keyval: Any) -> PublicMaterial:
    kt = (keytype or "").lower()
    schemes = SCHEMES.get(kt)
    if schemes is None:
        raise ValueError(f"unsupported key type {keytype!r}")
    sch = scheme or schemes[0]
    if sch not in schemes:
        raise ValueError(f"unsupported scheme {scheme!r} for key type {keytype!r}")
    public = _public_value(keyval)
    try:
        if kt == KEYTYPE_ED25519:
            pk = _load_ed25519(public)
            return PublicMaterial(kt, sch, ed25519_pk=pk, fingerprint=_spki_fingerprint(pk))
        if kt == KEYTYPE_RSA:
            pk = _load_rsa(public)
            return PublicMaterial(kt, sch, rsa_pk=pk, fingerprint=_spki_fingerprint(pk))
        pk = _load_ecdsa_p256(public)
        return PublicMaterial(KEYTYPE_ECDSA_P256, sch, ecdsa_p256_pk=pk, fingerprint=_spki_fingerprint(pk))
    except (TypeError, ValueError) as e:
        # cryptography reports malformed PEM/DER as ValueError
        raise ValueError(f"invalid {keytype} public key: {e}") from e


def verify_alg(pm: PublicMaterial, signature: bytes, message: bytes) -> bool:
    try:
        if pm.ed25519_pk is not None:
            pm.ed25519_pk.verify(signature, message)
            return True
        if pm.ecdsa_p256_pk is not None:
            pm.ecdsa_p256_pk.verify(signature, message, ec.ECDSA(hashes.SHA256()))
            return True
        if pm.rsa_pk is not None:
            pm.rsa_pk.verify(
                signature,
                message,
                padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.AUTO),
                hashes.SHA256(),
            )
            return True
    except InvalidSignature:
        return False
    return False


__all__ = ["PublicMaterial", "get_public_material", "verify_alg", "SCHEMES"]
