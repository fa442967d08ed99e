"""Error taxonomy for TUF metadata decoding, trust bootstrap and verification.

Every error raised by this package derives from :class:`TUFError`. Decode
errors are also ``ValueError`` and the capability type mismatch is also a
``TypeError`` so callers that only know the builtin hierarchy still catch them.
"""
from __future__ import annotations


class TUFError(Exception):
    """Base class for all tufpki errors."""


class DecodeError(TUFError, ValueError):
    """Input could not be decoded into the expected structure."""


class EnvelopeDecodeError(DecodeError):
    """The outer {signed, signatures} envelope is malformed."""


class RootDecodeError(DecodeError):
    """The root payload does not have the root shape (keys/roles)."""


class PayloadDecodeError(DecodeError):
    """The payload lacks the typed role fields (_type, version, ...)."""


class CanonicalizationError(DecodeError):
    """The value cannot be expressed as canonical JSON."""


class KeyRegistrationError(TUFError):
    """A key could not be added to the trust database."""

    def __init__(self, key_id: str, reason: str):
        super().__init__(f"key {key_id}: {reason}")
        self.key_id = key_id
        self.reason = reason


class WrongKeyIDError(KeyRegistrationError):
    """Declared key id does not match the id computed from the key material."""

    def __init__(self, key_id: str, computed_id: str):
        super().__init__(key_id, f"declared id does not match computed id {computed_id}")
        self.computed_id = computed_id


class InvalidKeyError(KeyRegistrationError):
    """Key type is unsupported or the public material is unusable."""


class RoleRegistrationError(TUFError):
    """A role could not be added to the trust database."""

    def __init__(self, role: str, reason: str):
        super().__init__(f"role {role}: {reason}")
        self.role = role
        self.reason = reason


class VerificationError(TUFError):
    """A signed document failed verification."""


class UnknownRoleError(VerificationError):
    def __init__(self, role: str):
        super().__init__(f"unknown role {role!r}")
        self.role = role


class InsufficientSignaturesError(VerificationError):
    """Fewer distinct authorized keys signed than the role threshold requires."""

    def __init__(self, role: str, threshold: int, valid: int):
        super().__init__(f"{role} was signed by {valid}/{threshold} keys")
        self.role = role
        self.threshold = threshold
        self.valid = valid


class NoSignaturesError(InsufficientSignaturesError):
    def __init__(self, role: str, threshold: int):
        super().__init__(role, threshold, 0)
        self.args = (f"{role} metadata carries no signatures",)


class StaleVersionError(VerificationError):
    def __init__(self, version: int, min_version: int):
        super().__init__(f"version {version} is lower than required {min_version}")
        self.version = version
        self.min_version = min_version


class WrongMetadataTypeError(VerificationError):
    def __init__(self, role: str, meta_type: str):
        super().__init__(f"metadata of type {meta_type!r} cannot be accepted for role {role!r}")
        self.role = role
        self.meta_type = meta_type


class ExpiredMetadataError(VerificationError):
    def __init__(self, role: str, expires):
        super().__init__(f"{role} metadata expired at {expires.isoformat()}")
        self.role = role
        self.expires = expires


class UntrustedRootError(TUFError):
    """The root document is not signed by a quorum of its own root keys."""


class TypeMismatchError(TUFError, TypeError):
    """A capability of the wrong type was supplied."""


class UninitializedError(TUFError):
    """The handle was never populated by a successful decode/bootstrap."""


class UninitializedTrustError(UninitializedError):
    """The public key handle carries no trust database."""


__all__ = [
    "TUFError",
    "DecodeError",
    "EnvelopeDecodeError",
    "RootDecodeError",
    "PayloadDecodeError",
    "CanonicalizationError",
    "KeyRegistrationError",
    "WrongKeyIDError",
    "InvalidKeyError",
    "RoleRegistrationError",
    "VerificationError",
    "UnknownRoleError",
    "InsufficientSignaturesError",
    "NoSignaturesError",
    "StaleVersionError",
    "WrongMetadataTypeError",
    "ExpiredMetadataError",
    "UntrustedRootError",
    "TypeMismatchError",
    "UninitializedError",
    "UninitializedTrustError",
]
