"""Trust database: keys and roles declared by a single root document.

The database is assembled by :class:`TrustDatabaseBuilder` and frozen by
``build()``; the builder itself is never handed to callers of the bootstrap.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional

from pydantic import ValidationError

from ..crypto.alg_registry import PublicMaterial, get_public_material
from ..crypto.digest import key_id_for
from ..errors import DecodeError, InvalidKeyError, RoleRegistrationError, UnknownRoleError, WrongKeyIDError
from ..metadata.model import KeyModel, RoleModel

# key ids are lowercase hex sha256 digests
_KEY_ID = re.compile(r"[0-9a-f]{64}")


@dataclass(frozen=True)
class Key:
    key_id: str
    keytype: str
    scheme: str
    material: PublicMaterial


@dataclass(frozen=True)
class Role:
    name: str
    key_ids: FrozenSet[str]
    threshold: int

    def authorizes(self, key_id: str) -> bool:
        return key_id in self.key_ids


@dataclass(frozen=True)
class TrustDatabase:
    keys: Mapping[str, Key] = field(default_factory=lambda: MappingProxyType({}))
    roles: Mapping[str, Role] = field(default_factory=lambda: MappingProxyType({}))

    def get_key(self, key_id: str) -> Optional[Key]:
        return self.keys.get(key_id)

    def get_role(self, name: str) -> Role:
        role = self.roles.get(name)
        if role is None:
            raise UnknownRoleError(name)
        return role

    def is_empty(self) -> bool:
        return not self.keys and not self.roles


class TrustDatabaseBuilder:
    def __init__(self):
        self._keys: Dict[str, Key] = {}
        self._roles: Dict[str, Role] = {}

    def add_key(self, key_id: str, key: KeyModel | dict) -> Key:
        """Register a key under ``key_id``.

        Raises WrongKeyIDError when ``key_id`` is not the id computed from the
        key itself, InvalidKeyError for anything else wrong with the key.
        """
        if isinstance(key, dict):
            try:
                key = KeyModel.model_validate(key)
            except ValidationError as e:
                raise InvalidKeyError(key_id, f"malformed key entry: {e}") from e
        try:
            material = get_public_material(key.keytype, key.scheme, key.keyval)
        except ValueError as e:
            raise InvalidKeyError(key_id, str(e)) from e
        try:
            computed = key_id_for(key.model_dump())
        except DecodeError as e:
            raise InvalidKeyError(key_id, f"key has no canonical form: {e}") from e
        if computed != key_id:
            raise WrongKeyIDError(key_id, computed)
        existing = self._keys.get(key_id)
        if existing is not None and existing.material.fingerprint != material.fingerprint:
            raise InvalidKeyError(key_id, "id already registered for a different key")
        k = Key(key_id=key_id, keytype=material.keytype, scheme=material.scheme, material=material)
        self._keys[key_id] = k
        return k

    def add_role(self, name: str, role: RoleModel | dict) -> Role:
        if isinstance(role, dict):
            try:
                role = RoleModel.model_validate(role)
            except ValidationError as e:
                raise RoleRegistrationError(name, f"malformed role entry: {e}") from e
        if not name:
            raise RoleRegistrationError(name, "role name must not be empty")
        for key_id in role.keyids:
            if not _KEY_ID.fullmatch(key_id):
                raise RoleRegistrationError(name, f"invalid key id {key_id!r}")
        key_ids = frozenset(role.keyids)
        if role.threshold < 1:
            raise RoleRegistrationError(name, f"threshold {role.threshold} must be at least 1")
        if role.threshold > len(key_ids):
            raise RoleRegistrationError(
                name, f"threshold {role.threshold} exceeds {len(key_ids)} authorized keys"
            )
        r = Role(name=name, key_ids=key_ids, threshold=role.threshold)
        self._roles[name] = r
        return r

    def build(self) -> TrustDatabase:
        return TrustDatabase(
            keys=MappingProxyType(dict(self._keys)),
            roles=MappingProxyType(dict(self._roles)),
        )


__all__ = ["Key", "Role", "TrustDatabase", "TrustDatabaseBuilder"]
