import hashlib
from typing import Any, Dict

from .cjson import canonicalize


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def key_id_for(key: Dict[str, Any]) -> str:
    # id = sha256(cjson({keytype, scheme, keyid_hash_algorithms?, keyval}))
    # Fields outside these four do not contribute to the id.
    body = {
        "keytype": key.get("keytype", ""),
        "scheme": key.get("scheme", ""),
        "keyval": key.get("keyval"),
    }
    if key.get("keyid_hash_algorithms"):
        body["keyid_hash_algorithms"] = key["keyid_hash_algorithms"]
    return sha256_hex(canonicalize(body))
