# Canonical JSON as used by TUF metadata signatures (OLPC flavour).
# NOTE: only '\' and '"' are escaped inside strings; every other character,
# control characters included, is written verbatim as UTF-8.
import json
from typing import Any

from ..errors import CanonicalizationError, DecodeError


def _encode_string(s: str) -> str:
    return '"' + s.replace("\\", "\\\\").replace('"', '\\"') + '"'


def canonicalize(obj: Any) -> bytes:
    parts = []

    def emit(o):
        # bool first: it is a subclass of int
        if o is None:
            parts.append("null")
        elif o is True:
            parts.append("true")
        elif o is False:
            parts.append("false")
        elif isinstance(o, int):
            parts.append(str(o))
        elif isinstance(o, float):
            # decoders that read every number as a double still yield integral values here
            if not o.is_integer():
                raise CanonicalizationError(f"non-integral number {o!r} has no canonical form")
            parts.append(str(int(o)))
        elif isinstance(o, str):
            parts.append(_encode_string(o))
        elif isinstance(o, (list, tuple)):
            parts.append("[")
            for i, item in enumerate(o):
                if i:
                    parts.append(",")
                emit(item)
            parts.append("]")
        elif isinstance(o, dict):
            parts.append("{")
            for i, k in enumerate(sorted(o.keys(), key=_key_order)):
                if i:
                    parts.append(",")
                parts.append(_encode_string(k))
                parts.append(":")
                emit(o[k])
            parts.append("}")
        else:
            raise CanonicalizationError(f"cannot canonicalize value of type {type(o).__name__}")

    try:
        emit(obj)
        return "".join(parts).encode("utf-8")
    except RecursionError as e:
        raise CanonicalizationError("value is nested too deeply") from e
    except UnicodeEncodeError as e:
        # lone surrogates survive JSON decoding but have no UTF-8 form
        raise CanonicalizationError(f"string has no UTF-8 form: {e}") from e


def _key_order(k):
    if not isinstance(k, str):
        raise CanonicalizationError(f"object keys must be strings, got {type(k).__name__}")
    return k


def loads(raw: bytes | str) -> Any:
    """Decode JSON bytes into plain dict/list/scalar values.

    Non-strict so canonical output (which may carry raw control characters
    inside strings) decodes again.
    """
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).decode("utf-8")
        return json.loads(raw, strict=False)
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"invalid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("JSON is nested too deeply") from e


def canonicalize_bytes(raw: bytes | str) -> bytes:
    return canonicalize(loads(raw))


__all__ = ["canonicalize", "canonicalize_bytes", "loads"]
