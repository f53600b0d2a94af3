import secrets
import string
import threading
import time
from typing import Any, Dict, Optional, Set

from poi_editor.models import BACKREF_KEY, FeatureId

_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LEN = 9

_issued: Set[str] = set()
_issued_lock = threading.Lock()


def _random_suffix() -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(_SUFFIX_LEN))


def generate_feature_id() -> str:
    """Return `feature_<epoch ms>_<base36 suffix>`, never repeated in-process."""
    with _issued_lock:
        while True:
            candidate = f"feature_{int(time.time() * 1000)}_{_random_suffix()}"
            if candidate not in _issued:
                _issued.add(candidate)
                return candidate


def usable_id(value: Any) -> Optional[FeatureId]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (int, float)):
        return value
    return None


def resolve_feature_id(raw: Dict[str, Any]) -> Optional[FeatureId]:
    """Recover the store id from a rendered or cloned feature dict."""
    found = usable_id(raw.get("id"))
    if found is not None:
        return found
    properties = raw.get("properties")
    if isinstance(properties, dict):
        return usable_id(properties.get(BACKREF_KEY))
    return None


def assign_identity(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Return a shallow copy of `raw` with an id and its properties mirror."""
    feature_id = resolve_feature_id(raw)
    if feature_id is None:
        feature_id = generate_feature_id()
    properties = dict(raw.get("properties") or {})
    properties[BACKREF_KEY] = feature_id
    out = dict(raw)
    out["id"] = feature_id
    out["properties"] = properties
    return out
