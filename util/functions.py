# util/functions.py
import hashlib
import hmac
import re
from typing import List

_NS_LIST_SEP = re.compile(r"[,;\s]+")


def split_namespace_list(ns_list: str) -> List[str]:
    """
    - Split a "ns1, ns2;ns3 ns4" style list on commas, semicolons and whitespace.
    - Empty items are dropped; order of first appearance is kept.
    """
    out: List[str] = []
    for item in _NS_LIST_SEP.split(ns_list or ""):
        if item and item not in out:
            out.append(item)
    return out


def hash_secret(app_id: str, secret: str) -> str:
    return hashlib.sha256(f"{app_id}.{secret}".encode("utf-8")).hexdigest()


def verify_secret(app_id: str, secret: str, digest: str) -> bool:
    return hmac.compare_digest(hash_secret(app_id, secret), (digest or "").lower())
