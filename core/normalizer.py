# core/normalizer.py
"""
Canonical forms for namespaces, objects and targets.

Objects are normalized per namespace: the namespace picks a strategy from an
immutable registry built once at startup, falling back to the "*" entry.
Every strategy is idempotent, so normalizing twice is the same as once.
"""
import re
import unicodedata
from types import MappingProxyType
from typing import Callable, Dict, Final, Mapping, Optional

NameNormalizer = Callable[[str], str]

DEFAULT_KEY: Final[str] = "*"

_NON_DIGITS = re.compile(r"[^0-9]+")


def default_normalizer(value: str) -> str:
    return (value or "").strip()


def email_normalizer(value: str) -> str:
    return (value or "").strip().lower()


def _ascii_digits(value: str) -> str:
    # fullwidth, Arabic-Indic etc. decimal digits fold to 0-9
    return "".join(
        str(unicodedata.decimal(ch)) if ch.isdecimal() else ch for ch in value
    )


def phone_normalizer(value: str) -> str:
    # "0084-123" -> "84123"
    return _NON_DIGITS.sub("", _ascii_digits(value or "")).lstrip("0")


EMAIL_NAMESPACES: Final = ("email", "e-mail", "mail")
PHONE_NAMESPACES: Final = ("phone", "mobile", "tel", "telephone", "msisdn", "cellphone")


def build_registry(
    extra: Optional[Dict[str, NameNormalizer]] = None,
) -> Mapping[str, NameNormalizer]:
    """Build the read-only namespace -> strategy table. Keys are normalized."""
    table: Dict[str, NameNormalizer] = {DEFAULT_KEY: default_normalizer}
    for ns in EMAIL_NAMESPACES:
        table[ns] = email_normalizer
    for ns in PHONE_NAMESPACES:
        table[ns] = phone_normalizer
    for ns, fn in (extra or {}).items():
        key = ns if ns == DEFAULT_KEY else normalize_namespace(ns)
        table[key] = fn
    return MappingProxyType(table)


def normalize_namespace(namespace: str) -> str:
    return (namespace or "").strip().lower()


def normalize_mapping_target(target: str) -> str:
    # targets are case-sensitive
    return (target or "").strip()


class IdentifierNormalizer:
    def __init__(self, registry: Mapping[str, NameNormalizer]) -> None:
        self._registry = registry
        self._default = registry.get(DEFAULT_KEY, default_normalizer)

    normalize_namespace = staticmethod(normalize_namespace)
    normalize_mapping_target = staticmethod(normalize_mapping_target)

    def strategy_for(self, namespace: str) -> NameNormalizer:
        return self._registry.get(normalize_namespace(namespace)) or self._default

    def normalize_mapping_object(self, namespace: str, obj: str) -> str:
        return self.strategy_for(namespace)(obj)


DEFAULT_NORMALIZER: Final[IdentifierNormalizer] = IdentifierNormalizer(build_registry())
