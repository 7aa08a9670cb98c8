"""Projection of browser resource records onto a :class:`PageProfile`."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final, Literal
from urllib.parse import urlsplit

from site_carbon.models import PageProfile, ResourceRecord

__all__ = [
    "BYTES_PER_MB",
    "DEFAULT_HEAVY_DOMAIN_PATTERNS",
    "ProfileSettings",
    "SizeField",
    "project",
    "record_size",
]

SizeField = Literal["decoded", "transfer", "encoded"]

BYTES_PER_MB: Final[float] = 1024.0 * 1024.0

DEFAULT_HEAVY_DOMAIN_PATTERNS: Final[tuple[str, ...]] = (
    "googleapis",
    "gstatic",
    "doubleclick",
    "youtube",
    "vimeo",
)


@dataclass(frozen=True, slots=True)
class ProfileSettings:
    """Which size field counts as page weight, and which domains are heavy.

    Attributes:
        size_field: ``"decoded"`` uses the decoded body size and falls back
            to the transfer size for records where it is zero (cross-origin
            entries without ``Timing-Allow-Origin`` report zero);
            ``"transfer"`` and ``"encoded"`` use that field only.
        heavy_domain_patterns: Substrings matched against each resource URL.
    """

    size_field: SizeField = "decoded"
    heavy_domain_patterns: tuple[str, ...] = DEFAULT_HEAVY_DOMAIN_PATTERNS

    def __post_init__(self) -> None:
        if self.size_field not in ("decoded", "transfer", "encoded"):
            raise ValueError(f"unsupported size_field: {self.size_field!r}")


def record_size(record: ResourceRecord, size_field: SizeField) -> float:
    """Return the byte count of ``record`` for the configured size field."""

    if size_field == "transfer":
        return record.transfer_size_bytes
    if size_field == "encoded":
        return record.encoded_size_bytes
    if record.decoded_size_bytes > 0:
        return record.decoded_size_bytes
    return record.transfer_size_bytes


def _host_of(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _is_external_script(record: ResourceRecord, own_hostname: str) -> bool:
    if record.initiator_type != "script":
        return False
    return own_hostname not in _host_of(record.url)


def _is_heavy(record: ResourceRecord, patterns: tuple[str, ...]) -> bool:
    url = record.url.lower()
    return any(pattern in url for pattern in patterns)


def project(
    records: Iterable[ResourceRecord],
    own_hostname: str,
    settings: ProfileSettings | None = None,
) -> PageProfile:
    """Derive page weight and third-party counts from resource records.

    Args:
        records: Resources observed during the page load.
        own_hostname: Hostname of the analysed page; scripts whose host does
            not contain it count as external.
        settings: Size field and heavy-domain patterns. Defaults apply when
            omitted.

    Returns:
        Profile whose fields are all zero for an empty record list.
    """

    config = settings or ProfileSettings()
    own = own_hostname.strip().lower()
    patterns = tuple(pattern.lower() for pattern in config.heavy_domain_patterns)

    total_bytes = 0.0
    external_scripts = 0
    heavy_domains = 0
    count = 0
    for record in records:
        count += 1
        total_bytes += max(record_size(record, config.size_field), 0.0)
        if _is_external_script(record, own):
            external_scripts += 1
        if patterns and _is_heavy(record, patterns):
            heavy_domains += 1

    return PageProfile(
        total_weight_mb=total_bytes / BYTES_PER_MB,
        external_script_count=external_scripts,
        heavy_domain_count=heavy_domains,
        resource_count=count,
        total_weight_bytes=total_bytes,
    )
