from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import json
from typing import Any, Mapping


def page_fingerprint(page_type: str, metadata: Mapping[str, Any]) -> str:
    data = json.dumps({"page_type": page_type, "metadata": dict(metadata)}, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def absolute_url(site_url: str, path: str) -> str:
    return f"{site_url.rstrip('/')}/{path.lstrip('/')}"


def current_fingerprints(site_url: str, pages: list[dict[str, Any]]) -> dict[str, str]:
    fingerprints: dict[str, str] = {}
    for page in pages:
        metadata = page.get("metadata")
        fingerprints[absolute_url(site_url, str(page["path"]))] = page_fingerprint(
            str(page.get("page_type") or ""),
            metadata if isinstance(metadata, dict) else {},
        )
    return fingerprints


@dataclass(slots=True)
class FingerprintDiff:
    changed: dict[str, str] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)
    unchanged: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.changed and not self.removed


def diff_fingerprints(previous: Mapping[str, str], current: Mapping[str, str]) -> FingerprintDiff:
    diff = FingerprintDiff()
    for url in sorted(current):
        if previous.get(url) == current[url]:
            diff.unchanged += 1
        else:
            diff.changed[url] = current[url]
    diff.removed = sorted(url for url in previous if url not in current)
    return diff
