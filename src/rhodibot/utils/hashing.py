"""Stable digests of compliance report content."""

import hashlib
import json
from typing import Any

DIGEST_ALGORITHM = "sha256"


def canonical_json(data: Any) -> str:
    """Serialize plain data so that equal content always yields equal text.

    Keys are sorted and no insignificant whitespace is emitted. Values JSON
    cannot represent (datetimes, enums) fall back to ``str``.
    """
    return json.dumps(data, sort_keys=True, default=str, separators=(",", ":"), ensure_ascii=False)


def compute_hash(data: bytes, algorithm: str = DIGEST_ALGORITHM) -> str:
    """Hex digest of raw bytes."""
    return hashlib.new(algorithm, data).hexdigest()


def hash_dict(data: dict[str, Any], algorithm: str = DIGEST_ALGORITHM) -> str:
    """Digest of a mapping via its canonical JSON form.

    The aggregator hashes report content without the timestamp, so two
    scans of an unchanged repository share a digest.

    Args:
        data: Mapping of plain (JSON-compatible) data
        algorithm: hashlib algorithm name

    Returns:
        Hex digest
    """
    return compute_hash(canonical_json(data).encode("utf-8"), algorithm)


def short_hash(digest: str, length: int = 12) -> str:
    """Abbreviate a hex digest for tables and summaries."""
    if length < 1:
        raise ValueError("length must be at least 1")
    return digest[:length]
