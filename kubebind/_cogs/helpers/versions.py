"""
The library's own version, as installed (the releases are made by tagging).

It is detected once on import and is used in the ``User-Agent`` header.
"""
import importlib.metadata
from typing import Optional

DISTRIBUTION = 'kubebind'


def detect_version(distribution: str = DISTRIBUTION) -> Optional[str]:
    try:
        return importlib.metadata.version(distribution)
    except importlib.metadata.PackageNotFoundError:
        return None  # e.g. running from a source checkout


def get_user_agent() -> str:
    return f'{DISTRIBUTION}/{version or "unknown"}'


version: Optional[str] = detect_version()
