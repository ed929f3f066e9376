"""Locate the logo asset on disk."""
from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Iterable

from plate_replacer.app.domain.errors import ConfigurationError
from plate_replacer.app.domain.models import LogoAsset


def find_logo_asset(logo_dir: Path, extensions: Iterable[str] = ("png",)) -> LogoAsset:
    """Return the first file (by name) in `logo_dir` with an accepted extension.

    Raises ConfigurationError when the directory is unreadable or holds no match.
    """
    accepted = {f".{ext.lower().lstrip('.')}" for ext in extensions}
    if not accepted:
        raise ConfigurationError("no logo extensions configured")
    try:
        candidates = sorted(p for p in Path(logo_dir).iterdir() if p.is_file())
    except OSError as exc:
        raise ConfigurationError(f"cannot read logo directory {logo_dir}: {exc}") from exc

    for path in candidates:
        if path.suffix.lower() in accepted:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            return LogoAsset(path=path.resolve(), content_type=content_type)

    raise ConfigurationError(
        f"no logo file with extension {sorted(accepted)} found in {logo_dir}"
    )
