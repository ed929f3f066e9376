"""Port: where the images of a run come from."""
from __future__ import annotations

from typing import Protocol


class ImageSource(Protocol):
    async def resolve(self) -> list[str]:
        """Return the ordered image locations (URLs or local paths) to process."""
        ...
