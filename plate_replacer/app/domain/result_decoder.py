"""Result decoder: turns the result endpoint's response into image bytes.

The endpoint answers either with the image itself or with JSON that wraps a
base64 string at one of several nesting paths, and the base64 text is
sometimes corrupted. Decoding is an ordered list of strategies; each returns a
StrategyOutcome that either accepts bytes, asks for the next strategy, or
fails the decode outright. The decoder stops at the first accept or fail.
"""
from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from loguru import logger

from plate_replacer.app.constants import JSON_ACCEPT, LOG_BODY_PREVIEW_LENGTH
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.domain.errors import DecodeError
from plate_replacer.app.ports.http_client import HttpClientError, HttpResponse

IMAGE_ACCEPT = "image/png,image/jpeg,image/*"

DEFAULT_MIN_IMAGE_BYTES = 1000

# Observed response shapes, not a documented schema. First non-empty string wins.
RESULT_IMAGE_FIELD_PATHS: tuple[tuple[str | int, ...], ...] = (
    ("data", "images", 0, "imageUrl"),
    ("data", "imageUrl"),
    ("imageUrl",),
    ("image",),
    ("data", "image"),
)

IMAGE_SIGNATURES: tuple[bytes, ...] = (
    b"\x89PNG",
    b"\xff\xd8",
    b"GIF87a",
    b"GIF89a",
    b"RIFF",
)

_WHITESPACE = re.compile(r"\s+")
_NON_BASE64 = re.compile(r"[^A-Za-z0-9+/=]")
_STRICT_BASE64 = re.compile(r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$")


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _preview(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text[:LOG_BODY_PREVIEW_LENGTH]


class ResultFetcher(Protocol):
    async def fetch_result(self, url: str, *, accept: str) -> HttpResponse: ...


@dataclass(frozen=True)
class StrategyOutcome:
    image: bytes | None = None
    reason: str = ""
    error: DecodeError | None = None

    @classmethod
    def accept(cls, image: bytes) -> "StrategyOutcome":
        return cls(image=image)

    @classmethod
    def skip(cls, reason: str) -> "StrategyOutcome":
        return cls(reason=reason)

    @classmethod
    def fail(cls, error: DecodeError) -> "StrategyOutcome":
        return cls(reason=str(error), error=error)


class DecodeStrategy(Protocol):
    name: str

    async def attempt(self, url: str) -> StrategyOutcome: ...


def normalize_base64(value: str) -> bytes:
    """Decode a possibly corrupted base64 image string.

    Strips a ``data:<mime>;base64,`` or bare ``base64,`` prefix, all whitespace
    and any character outside the base64 alphabet, then pads to a multiple of
    four. Removing characters is lossy; it is logged as a repair.
    """
    text = value
    if ";base64," in text:
        text = text.split(";base64,", 1)[1]
    elif "base64," in text:
        text = text.split("base64,", 1)[1]
    text = _WHITESPACE.sub("", text)

    cleaned = _NON_BASE64.sub("", text)
    if len(cleaned) < len(text):
        logger.warning("base64 payload repaired: removed {} invalid characters", len(text) - len(cleaned))

    missing = -len(cleaned) % 4
    if missing:
        cleaned += "=" * missing

    try:
        return base64.b64decode(cleaned)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError("invalid-base64", str(exc)) from exc


def find_image_field(
    payload: Any,
    paths: Sequence[Sequence[str | int]] = RESULT_IMAGE_FIELD_PATHS,
) -> str | None:
    for path in paths:
        node = payload
        for key in path:
            if isinstance(key, int):
                node = node[key] if isinstance(node, list) and len(node) > key else None
            else:
                node = node.get(key) if isinstance(node, dict) else None
            if node is None:
                break
        if isinstance(node, str) and node:
            _log("image_field_found", path=".".join(str(k) for k in path))
            return node
    return None


def looks_like_image(data: bytes) -> bool:
    return data.startswith(IMAGE_SIGNATURES)


class BinaryResultStrategy:
    """Direct image download; rejects non-image types and suspiciously small payloads."""

    name = "binary"

    def __init__(self, fetcher: ResultFetcher, *, min_image_bytes: int = DEFAULT_MIN_IMAGE_BYTES) -> None:
        self._fetcher = fetcher
        self._min_image_bytes = min_image_bytes

    async def attempt(self, url: str) -> StrategyOutcome:
        try:
            response = await self._fetcher.fetch_result(url, accept=IMAGE_ACCEPT)
            response.raise_for_status()
        except HttpClientError as exc:
            return StrategyOutcome.skip(f"binary fetch failed: {exc}")

        content_type = response.content_type
        size = len(response.content)
        _log("binary_result_fetched", url=url, status_code=response.status_code, content_type=content_type, size=size)

        if "image/" not in content_type:
            return StrategyOutcome.skip(f"content type {content_type!r} is not an image")
        if size <= self._min_image_bytes:
            return StrategyOutcome.skip(f"image payload too small ({size} bytes)")
        return StrategyOutcome.accept(response.content)


class JsonResultStrategy:
    """JSON (base64) download, with type-sensitive handling when an image comes back anyway."""

    name = "json"

    def __init__(
        self,
        fetcher: ResultFetcher,
        *,
        field_paths: Sequence[Sequence[str | int]] = RESULT_IMAGE_FIELD_PATHS,
    ) -> None:
        self._fetcher = fetcher
        self._field_paths = field_paths

    async def _get(self, url: str, accept: str) -> HttpResponse:
        response = await self._fetcher.fetch_result(url, accept=accept)
        response.raise_for_status()
        return response

    async def attempt(self, url: str) -> StrategyOutcome:
        try:
            response = await self._get(url, JSON_ACCEPT)
        except HttpClientError as exc:
            logger.warning("json result fetch failed, retrying as binary: {}", exc)
            try:
                response = await self._get(url, IMAGE_ACCEPT)
            except HttpClientError as retry_exc:
                return StrategyOutcome.fail(DecodeError("fetch-failed", str(retry_exc)))

        content_type = response.content_type
        _log("json_result_fetched", url=url, status_code=response.status_code, content_type=content_type)

        if "json" in content_type:
            return self._from_json(response)
        if "image/" in content_type:
            return await self._from_image(url, response)
        return StrategyOutcome.fail(
            DecodeError(
                "unexpected-content-type",
                f"{content_type!r}, body starts: {response.text[:LOG_BODY_PREVIEW_LENGTH]!r}",
            )
        )

    def _from_json(self, response: HttpResponse) -> StrategyOutcome:
        try:
            payload = response.json()
        except ValueError as exc:
            return StrategyOutcome.fail(DecodeError("invalid-json", str(exc), payload=response.text))

        encoded = find_image_field(payload, self._field_paths)
        if encoded is None:
            logger.error("no base64 image field in result: {}", _preview(payload))
            searched = ", ".join(".".join(str(k) for k in path) for path in self._field_paths)
            return StrategyOutcome.fail(
                DecodeError("no-image-field", f"searched {searched}", payload=response.text)
            )

        _log("base64_result_found", length=len(encoded), sample=encoded[:30])
        try:
            image = normalize_base64(encoded)
        except DecodeError as exc:
            return StrategyOutcome.fail(DecodeError(exc.reason, exc.detail, payload=response.text))
        if not image:
            return StrategyOutcome.fail(
                DecodeError("empty-image", "base64 field decoded to no bytes", payload=response.text)
            )
        return StrategyOutcome.accept(image)

    async def _from_image(self, url: str, response: HttpResponse) -> StrategyOutcome:
        data = response.content
        if looks_like_image(data):
            return StrategyOutcome.accept(data)

        try:
            text = data.decode("ascii").strip()
        except UnicodeDecodeError:
            text = ""
        if text and _STRICT_BASE64.match(text):
            _log("image_body_is_base64", url=url, length=len(text))
            return StrategyOutcome.accept(base64.b64decode(text))

        _log("image_body_unrecognised", url=url, size=len(data))
        try:
            raw = await self._get(url, IMAGE_ACCEPT)
        except HttpClientError as exc:
            return StrategyOutcome.fail(DecodeError("fetch-failed", str(exc)))
        return StrategyOutcome.accept(raw.content)


class ResultDecoder:
    """Tries each strategy in order until one accepts or fails."""

    def __init__(self, strategies: Sequence[DecodeStrategy]) -> None:
        if not strategies:
            raise ValueError("at least one decode strategy is required")
        self._strategies = list(strategies)

    @classmethod
    def default(
        cls,
        fetcher: ResultFetcher,
        *,
        min_image_bytes: int = DEFAULT_MIN_IMAGE_BYTES,
        field_paths: Sequence[Sequence[str | int]] = RESULT_IMAGE_FIELD_PATHS,
    ) -> "ResultDecoder":
        return cls(
            [
                BinaryResultStrategy(fetcher, min_image_bytes=min_image_bytes),
                JsonResultStrategy(fetcher, field_paths=field_paths),
            ]
        )

    async def decode(self, url: str) -> bytes:
        reasons: list[str] = []
        for strategy in self._strategies:
            outcome = await strategy.attempt(url)
            if outcome.error is not None:
                raise outcome.error
            if outcome.image is not None:
                if not outcome.image:
                    raise DecodeError("empty-image", f"{strategy.name} strategy produced no bytes")
                _log("result_decoded", url=url, strategy=strategy.name, size=len(outcome.image))
                return outcome.image
            _log("decode_strategy_skipped", url=url, strategy=strategy.name, reason=outcome.reason)
            reasons.append(f"{strategy.name}: {outcome.reason}")
        raise DecodeError("exhausted", "; ".join(reasons))
