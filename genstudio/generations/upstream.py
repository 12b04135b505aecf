# genstudio/generations/upstream.py

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass

import httpx

from genstudio.core.config import Settings, get_settings
from genstudio.core.errors import UpstreamError
from genstudio.plans.catalog import VIDEO

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Generation failed on backend"

SAMPLE_VIDEO_URL = "https://cdn.pixabay.com/video/2023/10/20/185848-876610237_tiny.mp4"
SAMPLE_IMAGE_URL = "https://picsum.photos/seed/{seed}/1920/1080"


@dataclass
class ReferenceFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class GenerationRequest:
    kind: str
    prompt: str
    duration: str = "5s"
    resolution: str = "1080p"
    sub_kind: str | None = None
    file: ReferenceFile | None = None


class GenerationEndpoint:
    """Client for the external ``POST {base}/api/generate`` contract."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        # None = no limit of our own; a hung upstream keeps the attempt running
        self._timeout = timeout
        self._transport = transport

    async def generate(self, request: GenerationRequest, account_id: str) -> str:
        data = {
            "prompt": request.prompt,
            "duration": request.duration,
            "resolution": request.resolution,
            "type": request.kind,
            "subType": request.sub_kind or "",
            "user_id": account_id,
        }
        # always multipart, with or without a reference file
        files = [(name, (None, value)) for name, value in data.items()]
        if request.file is not None:
            files.append(("file", (request.file.filename, request.file.content, request.file.content_type)))

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(f"{self.base_url}/api/generate", files=files)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Generation request failed: {e}") from e

        if not (200 <= resp.status_code < 300):
            detail = None
            try:
                body = resp.json()
                if isinstance(body, dict):
                    detail = body.get("detail")
            except ValueError:
                pass
            logger.warning("generation endpoint error %s: %s", resp.status_code, detail or resp.text[:200])
            raise UpstreamError(str(detail) if detail else GENERIC_FAILURE)

        try:
            url = resp.json().get("url")
        except (ValueError, AttributeError):
            url = None
        if not url:
            raise UpstreamError("Generation backend returned no result url")
        return url


class SimulatedGenerator:
    """Stands in when no generation endpoint is configured: waits, then returns a sample asset."""

    def __init__(self, delay: float = 5.0):
        self.delay = delay

    async def generate(self, request: GenerationRequest, account_id: str) -> str:
        await asyncio.sleep(self.delay)
        if request.kind == VIDEO:
            return SAMPLE_VIDEO_URL
        return SAMPLE_IMAGE_URL.format(seed=random.random())


def build_generator(settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
    settings = settings or get_settings()
    if settings.generation_configured:
        return GenerationEndpoint(
            settings.generation_api_url,
            timeout=settings.generation_timeout,
            transport=transport,
        )
    return SimulatedGenerator(delay=settings.simulated_delay)
