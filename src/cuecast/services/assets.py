"""
Asset fetching for render jobs.

Downloads the narration audio, background images and (when not inline) the
cue payload into the job workspace. Downloads within one job run
concurrently and are joined before anything else happens.

`http(s)://` URLs go through httpx; plain paths and `file://` URLs are
copied, which keeps local renders and tests off the network.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Sequence
from urllib.parse import unquote, urlparse

import httpx
from pydantic import ValidationError

from cuecast.domain.artifacts import AssetBundle
from cuecast.domain.request import CuesPayload, RenderRequest
from cuecast.domain.workspace import Workspace
from cuecast.exceptions import ResourceError
from cuecast.utils.logging import get_logger

log = get_logger(__name__)

_CONNECT_TIMEOUT = 10.0
_CHUNK_SIZE = 64 * 1024


def _local_path(url: str) -> Path | None:
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https"):
        return None
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(url).expanduser()


def _suffix(url: str, default: str) -> str:
    suffix = Path(urlparse(url).path).suffix
    return suffix if suffix and len(suffix) <= 5 else default


def parse_cues(raw: str, *, source: str = "cues") -> CuesPayload:
    try:
        return CuesPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise ResourceError(f"Invalid cue payload from {source}: {exc.error_count()} error(s)") from exc


class AssetFetcher:
    """Concurrent downloader bound to one timeout policy."""

    def __init__(
        self,
        *,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_s, connect=min(_CONNECT_TIMEOUT, self.timeout_s)),
            follow_redirects=True,
            transport=self._transport,
        )

    async def download(self, client: httpx.AsyncClient, url: str, dest: Path) -> Path:
        local = _local_path(url)
        if local is not None:
            if not local.is_file():
                raise ResourceError(f"Asset not found: {url}")
            await asyncio.to_thread(shutil.copyfile, local, dest)
            return dest

        log.info("Downloading %s -> %s", url, dest)
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                with open(dest, "wb") as f:
                    async for chunk in response.aiter_bytes(chunk_size=_CHUNK_SIZE):
                        f.write(chunk)
        except httpx.TimeoutException as exc:
            raise ResourceError(f"Download timed out after {self.timeout_s:.0f}s: {url}") from exc
        except httpx.HTTPStatusError as exc:
            raise ResourceError(
                f"Download failed: {url}, status={exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ResourceError(f"Download failed for {url}: {exc}") from exc

        if dest.stat().st_size == 0:
            raise ResourceError(f"Downloaded asset is empty: {url}")
        return dest

    async def fetch_text(self, client: httpx.AsyncClient, url: str) -> str:
        local = _local_path(url)
        if local is not None:
            if not local.is_file():
                raise ResourceError(f"Asset not found: {url}")
            return await asyncio.to_thread(local.read_text, encoding="utf-8")
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ResourceError(f"Download timed out after {self.timeout_s:.0f}s: {url}") from exc
        except httpx.HTTPError as exc:
            raise ResourceError(f"Download failed for {url}: {exc}") from exc
        return response.text

    async def fetch_all(
        self,
        workspace: Workspace,
        *,
        audio_url: str,
        image_urls: Sequence[str] = (),
        cues_url: str | None = None,
    ) -> tuple[AssetBundle, CuesPayload | None]:
        unique_images = list(dict.fromkeys(image_urls))
        async with self._client() as client:
            tasks = [self.download(client, audio_url, workspace.audio)]
            tasks += [
                self.download(client, url, workspace.image(i, _suffix(url, ".img")))
                for i, url in enumerate(unique_images)
            ]
            if cues_url is not None:
                tasks.append(self.fetch_text(client, cues_url))
            results = await asyncio.gather(*tasks)

        audio = results[0]
        images = dict(zip(unique_images, results[1 : 1 + len(unique_images)]))
        cues = None
        if cues_url is not None:
            raw = results[-1]
            workspace.cues_json.write_text(raw, encoding="utf-8")
            cues = parse_cues(raw, source=cues_url)
        return AssetBundle(audio=audio, images=images), cues

    def fetch_for(self, request: RenderRequest, workspace: Workspace) -> tuple[AssetBundle, CuesPayload]:
        """Fetch everything `request` references and return the resolved cues."""
        if request.cues is None and request.cues_url is None:
            raise ResourceError("cuesUrl is required when cues is null")
        image_urls = [span.image_url for span in request.background_spans]
        if not image_urls and request.background.image_url:
            image_urls = [request.background.image_url]
        bundle, fetched = asyncio.run(
            self.fetch_all(
                workspace,
                audio_url=request.audio_url,
                image_urls=image_urls,
                cues_url=None if request.cues is not None else request.cues_url,
            )
        )
        cues = request.cues if request.cues is not None else fetched
        if cues is None:
            raise ResourceError(f"No cue payload available for {request.cues_url}")
        return bundle, cues

    def fetch_cues(self, url: str) -> CuesPayload:
        async def _run() -> str:
            async with self._client() as client:
                return await self.fetch_text(client, url)

        return parse_cues(asyncio.run(_run()), source=url)
