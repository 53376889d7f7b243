"""
Text-to-speech playback for assistant messages.

Playback is fire-and-forget: play() returns immediately and a newer clip
cancels the one still playing.
"""
import asyncio
import base64
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import unquote_to_bytes

import httpx

logger = logging.getLogger(__name__)

AudioSink = Callable[[bytes, str], Awaitable[None]]


def decode_data_url(url: str) -> bytes:
    """Decode a data: URL (the runtime inlines short clips as base64)."""
    header, _, data = url.partition(",")
    if header.endswith(";base64"):
        return base64.b64decode(data)
    return unquote_to_bytes(data)


class TtsPlayer:
    """Plays one clip at a time; starting a clip preempts the previous one."""

    def __init__(self, sink: AudioSink, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.sink = sink
        self._transport = transport
        self._current: Optional[asyncio.Task] = None
        self.muted = False

    @property
    def is_playing(self) -> bool:
        return self._current is not None and not self._current.done()

    def play(self, url: str) -> Optional[asyncio.Task]:
        """Start playing url, discarding whatever is playing now."""
        self.stop()
        if self.muted or not url:
            return None
        self._current = asyncio.get_running_loop().create_task(self._play(url))
        return self._current

    def stop(self):
        if self.is_playing:
            self._current.cancel()
        self._current = None

    async def wait(self):
        """Wait for the current clip, if any, to finish."""
        task = self._current
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def fetch(self, url: str) -> bytes:
        if url.startswith("data:"):
            return decode_data_url(url)
        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    async def _play(self, url: str):
        try:
            audio = await self.fetch(url)
            await self.sink(audio, url)
        except asyncio.CancelledError:
            logger.debug("Playback preempted")
            raise
        except (httpx.HTTPError, ValueError, OSError) as e:
            logger.warning(f"Speech playback failed: {e}")


class FileAudioSink:
    """Writes each clip to a numbered file, for players outside the process."""

    def __init__(self, directory: Union[str, Path], suffix: str = ".mp3"):
        self.directory = Path(directory)
        self.suffix = suffix
        self.count = 0

    async def __call__(self, audio: bytes, url: str):
        self.directory.mkdir(parents=True, exist_ok=True)
        self.count += 1
        path = self.directory / f"clip-{self.count:04d}{self.suffix}"
        path.write_bytes(audio)
        logger.info(f"Speech clip written to {path}")
