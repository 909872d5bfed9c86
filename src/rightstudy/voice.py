"""Live voice tutor over a Gemini realtime audio session.

One call = one session. Microphone blocks are forwarded as they are captured,
audio coming back is queued for gapless playback, and a server-side
interruption (the student talking over the tutor) flushes the queue.

Status flow: idle -> connecting -> connected -> idle | error, with
permission-denied when the microphone cannot be opened. There is no
reconnection; a dropped call has to be started again.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Callable, Optional

import numpy as np
from google.genai import errors, types

from rightstudy.audio import (
    MicrophonePermissionError, PlaybackScheduler, SoundDeviceMicrophone, SoundDeviceOutput,
    as_bytes, create_blob, decode_pcm16,
)
from rightstudy.config import Settings, get_client
from rightstudy.prompts import VOICE_TUTOR

logger = logging.getLogger(__name__)

IDLE = "idle"
CONNECTING = "connecting"
CONNECTED = "connected"
ERROR = "error"
PERMISSION_DENIED = "permission-denied"

# Websocket close code for a normal shutdown.
NORMAL_CLOSURE = 1000

STATUS_MESSAGES = {
    IDLE: "Start a voice conversation to learn about our courses.",
    CONNECTING: "Connecting to Gemini...",
    CONNECTED: "Listening... Speak naturally.",
    ERROR: "Connection failed. Please try again.",
    PERMISSION_DENIED: "Microphone access denied. Please allow microphone permissions.",
}


def live_config(settings: Settings, system_instruction: str = VOICE_TUTOR) -> types.LiveConnectConfig:
    return types.LiveConnectConfig(
        response_modalities=[types.Modality.AUDIO],
        speech_config=types.SpeechConfig(
            voice_config=types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=settings.voice_name),
            ),
        ),
        system_instruction=system_instruction,
    )


class LiveVoiceAgent:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        client=None,
        microphone_factory: Callable = SoundDeviceMicrophone,
        output_factory: Callable = SoundDeviceOutput,
        on_level: Optional[Callable[[np.ndarray], None]] = None,
        system_instruction: str = VOICE_TUTOR,
    ):
        self.settings = settings or Settings()
        self.system_instruction = system_instruction
        self.status = IDLE
        self.is_active = False
        self.is_muted = False
        self.playback: Optional[PlaybackScheduler] = None
        self._client = client
        self._microphone_factory = microphone_factory
        self._output_factory = output_factory
        self._on_level = on_level
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._outgoing: Optional[asyncio.Queue] = None
        self._stop: Optional[asyncio.Event] = None

    def _set_status(self, status: str) -> None:
        if status != self.status:
            logger.info("Voice session %s -> %s", self.status, status)
        self.status = status

    def toggle_mute(self) -> bool:
        self.is_muted = not self.is_muted
        return self.is_muted

    # --- incoming ---

    def handle_server_message(self, message) -> None:
        content = getattr(message, "server_content", None)
        if content is None or self.playback is None:
            return
        if content.interrupted:
            logger.info("Interrupted")
            self.playback.interrupt()
        turn = content.model_turn
        for part in (turn.parts if turn and turn.parts else []):
            inline = part.inline_data
            if inline is None or not inline.data:
                continue
            try:
                self.playback.schedule(decode_pcm16(as_bytes(inline.data)))
            except ValueError:
                logger.exception("Audio decode error")

    async def _receive(self, session) -> None:
        """Dispatch server messages until the server closes the session.

        The SDK reports every websocket close as an APIError carrying the close
        code; 1000 is a normal close and ends the call without an error.
        """
        try:
            while True:
                received = False
                async for message in session.receive():
                    received = True
                    self.handle_server_message(message)
                if not received:
                    logger.info("Session closed")
                    return
        except errors.APIError as e:
            if e.code != NORMAL_CLOSURE:
                raise
            logger.info("Session closed by server: %s", e.message)

    # --- outgoing ---

    def on_microphone_frame(self, samples: np.ndarray) -> None:
        """Capture callback; runs on the audio thread."""
        if self._on_level is not None:
            self._on_level(samples)
        if self.is_muted or self.status != CONNECTED or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._outgoing.put_nowait, create_blob(samples))

    async def _send(self, session) -> None:
        while True:
            blob = await self._outgoing.get()
            await session.send_realtime_input(audio=blob)

    # --- lifecycle ---

    async def run(self) -> str:
        """Hold one call until it is stopped, closed by the server or fails.

        Output, microphone and session are entered on one exit stack so every
        exit path releases all three. Returns the final status.
        """
        if self._client is None and not self.settings.ai_enabled:
            logger.error("API Key missing")
            self._set_status(ERROR)
            return self.status

        self._loop = asyncio.get_running_loop()
        self._outgoing = asyncio.Queue()
        self._stop = asyncio.Event()
        self._set_status(CONNECTING)
        try:
            async with AsyncExitStack() as stack:
                output = self._output_factory()
                output.start()
                stack.callback(output.close)
                self.playback = PlaybackScheduler(output)
                stack.callback(self.playback.stop_all)

                microphone = self._microphone_factory()
                try:
                    microphone.start(self.on_microphone_frame)
                except MicrophonePermissionError:
                    logger.exception("Microphone permission denied")
                    self._set_status(PERMISSION_DENIED)
                    return self.status
                stack.callback(microphone.close)

                if self._client is None:
                    self._client = get_client(self.settings)
                session = await stack.enter_async_context(
                    self._client.aio.live.connect(
                        model=self.settings.voice_model,
                        config=live_config(self.settings, self.system_instruction),
                    )
                )
                logger.info("Live session opened")
                self._set_status(CONNECTED)
                self.is_active = True

                tasks = [
                    asyncio.create_task(self._receive(session)),
                    asyncio.create_task(self._send(session)),
                    asyncio.create_task(self._stop.wait()),
                ]
                try:
                    done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
                finally:
                    for task in tasks:
                        task.cancel()
                    await asyncio.gather(*tasks, return_exceptions=True)
                for task in done:
                    if not task.cancelled() and task.exception() is not None:
                        raise task.exception()
            self._set_status(IDLE)
        except Exception:
            logger.exception("Session error")
            self._set_status(ERROR)
        finally:
            self.is_active = False
            self.playback = None
            self._loop = None
        return self.status

    def stop(self) -> None:
        """End the call; safe to call from any thread."""
        if self._loop is not None and self._stop is not None:
            self._loop.call_soon_threadsafe(self._stop.set)
