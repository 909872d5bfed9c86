import asyncio
from contextlib import asynccontextmanager
from types import SimpleNamespace

import numpy as np
from google.genai import errors

from rightstudy.audio import OUTPUT_SAMPLE_RATE, MicrophonePermissionError, PlaybackScheduler, ScheduledSource
from rightstudy.voice import (
    CONNECTED, ERROR, IDLE, PERMISSION_DENIED, LiveVoiceAgent, live_config,
)


def audio_message(*chunks: bytes, interrupted=False):
    parts = [SimpleNamespace(inline_data=SimpleNamespace(data=chunk)) for chunk in chunks]
    return SimpleNamespace(server_content=SimpleNamespace(
        interrupted=interrupted, model_turn=SimpleNamespace(parts=parts),
    ))


PCM_CHUNK = np.zeros(2400, dtype="<i2").tobytes()


class FakeMicrophone:
    instances = []

    def __init__(self, fail=False):
        self.fail = fail
        self.on_frame = None
        self.closed = False
        FakeMicrophone.instances.append(self)

    def start(self, on_frame):
        if self.fail:
            raise MicrophonePermissionError("denied")
        self.on_frame = on_frame

    def close(self):
        self.closed = True


class FakeOutput:
    def __init__(self):
        self.current_time = 0.0
        self.played = []

    def play(self, samples, start_time):
        source = ScheduledSource(samples, int(start_time * OUTPUT_SAMPLE_RATE))
        self.played.append((start_time, source))
        return source


class ClosableOutput(FakeOutput):
    def __init__(self):
        super().__init__()
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def close(self):
        self.closed = True


class FakeSession:
    """Yields each batch from one receive() call, then closes like the SDK does."""

    def __init__(self, batches=None, on_receive=None, block=False, close_code=1000):
        self.batches = list(batches or [])
        self.close_code = close_code
        self.on_receive = on_receive
        self.block = block
        self.sent = []

    async def receive(self):
        if self.on_receive is not None:
            await self.on_receive(self)
            self.on_receive = None
        if self.block:
            await asyncio.Event().wait()
        if not self.batches:
            raise errors.APIError(self.close_code, {"message": "bye"})
        for message in self.batches.pop(0):
            yield message

    async def send_realtime_input(self, audio):
        self.sent.append(audio)


class FakeClient:
    def __init__(self, session=None, error=None):
        self.session = session
        self.error = error
        self.connects = []
        self.aio = SimpleNamespace(live=SimpleNamespace(connect=self._connect))

    @asynccontextmanager
    async def _connect(self, model, config):
        self.connects.append((model, config))
        if self.error:
            raise self.error
        yield self.session


def make_agent(settings, client, mic_fail=False, on_level=None):
    outputs = []

    def output_factory():
        output = ClosableOutput()
        outputs.append(output)
        return output

    agent = LiveVoiceAgent(
        settings, client,
        microphone_factory=lambda: FakeMicrophone(fail=mic_fail),
        output_factory=output_factory,
        on_level=on_level,
    )
    return agent, outputs


def test_live_config(settings):
    config = live_config(settings, "Be brief.")
    assert config.system_instruction == "Be brief."
    assert config.speech_config.voice_config.prebuilt_voice_config.voice_name == "Zephyr"


def test_missing_key_sets_error(no_key_settings):
    agent, outputs = make_agent(no_key_settings, None)
    assert asyncio.run(agent.run()) == ERROR
    assert outputs == []


def test_session_plays_audio_and_ends_idle(settings):
    session = FakeSession(batches=[[audio_message(PCM_CHUNK), audio_message(PCM_CHUNK)]])
    client = FakeClient(session)
    agent, outputs = make_agent(settings, client)
    assert asyncio.run(agent.run()) == IDLE
    output = outputs[0]
    assert [start for start, _ in output.played] == [0.0, 0.1]
    assert output.closed
    assert FakeMicrophone.instances[-1].closed
    assert not agent.is_active
    assert client.connects[0][0] == "voice-model"


def test_abnormal_close_sets_error(settings):
    session = FakeSession(batches=[[audio_message(PCM_CHUNK)]], close_code=1011)
    agent, outputs = make_agent(settings, FakeClient(session))
    assert asyncio.run(agent.run()) == ERROR
    assert outputs[0].closed


def test_microphone_frames_are_sent(settings):
    levels = []

    async def speak(session):
        mic = FakeMicrophone.instances[-1]
        mic.on_frame(np.zeros(4096, dtype=np.float32))
        for _ in range(10):
            await asyncio.sleep(0)

    session = FakeSession(on_receive=speak)
    agent, _ = make_agent(settings, FakeClient(session), on_level=levels.append)
    asyncio.run(agent.run())
    assert len(session.sent) == 1
    assert session.sent[0].mime_type == "audio/pcm;rate=16000"
    assert len(levels) == 1


def test_muted_frames_are_not_sent(settings):
    levels = []

    async def speak(session):
        mic = FakeMicrophone.instances[-1]
        mic.on_frame(np.zeros(4096, dtype=np.float32))
        for _ in range(10):
            await asyncio.sleep(0)

    session = FakeSession(on_receive=speak)
    agent, _ = make_agent(settings, FakeClient(session), on_level=levels.append)
    assert agent.toggle_mute() is True
    asyncio.run(agent.run())
    assert session.sent == []
    assert len(levels) == 1


def test_frames_before_connect_are_dropped(settings):
    agent, _ = make_agent(settings, FakeClient(FakeSession()))
    agent.on_microphone_frame(np.zeros(16, dtype=np.float32))
    assert agent.status == IDLE


def test_permission_denied(settings):
    client = FakeClient(FakeSession())
    agent, outputs = make_agent(settings, client, mic_fail=True)
    assert asyncio.run(agent.run()) == PERMISSION_DENIED
    assert outputs[0].closed
    assert client.connects == []


def test_connect_failure_sets_error_and_releases(settings):
    agent, outputs = make_agent(settings, FakeClient(error=ConnectionError("refused")))
    assert asyncio.run(agent.run()) == ERROR
    assert outputs[0].closed
    assert FakeMicrophone.instances[-1].closed


def test_stop_ends_call(settings):
    agent, outputs = make_agent(settings, FakeClient(FakeSession(block=True)))

    async def scenario():
        task = asyncio.create_task(agent.run())
        while agent.status != CONNECTED:
            await asyncio.sleep(0)
        assert agent.is_active
        agent.stop()
        return await task

    assert asyncio.run(scenario()) == IDLE
    assert outputs[0].closed


def test_interrupt_is_applied_before_new_audio():
    agent = LiveVoiceAgent(client=object())
    output = FakeOutput()
    agent.playback = PlaybackScheduler(output)
    agent.handle_server_message(audio_message(PCM_CHUNK))
    agent.handle_server_message(audio_message(PCM_CHUNK))
    earlier = [source for _, source in output.played]

    agent.handle_server_message(audio_message(PCM_CHUNK, interrupted=True))
    assert all(source.stopped for source in earlier)
    assert output.played[-1][0] == 0.0
    assert agent.playback.next_start_time == 0.1
    assert len(agent.playback.sources) == 1


def test_every_audio_part_is_scheduled():
    agent = LiveVoiceAgent(client=object())
    output = FakeOutput()
    agent.playback = PlaybackScheduler(output)
    text_part = SimpleNamespace(inline_data=None)
    message = audio_message(PCM_CHUNK, PCM_CHUNK)
    message.server_content.model_turn.parts.insert(1, text_part)
    agent.handle_server_message(message)
    assert [start for start, _ in output.played] == [0.0, 0.1]


def test_bad_audio_is_skipped():
    agent = LiveVoiceAgent(client=object())
    output = FakeOutput()
    agent.playback = PlaybackScheduler(output)
    agent.handle_server_message(audio_message(b"\x00"))
    agent.handle_server_message(SimpleNamespace(server_content=None))
    assert output.played == []
