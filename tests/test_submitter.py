import io
import struct

import httpx
import numpy as np
import pytest
import soundfile as sf

from mobile.clipbooth.audio.capture import CaptureController
from mobile.clipbooth.audio.trim import DecodeError
from mobile.clipbooth.audio.types import DecodedAudioBuffer, RecordingSession, RecordingState, TrimSelection
from mobile.clipbooth.audio.wav import HEADER_SIZE, encode_wav
from mobile.clipbooth.services.logger import LogBuffer
from mobile.clipbooth.services.network import ApiClient
from mobile.clipbooth.services.schemas import SubmissionForm
from mobile.clipbooth.services.submitter import FAILED_MESSAGE, SUBMITTED_MESSAGE, SubmissionFlow
from mobile.clipbooth.store.settings_store import SettingsStore


class Endpoint:
    def __init__(self, reply=None):
        self.reply = reply or {"ok": True, "id": "rec-7"}
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(200, json=self.reply)


def make_flow(tmp_path, endpoint):
    settings = SettingsStore(tmp_path / "settings.json")
    settings.update(server_url="https://clips.example.org")
    client = ApiClient(settings, client=httpx.Client(transport=httpx.MockTransport(endpoint)))
    return SubmissionFlow(client, LogBuffer(50))


def form():
    return SubmissionForm(full_name="Hana", title="Evening recital", category="Recitation")


def record_clip(device, scheduler, clock, blocks=10):
    controller = CaptureController(device, scheduler, clock=clock)
    controller.start()
    for index in range(blocks):
        device.stream.feed(np.full(4410, 0.1 * (index % 5)))
        clock.advance(100)
        scheduler.run()
    controller.stop()
    return controller


def test_confirm_renders_and_submits(tmp_path, device, scheduler, clock):
    controller = record_clip(device, scheduler, clock)
    endpoint = Endpoint()
    flow = make_flow(tmp_path, endpoint)

    outcome = flow.confirm(controller.session, TrimSelection(0.5, 1.0), form())

    assert outcome.submitted
    assert outcome.message == SUBMITTED_MESSAGE
    assert outcome.recording_id == "rec-7"
    assert outcome.duration_ms == 500
    assert controller.session.duration_ms == 500
    assert len(endpoint.requests) == 1
    body = endpoint.requests[0].content
    assert b'name="durationMs"\r\n\r\n500' in body
    start = body.index(b"RIFF")
    (data_length,) = struct.unpack("<I", body[start + 40 : start + 44])
    wav = body[start : start + HEADER_SIZE + data_length]
    info = sf.info(io.BytesIO(wav))
    assert info.frames == 22050
    assert info.samplerate == 44100


def test_corrupt_blob_sends_nothing(tmp_path):
    endpoint = Endpoint()
    flow = make_flow(tmp_path, endpoint)
    session = RecordingSession(state=RecordingState.STOPPED, blob=b"\x1aE\xdf\xa3 broken webm")

    with pytest.raises(DecodeError):
        flow.confirm(session, TrimSelection.full(), form())
    outcome = flow.attempt(session, TrimSelection.full(), form())

    assert not outcome.submitted
    assert outcome.message == FAILED_MESSAGE
    assert outcome.offer_rerecord
    assert endpoint.requests == []


def test_unfinished_session_is_not_submitted(tmp_path):
    endpoint = Endpoint()
    flow = make_flow(tmp_path, endpoint)
    outcome = flow.attempt(RecordingSession(state=RecordingState.RECORDING), TrimSelection.full(), form())
    assert not outcome.submitted
    assert endpoint.requests == []


def test_endpoint_failure_is_single_outcome(tmp_path, device, scheduler, clock):
    controller = record_clip(device, scheduler, clock, blocks=3)
    endpoint = Endpoint(reply={"error": "Missing fields"})
    flow = make_flow(tmp_path, endpoint)

    outcome = flow.attempt(controller.session, TrimSelection.full(), form())

    assert not outcome.submitted
    assert outcome.message == FAILED_MESSAGE
    assert not outcome.offer_rerecord
    assert len(endpoint.requests) == 1
    assert any("Submission failed" in line for line in flow.logger.get())


def test_upload_probes_duration(tmp_path):
    endpoint = Endpoint(reply={"ok": True, "id": "up-9"})
    flow = make_flow(tmp_path, endpoint)
    path = tmp_path / "talk.wav"
    path.write_bytes(encode_wav(DecodedAudioBuffer(samples=np.zeros((1, 16000)), sample_rate=8000)))

    outcome = flow.upload(path, form())

    assert outcome.submitted
    assert outcome.recording_id == "up-9"
    assert outcome.duration_ms == 2000
    body = endpoint.requests[0].content
    assert b'name="durationMs"\r\n\r\n2000' in body
    assert b'name="source"\r\n\r\nupload' in body
