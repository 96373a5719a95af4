import httpx
import pytest

from mobile.clipbooth.audio.types import EncodedSubmission
from mobile.clipbooth.audio.wav import wav_header
from mobile.clipbooth.services.network import ApiClient, ApiError, SubmissionFailed
from mobile.clipbooth.services.schemas import SubmissionForm
from mobile.clipbooth.store.settings_store import SettingsStore


def make_client(tmp_path, transport, server_url="https://clips.example.org"):
    settings = SettingsStore(tmp_path / "settings.json")
    settings.update(server_url=server_url)
    return ApiClient(settings, client=httpx.Client(transport=transport))


def make_submission(duration_ms=1234.9):
    form = SubmissionForm(
        full_name="Bilal Haddad",
        email="bilal@example.org",
        title="Friday talk",
        category="Podcast Episode",
        description="Recorded after class",
        duration_ms=duration_ms,
    )
    wav = wav_header(0, 1, 44100)
    return EncodedSubmission(wav_bytes=wav, sample_rate=44100, channels=1, frames=0, duration_ms=duration_ms, form=form)


def test_submit_recording_posts_media_and_fields(tmp_path):
    seen = {}

    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/api/recordings"
        seen["body"] = request.content
        return httpx.Response(200, json={"ok": True, "id": "rec-42"})

    client = make_client(tmp_path, httpx.MockTransport(handler))
    assert client.submit_recording(make_submission()) == "rec-42"

    body = seen["body"]
    assert b'name="media"; filename="recording.wav"' in body
    assert b"Content-Type: audio/wav" in body
    assert b"RIFF" in body
    for name, value in [
        (b"fullName", b"Bilal Haddad"),
        (b"email", b"bilal@example.org"),
        (b"title", b"Friday talk"),
        (b"category", b"Podcast Episode"),
        (b"durationMs", b"1234"),
        (b"source", b"record"),
    ]:
        assert b'name="' + name + b'"\r\n\r\n' + value in body


def test_submit_without_ok_flag_fails(tmp_path):
    def handler(request):
        return httpx.Response(200, json={"ok": False})

    client = make_client(tmp_path, httpx.MockTransport(handler))
    with pytest.raises(SubmissionFailed):
        client.submit_recording(make_submission())


def test_submit_rejected_with_error_body(tmp_path):
    def handler(request):
        return httpx.Response(400, json={"error": "Missing fields"})

    client = make_client(tmp_path, httpx.MockTransport(handler))
    with pytest.raises(SubmissionFailed) as excinfo:
        client.submit_recording(make_submission())
    assert "Missing fields" in str(excinfo.value)


def test_submit_non_json_reply_fails(tmp_path):
    def handler(request):
        return httpx.Response(502, text="<html>Bad gateway</html>")

    client = make_client(tmp_path, httpx.MockTransport(handler))
    with pytest.raises(SubmissionFailed):
        client.submit_recording(make_submission())


def test_submit_transport_error_fails(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(tmp_path, httpx.MockTransport(handler))
    with pytest.raises(SubmissionFailed):
        client.submit_recording(make_submission())


def test_missing_server_url(tmp_path):
    client = make_client(tmp_path, httpx.MockTransport(lambda r: httpx.Response(200)), server_url="")
    with pytest.raises(ApiError):
        client.submit_recording(make_submission())


def test_upload_file_tags_source(tmp_path):
    seen = {}

    def handler(request):
        seen["body"] = request.content
        return httpx.Response(200, json={"ok": True, "id": "up-1"})

    audio = tmp_path / "episode.mp3"
    audio.write_bytes(b"ID3fake")
    client = make_client(tmp_path, httpx.MockTransport(handler))
    form = SubmissionForm(full_name="Sara", title="Episode 3", category="Podcast Episode")

    assert client.upload_file(audio, form) == "up-1"
    assert b'filename="episode.mp3"' in seen["body"]
    assert b"Content-Type: audio/mpeg" in seen["body"]
    assert b'name="source"\r\n\r\nupload' in seen["body"]
    assert b'name="durationMs"' not in seen["body"]


def test_upload_missing_file(tmp_path):
    client = make_client(tmp_path, httpx.MockTransport(lambda r: httpx.Response(200)))
    form = SubmissionForm(full_name="Sara", title="Episode 3", category="Podcast Episode")
    with pytest.raises(SubmissionFailed):
        client.upload_file(tmp_path / "nope.wav", form)


def test_search_library(tmp_path):
    def handler(request):
        assert request.method == "GET"
        assert request.url.params["q"] == "talk"
        assert request.url.params["category"] == "Reminder"
        assert "type" not in request.url.params
        assert request.url.params["sort"] == "oldest"
        return httpx.Response(
            200,
            json=[
                {"id": "a", "title": "Talk", "name": "Omar", "category": "Reminder", "duration_ms": 4000, "plays": 3},
                {"id": "b", "title": None, "email": "x@y.z", "status": "Approved", "plays": None},
            ],
        )

    client = make_client(tmp_path, httpx.MockTransport(handler))
    items = client.search_library(q="talk", category="Reminder", type="All", sort="oldest")
    assert [item.id for item in items] == ["a", "b"]
    assert items[0].duration_ms == 4000
    assert items[1].title is None


def test_library_error(tmp_path):
    client = make_client(tmp_path, httpx.MockTransport(lambda r: httpx.Response(500)))
    with pytest.raises(ApiError) as excinfo:
        client.search_library()
    assert "Library" in str(excinfo.value)


def test_connection_check(tmp_path):
    client = make_client(tmp_path, httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
    assert client.test_connection() is True
