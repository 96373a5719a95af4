"""HTTP client for the recordings submission endpoint."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..audio.types import EncodedSubmission
from ..config import CONFIG
from ..store.settings_store import SettingsStore
from .schemas import SOURCE_UPLOAD, LibraryItem, SubmissionForm, SubmissionReceipt


class ApiError(Exception):
    pass


class SubmissionFailed(ApiError):
    """The endpoint did not acknowledge the submission."""


class ApiClient:
    def __init__(
        self,
        settings: SettingsStore,
        *,
        timeout: float | None = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings_store = settings
        self.timeout = timeout if timeout is not None else CONFIG.request_timeout
        self._client = client or httpx.Client(timeout=self.timeout)

    def _url(self, path: str) -> str:
        base = self.settings_store.get().server_url.rstrip("/")
        if not base:
            raise ApiError("Server URL missing")
        return f"{base}{path}"

    def test_connection(self) -> bool:
        try:
            resp = self._client.get(self._url("/api/recordings"), params={"status": "Approved"})
            return resp.status_code == 200
        except ApiError:
            raise
        except Exception as exc:
            raise ApiError(str(exc))

    def submit_recording(self, submission: EncodedSubmission) -> str:
        """POST the trimmed WAV and return the id the server assigned."""
        files = {"media": (submission.filename, submission.wav_bytes, submission.mime_type)}
        return self._post_media("/api/recordings", files, submission.form.to_fields())

    def upload_file(self, file_path: str | Path, form: SubmissionForm) -> str:
        """Submit an existing audio/video file without trimming it."""
        path = Path(file_path)
        if not path.is_file():
            raise SubmissionFailed(f"File not found: {path}")
        fields = form.model_copy(update={"source": SOURCE_UPLOAD}).to_fields()
        with path.open("rb") as fh:
            files = {"media": (path.name, fh, self._mime_type(path))}
            return self._post_media("/api/recordings", files, fields)

    def search_library(
        self,
        q: str | None = None,
        category: str | None = None,
        type: str | None = None,
        sort: str = "latest",
    ) -> List[LibraryItem]:
        params = {"sort": sort}
        if q:
            params["q"] = q
        if category and category != "All":
            params["category"] = category
        if type and type != "All":
            params["type"] = type
        try:
            resp = self._client.get(self._url("/api/recordings"), params=params)
            resp.raise_for_status()
            return [LibraryItem.model_validate(item) for item in resp.json()]
        except httpx.HTTPStatusError as exc:
            raise ApiError(f"Library error: {exc.response.status_code}")
        except (ValueError, TypeError, ValidationError) as exc:
            raise ApiError(f"Invalid library response: {exc}") from exc
        except ApiError:
            raise
        except Exception as exc:
            raise ApiError(str(exc))

    def _post_media(self, path: str, files: dict, fields: dict) -> str:
        url = self._url(path)
        try:
            resp = self._client.post(url, files=files, data=fields)
        except Exception as exc:
            raise SubmissionFailed(str(exc)) from exc
        try:
            receipt = SubmissionReceipt.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise SubmissionFailed(f"Invalid response ({resp.status_code}): {exc}") from exc
        if resp.status_code >= 400 or not receipt.ok or not receipt.id:
            reason = receipt.error or f"status {resp.status_code}"
            raise SubmissionFailed(f"Submission rejected: {reason}")
        return receipt.id

    def _mime_type(self, path: Path) -> str:
        suffix = path.suffix.lower()
        if suffix == ".flac":
            return "audio/flac"
        if suffix == ".mp3":
            return "audio/mpeg"
        if suffix == ".wav":
            return "audio/wav"
        guessed, _ = mimetypes.guess_type(path.name)
        return guessed or "application/octet-stream"

    def close(self) -> None:
        self._client.close()
