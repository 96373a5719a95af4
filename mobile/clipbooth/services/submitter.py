"""Confirm step: render the trimmed clip and hand it to the endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..audio.trim import DecodeError, TrimEncoder, probe_duration_ms
from ..audio.types import RecordingSession, RecordingState, TrimSelection
from .logger import LogBuffer
from .network import ApiClient, ApiError, SubmissionFailed
from .schemas import SubmissionForm

SUBMITTED_MESSAGE = "Submitted for review."
FAILED_MESSAGE = "Submission failed."


@dataclass(slots=True)
class SubmissionOutcome:
    submitted: bool
    message: str
    recording_id: Optional[str] = None
    duration_ms: Optional[float] = None
    offer_rerecord: bool = False


class SubmissionFlow:
    def __init__(
        self,
        client: ApiClient,
        logger: LogBuffer,
        encoder: TrimEncoder | None = None,
    ) -> None:
        self.client = client
        self.logger = logger
        self.encoder = encoder or TrimEncoder()

    def confirm(
        self,
        session: RecordingSession,
        selection: TrimSelection,
        form: SubmissionForm,
    ) -> SubmissionOutcome:
        """Raises DecodeError or SubmissionFailed; nothing is retried."""
        if session.state is not RecordingState.STOPPED:
            raise DecodeError("Recording has not been finalized")
        submission = self.encoder.render(session.blob, selection, form)
        session.duration_ms = int(submission.duration_ms)
        recording_id = self.client.submit_recording(submission)
        self.logger.add(f"Recording {recording_id} submitted ({submission.duration_ms:.0f} ms)")
        return SubmissionOutcome(
            submitted=True,
            message=SUBMITTED_MESSAGE,
            recording_id=recording_id,
            duration_ms=submission.duration_ms,
        )

    def attempt(
        self,
        session: RecordingSession,
        selection: TrimSelection,
        form: SubmissionForm,
    ) -> SubmissionOutcome:
        """confirm() folded into the two outcomes the user sees."""
        try:
            return self.confirm(session, selection, form)
        except DecodeError as exc:
            self.logger.add(f"Cannot decode recording: {exc}")
            return SubmissionOutcome(submitted=False, message=FAILED_MESSAGE, offer_rerecord=True)
        except ApiError as exc:
            self.logger.add(f"Submission failed: {exc}")
            return SubmissionOutcome(submitted=False, message=FAILED_MESSAGE)

    def upload(self, file_path: str | Path, form: SubmissionForm) -> SubmissionOutcome:
        duration_ms = probe_duration_ms(file_path)
        try:
            recording_id = self.client.upload_file(file_path, form.model_copy(update={"duration_ms": duration_ms}))
        except ApiError as exc:
            self.logger.add(f"Upload failed ({Path(file_path).name}): {exc}")
            return SubmissionOutcome(submitted=False, message=FAILED_MESSAGE)
        self.logger.add(f"File {Path(file_path).name} uploaded as {recording_id}")
        return SubmissionOutcome(
            submitted=True,
            message=SUBMITTED_MESSAGE,
            recording_id=recording_id,
            duration_ms=duration_ms,
        )


__all__ = ["SubmissionFlow", "SubmissionOutcome", "SubmissionFailed", "FAILED_MESSAGE", "SUBMITTED_MESSAGE"]
