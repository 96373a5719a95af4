"""Kivy entrypoint for the ClipBooth recording client."""

from __future__ import annotations

import threading
from pathlib import Path

from kivy.clock import Clock
from kivy.core.audio import SoundLoader
from kivy.lang import Builder
from kivy.properties import BooleanProperty, ListProperty, NumericProperty, ObjectProperty, StringProperty
from kivy.uix.screenmanager import ScreenManager
from kivymd.app import MDApp
from kivymd.uix.screen import MDScreen
from kivymd.uix.snackbar import Snackbar
from pydantic import ValidationError

from .audio.capture import CaptureController, InvalidTransition
from .audio.device import DeviceUnavailable, SoundDeviceInput
from .audio.trim import DecodeError, decode_blob
from .audio.types import RecordingState, TrimSelection
from .audio.wav import encode_wav
from .config import CONFIG
from .services.logger import LogBuffer
from .services.network import ApiClient, ApiError
from .services.schemas import SubmissionForm
from .services.submitter import SubmissionFlow, SubmissionOutcome
from .store.settings_store import SettingsStore
from .ui.components import load_components
from .ui.theme import BoothTheme


SCREENS_KV = """
ScreenManager:
    RecordScreen:
        name: "record"
    ReviewScreen:
        name: "review"
    LibraryScreen:
        name: "library"
    SettingsScreen:
        name: "settings"

<RecordScreen@MDScreen>:
    BoothScaffold:
        spacing: app.theme.spacing.section
        BoothToolbar:
            title: "Record a clip"
            right_action_items: [["bookshelf", lambda x: app.open_library()], ["cog", lambda x: app.switch_screen('settings')]]
        ScrollView:
            do_scroll_x: False
            MDBoxLayout:
                orientation: "vertical"
                spacing: app.theme.spacing.section
                size_hint_y: None
                height: self.minimum_height
                BoothCard:
                    ClockLabel:
                    LevelBar:
                    CaptionText:
                        text: "Input level {}%".format(int(app.input_level))
                    MDBoxLayout:
                        size_hint_y: None
                        height: "56dp"
                        spacing: app.theme.spacing.grid
                        PrimaryButton:
                            text: "Start"
                            icon: "microphone"
                            disabled: app.capture_state not in ("IDLE", "STOPPED")
                            on_press: app.start_recording()
                        SecondaryButton:
                            text: "Pause"
                            icon: "pause"
                            disabled: app.capture_state != "RECORDING"
                            on_press: app.pause_recording()
                        SecondaryButton:
                            text: "Resume"
                            icon: "play"
                            disabled: app.capture_state != "PAUSED"
                            on_press: app.resume_recording()
                        SecondaryButton:
                            text: "Stop"
                            icon: "stop"
                            disabled: app.capture_state not in ("RECORDING", "PAUSED")
                            on_press: app.stop_recording()
                BoothCard:
                    SectionHeading:
                        text: "About you and the clip"
                    RoundedInput:
                        text: app.full_name
                        hint_text: "Full name"
                        on_text: app.full_name = self.text
                    RoundedInput:
                        text: app.email
                        hint_text: "Email (optional)"
                        on_text: app.email = self.text
                    RoundedInput:
                        text: app.clip_title
                        hint_text: "Title"
                        on_text: app.clip_title = self.text
                    RoundedInput:
                        text: app.category
                        hint_text: "Category"
                        helper_text: ", ".join(app.categories)
                        on_text: app.category = self.text
                    RoundedInput:
                        text: app.clip_description
                        hint_text: "Description (optional)"
                        multiline: True
                        on_text: app.clip_description = self.text
                BoothCard:
                    SectionHeading:
                        text: "Already have a file?"
                    RoundedInput:
                        id: upload_path
                        hint_text: "/path/to/episode.mp3"
                    SecondaryButton:
                        text: "Upload file"
                        icon: "upload"
                        on_press: app.upload_file(upload_path.text)
                ActivityLog:

<ReviewScreen@MDScreen>:
    BoothScaffold:
        spacing: app.theme.spacing.section
        BoothToolbar:
            title: "Review and trim"
            left_action_items: [["arrow-left", lambda x: app.switch_screen('record')]]
        ScrollView:
            do_scroll_x: False
            MDBoxLayout:
                orientation: "vertical"
                spacing: app.theme.spacing.section
                size_hint_y: None
                height: self.minimum_height
                BoothCard:
                    SectionHeading:
                        text: "Recorded {}".format(app.timer_text)
                    BodyText:
                        text: "Drag the handles to keep only the part you want to send."
                    CaptionText:
                        text: "Start {}%".format(int(app.trim_start))
                    MDSlider:
                        min: 0
                        max: 100
                        value: app.trim_start
                        on_value: app.set_trim_start(self.value)
                    CaptionText:
                        text: "End {}%".format(int(app.trim_end))
                    MDSlider:
                        min: 0
                        max: 100
                        value: app.trim_end
                        on_value: app.set_trim_end(self.value)
                    MDBoxLayout:
                        size_hint_y: None
                        height: "56dp"
                        spacing: app.theme.spacing.grid
                        SecondaryButton:
                            text: "Preview"
                            icon: "play-circle-outline"
                            on_press: app.play_preview()
                        SecondaryButton:
                            text: "Re-record"
                            icon: "restart"
                            on_press: app.re_record()
                        PrimaryButton:
                            text: "Submitting..." if app.is_submitting else "Confirm & submit"
                            icon: "send"
                            disabled: app.is_submitting
                            on_press: app.confirm_submit()
                InfoBanner:
                    message: "Clips are reviewed by an admin before they appear in the library."

<LibraryScreen@MDScreen>:
    BoothScaffold:
        spacing: app.theme.spacing.section
        BoothToolbar:
            title: "Library"
            left_action_items: [["arrow-left", lambda x: app.switch_screen('record')]]
            right_action_items: [["refresh", lambda x: app.refresh_library()]]
        ScrollView:
            do_scroll_x: False
            MDLabel:
                text: app.library_text
                theme_text_color: "Custom"
                text_color: app.theme.palette.text_primary
                text_size: self.width, None
                size_hint_y: None
                height: self.texture_size[1]

<SettingsScreen@MDScreen>:
    BoothScaffold:
        spacing: app.theme.spacing.section
        BoothToolbar:
            title: "Settings"
            left_action_items: [["arrow-left", lambda x: app.switch_screen('record')]]
        BoothCard:
            SectionHeading:
                text: "Site"
            RoundedInput:
                id: server_input
                text: app.server_url
                hint_text: "https://recordings.example.org"
            RoundedInput:
                id: device_input
                text: app.input_device
                hint_text: "Input device (blank for system default)"
            PrimaryButton:
                text: "Save"
                icon: "content-save"
                on_press: app.save_settings(server_input.text, device_input.text)
            SecondaryButton:
                text: "Test connection"
                icon: "access-point-check"
                on_press: app.test_connection()
"""


class RecordScreen(MDScreen):
    pass


class ReviewScreen(MDScreen):
    pass


class LibraryScreen(MDScreen):
    pass


class SettingsScreen(MDScreen):
    pass


class ClipBoothApp(MDApp):
    capture_state = StringProperty(RecordingState.IDLE.value)
    timer_text = StringProperty("00:00")
    input_level = NumericProperty(0)
    trim_start = NumericProperty(0)
    trim_end = NumericProperty(100)
    is_submitting = BooleanProperty(False)
    full_name = StringProperty("")
    email = StringProperty("")
    clip_title = StringProperty("")
    category = StringProperty("")
    clip_description = StringProperty("")
    categories = ListProperty(list(CONFIG.categories))
    server_url = StringProperty("")
    input_device = StringProperty("")
    library_text = StringProperty("Nothing loaded yet")
    log_lines = ListProperty([])
    theme = ObjectProperty(BoothTheme.default())

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.theme = BoothTheme.default()
        self._preview = None

    def build(self):
        load_components()
        Builder.load_string(SCREENS_KV)
        self.theme_cls.theme_style = "Dark"
        self.theme_cls.primary_palette = "Amber"
        self.base_dir = Path(self.user_data_dir or Path.home() / ".clipbooth")
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.settings_store = SettingsStore(self.base_dir / CONFIG.settings_file)
        self.logger = LogBuffer(CONFIG.log_history)
        self.api_client = ApiClient(self.settings_store)
        self.flow = SubmissionFlow(self.api_client, self.logger)
        self._load_settings()
        self.controller = self._make_controller()
        return ScreenManager()

    def on_start(self):
        Clock.schedule_interval(lambda dt: self._sync_log(), 1)

    def on_stop(self):
        self._unload_preview()
        self.controller.close()
        self.api_client.close()

    def _make_controller(self) -> CaptureController:
        device = SoundDeviceInput(device=self.input_device or None)
        return CaptureController(
            device,
            Clock,
            on_state_change=self._on_state_change,
            on_timer=self._on_timer,
            on_level=self._on_level,
        )

    def _load_settings(self) -> None:
        settings = self.settings_store.get()
        self.server_url = settings.server_url
        self.input_device = settings.input_device
        self.full_name = settings.full_name
        self.email = settings.email
        self.category = settings.default_category

    # capture

    def start_recording(self):
        try:
            self.controller.start()
        except DeviceUnavailable as exc:
            self.logger.add(str(exc))
            self._show_snackbar("Microphone permission is required to record.")
        except InvalidTransition as exc:
            self.logger.add(str(exc))

    def pause_recording(self):
        self._guarded(self.controller.pause)

    def resume_recording(self):
        self._guarded(self.controller.resume)

    def stop_recording(self):
        try:
            self.controller.stop()
        except InvalidTransition as exc:
            self.logger.add(str(exc))
            return
        except Exception as exc:
            self.logger.add(f"Could not finalize recording: {exc}")
            self._show_snackbar("Recording failed, please try again.")
            return
        self.trim_start = 0
        self.trim_end = 100
        self._prepare_preview()
        self.switch_screen("review")

    def re_record(self):
        self._unload_preview()
        self.controller.re_record()
        self.trim_start = 0
        self.trim_end = 100
        self.timer_text = "00:00"
        self.switch_screen("record")

    def _guarded(self, action) -> None:
        try:
            action()
        except InvalidTransition as exc:
            self.logger.add(str(exc))

    def _on_state_change(self, old: RecordingState, new: RecordingState) -> None:
        self.capture_state = new.value
        self.logger.add(f"{old.value.title()} -> {new.value.title()}")

    def _on_timer(self, text: str) -> None:
        self.timer_text = text

    def _on_level(self, level: int) -> None:
        self.input_level = level

    # trim + preview

    def set_trim_start(self, value: float):
        self.trim_start = min(float(value), float(self.trim_end))

    def set_trim_end(self, value: float):
        self.trim_end = max(float(value), float(self.trim_start))

    def _prepare_preview(self) -> None:
        self._unload_preview()
        try:
            decoded = decode_blob(self.controller.blob)
        except DecodeError as exc:
            self.logger.add(f"Preview unavailable: {exc}")
            return
        path = self.base_dir / "preview.wav"
        path.write_bytes(encode_wav(decoded))
        self._preview = SoundLoader.load(str(path))

    def _unload_preview(self) -> None:
        if self._preview is not None:
            self._preview.stop()
            self._preview.unload()
            self._preview = None

    def play_preview(self):
        if self._preview is None:
            self._show_snackbar("Nothing to preview")
            return
        self._preview.stop()
        self._preview.play()
        length = self._preview.length or 0
        if length > 0:
            self._preview.seek(length * self.trim_start / 100.0)
            remaining = length * (self.trim_end - self.trim_start) / 100.0
            Clock.schedule_once(lambda dt: self._preview and self._preview.stop(), max(0.0, remaining))

    # submission

    def _build_form(self) -> SubmissionForm | None:
        try:
            return SubmissionForm(
                full_name=self.full_name,
                email=self.email,
                title=self.clip_title,
                category=self.category,
                description=self.clip_description,
            )
        except ValidationError:
            self._show_snackbar("Name, title and category are required.")
            return None

    def confirm_submit(self):
        if self.is_submitting or self.controller.state is not RecordingState.STOPPED:
            return
        form = self._build_form()
        if form is None:
            return
        selection = TrimSelection.from_percent(self.trim_start, self.trim_end)
        session = self.controller.session
        self.is_submitting = True

        def worker():
            outcome = self.flow.attempt(session, selection, form)
            Clock.schedule_once(lambda dt: self._finish_submit(outcome), 0)

        threading.Thread(target=worker, daemon=True).start()

    def upload_file(self, path: str):
        path = path.strip()
        form = self._build_form()
        if not path or form is None:
            return

        def worker():
            outcome = self.flow.upload(path, form)
            Clock.schedule_once(lambda dt: self._finish_submit(outcome), 0)

        threading.Thread(target=worker, daemon=True).start()

    def _finish_submit(self, outcome: SubmissionOutcome) -> None:
        self.is_submitting = False
        self._show_snackbar(outcome.message)
        if not outcome.submitted:
            if outcome.offer_rerecord:
                self.logger.add("Recording could not be read; please re-record.")
            return
        self.settings_store.update(
            full_name=self.full_name,
            email=self.email,
            default_category=self.category,
        )
        self.clip_title = ""
        self.clip_description = ""
        if self.controller.state is RecordingState.STOPPED:
            self.re_record()
        self.open_library()

    # library + settings

    def open_library(self):
        self.switch_screen("library")
        self.refresh_library()

    def refresh_library(self):
        def worker():
            try:
                items = self.api_client.search_library()
                lines = [
                    f"{item.title or 'Untitled'} - {item.name or 'Anonymous'} ({item.category or 'Uncategorised'})"
                    for item in items
                ]
                text = "\n".join(lines) or "No approved recordings yet"
            except ApiError as exc:
                self.logger.add(str(exc))
                text = f"Error: {exc}"
            Clock.schedule_once(lambda dt: setattr(self, "library_text", text), 0)

        threading.Thread(target=worker, daemon=True).start()

    def save_settings(self, server_url: str, input_device: str):
        self.settings_store.update(server_url=server_url, input_device=input_device)
        device_changed = self.settings_store.get().input_device != self.input_device
        self.server_url = self.settings_store.get().server_url
        self.input_device = self.settings_store.get().input_device
        if device_changed and self.controller.state is RecordingState.IDLE:
            self.controller.close()
            self.controller = self._make_controller()
            self.capture_state = RecordingState.IDLE.value
        self.logger.add("Settings saved")
        self._show_snackbar("Settings saved")

    def test_connection(self):
        def worker():
            try:
                ok = self.api_client.test_connection()
                message = "Connection OK" if ok else "Connection failed"
            except ApiError as exc:
                message = f"Connection error: {exc}"
            self.logger.add(message)
            self._show_snackbar(message)

        threading.Thread(target=worker, daemon=True).start()

    def switch_screen(self, name: str):
        if self.root:
            self.root.current = name

    def _sync_log(self) -> None:
        self.log_lines = self.logger.get()

    def _show_snackbar(self, text: str) -> None:
        def _display(*_):
            Snackbar(
                text=text,
                duration=2.2,
                radius=[14],
                bg_color=self.theme.palette.surface_alt,
            ).open()

        Clock.schedule_once(_display, 0)


def main() -> None:
    ClipBoothApp().run()


if __name__ == "__main__":
    main()
