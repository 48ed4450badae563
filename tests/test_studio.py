"""Tests for the Studio control surface."""

import pytest

from reelgen.editor import SessionState, Studio, load_image
from reelgen.editor.session import TERMINAL_STATES
from reelgen.errors import InvalidScene, SessionCancelled
from reelgen.models import Aspect

from conftest import FakeEncoder, make_image


@pytest.fixture
def studio(scheduler, recording_compositor):
    return Studio(scheduler, encoder_factory=FakeEncoder, compositor=recording_compositor)


def record(studio, scheduler, stop_after=None):
    session = studio.start_recording()
    if stop_after is not None:
        scheduler.call_later(stop_after, studio.stop_recording)
    scheduler.run_until(lambda: session.state in TERMINAL_STATES)
    return session


class TestPreviewControls:
    """Tests for scene loading and preview controls."""

    def test_scene_ready_starts_preview(self, studio, scheduler, source_image):
        studio.on_scene_ready(source_image)
        assert studio.preview.running
        assert studio.surface.owner is studio.preview
        scheduler.advance(0.5)
        assert studio.preview.frames_rendered == 15

    def test_start_preview_without_image(self, studio):
        assert studio.start_preview() is False
        assert not studio.preview.running

    @pytest.mark.parametrize("duration", [0, -3, 61])
    def test_preview_refused_for_unrenderable_duration(self, studio, scheduler, source_image, duration):
        studio.configure(duration_seconds=duration)
        studio.on_scene_ready(source_image)
        assert not studio.preview.running
        assert studio.start_preview() is False
        assert scheduler.pending == 0

    def test_stop_preview(self, studio, scheduler, source_image):
        studio.on_scene_ready(source_image)
        studio.stop_preview()
        assert not studio.preview.running
        assert scheduler.pending == 0

    def test_feed_aspect_resizes_surface(self, studio, source_image):
        studio.configure(aspect="4:5")
        studio.on_scene_ready(source_image)
        assert studio.scene.aspect is Aspect.FEED
        assert studio.surface.size == (540, 675)

    def test_new_image_closes_previous(self, studio):
        first = make_image()
        studio.on_scene_ready(first)
        studio.on_scene_ready(make_image(color=(0, 0, 255)))
        with pytest.raises(ValueError):
            first.load()

    def test_new_image_restarts_preview_timeline(self, studio, scheduler, recording_compositor):
        studio.on_scene_ready(make_image())
        scheduler.advance(3.0)
        studio.on_scene_ready(make_image())
        recording_compositor.calls.clear()
        scheduler.advance(0.1)
        assert recording_compositor.calls[0][0] == 0.0


class TestRecordingControls:
    """Tests for starting and stopping recordings."""

    def test_recording_replaces_preview(self, studio, scheduler, source_image):
        studio.on_scene_ready(source_image)
        session = studio.start_recording()
        assert session.state is SessionState.RECORDING
        assert not studio.preview.running
        assert studio.surface.owner is session
        assert studio.start_preview() is False

    def test_full_recording_produces_artifact(self, studio, scheduler, source_image):
        studio.configure(duration_seconds=5)
        studio.on_scene_ready(source_image)
        session = record(studio, scheduler)
        assert session.state is SessionState.READY
        assert studio.artifact is session.artifact
        assert studio.artifact.suggested_file_name == "deen-ply-instagram-9:16.webm"
        assert not studio.recording

    def test_stop_recording_truncates(self, studio, scheduler, source_image):
        studio.on_scene_ready(source_image)
        record(studio, scheduler, stop_after=2.0)
        assert studio.artifact.duration_seconds == pytest.approx(2.0, abs=0.1)

    def test_stop_recording_when_idle_is_noop(self, studio):
        studio.stop_recording()
        assert studio.session is None

    def test_invalid_duration_keeps_previous_artifact(self, studio, scheduler, source_image):
        studio.configure(duration_seconds=5)
        studio.on_scene_ready(source_image)
        record(studio, scheduler)
        artifact = studio.artifact

        studio.configure(duration_seconds=4)
        with pytest.raises(InvalidScene):
            studio.start_recording()
        assert studio.artifact is artifact
        assert not artifact.released

    def test_recording_without_image(self, studio):
        with pytest.raises(InvalidScene):
            studio.start_recording()
        assert studio.session is None

    def test_newer_recording_releases_older_artifact(self, studio, scheduler, source_image):
        studio.configure(duration_seconds=5)
        studio.on_scene_ready(source_image)
        record(studio, scheduler)
        first = studio.artifact

        record(studio, scheduler, stop_after=1.0)
        assert first.released
        assert studio.artifact is not first
        assert studio.artifact.duration_seconds == pytest.approx(1.0, abs=0.1)

    def test_restart_while_recording_supersedes(self, studio, scheduler, source_image):
        studio.on_scene_ready(source_image)
        first = studio.start_recording()
        scheduler.advance(1.0)
        second = studio.start_recording()

        assert first.state is SessionState.ERRORED
        assert isinstance(first.error, SessionCancelled)
        assert second.state is SessionState.RECORDING
        assert studio.session is second

    def test_image_change_during_recording(self, studio, scheduler, source_image):
        studio.on_scene_ready(source_image)
        session = studio.start_recording()
        studio.on_scene_ready(make_image(color=(0, 255, 0)))

        assert session.state is SessionState.RECORDING
        assert not studio.preview.running
        assert session.scene.source_image is source_image
        source_image.load()

    def test_image_replaced_during_recording_closed_when_done(self, studio, scheduler, source_image):
        studio.configure(duration_seconds=5)
        studio.on_scene_ready(source_image)
        session = studio.start_recording()
        replacement = make_image(color=(0, 255, 0))
        studio.on_scene_ready(replacement)

        scheduler.run_until(lambda: session.state in TERMINAL_STATES)
        assert session.state is SessionState.READY
        with pytest.raises(ValueError):
            source_image.load()
        replacement.load()

    def test_image_replaced_during_failed_recording_closed(self, scheduler, recording_compositor, source_image):
        studio = Studio(
            scheduler,
            encoder_factory=lambda: FakeEncoder(fail_at_frame=3),
            compositor=recording_compositor,
        )
        studio.on_scene_ready(source_image)
        session = studio.start_recording()
        studio.on_scene_ready(make_image(color=(0, 255, 0)))

        scheduler.run_until(lambda: session.state in TERMINAL_STATES)
        assert session.state is SessionState.ERRORED
        with pytest.raises(ValueError):
            source_image.load()


class TestLoadImage:
    """Tests for load_image."""

    def test_loads_rgb(self, image_file):
        image = load_image(image_file)
        assert image.mode == "RGB"
        assert image.size == (640, 480)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "missing.png")
