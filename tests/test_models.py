"""Tests for scene, overlay and manifest models."""

import pytest
from pydantic import ValidationError

from reelgen.errors import InvalidScene
from reelgen.models import (
    AppearanceSchedule,
    Aspect,
    OverlayKind,
    PromoCopy,
    PromoManifest,
    RecordingArtifact,
    Scene,
    build_overlays,
    frame_size_for,
)

from conftest import make_image


class TestScene:
    """Tests for Scene and frame sizing."""

    def test_story_frame_size(self):
        assert frame_size_for(Aspect.STORY) == (540, 960)

    def test_feed_frame_size(self):
        assert frame_size_for(Aspect.FEED) == (540, 675)

    def test_scene_accepts_aspect_string(self):
        scene = Scene(aspect="4:5")
        assert scene.aspect is Aspect.FEED
        assert scene.frame_size.height == 675

    def test_height_is_rounded(self):
        for aspect in Aspect:
            size = frame_size_for(aspect, 541)
            assert size.height == round(541 / aspect.ratio)

    def test_missing_image_is_invalid(self):
        with pytest.raises(InvalidScene):
            Scene(duration_seconds=30).validate_renderable()

    @pytest.mark.parametrize("duration", [0, 4, 61, 120])
    def test_duration_out_of_range_is_invalid(self, duration):
        scene = Scene(source_image=make_image(), duration_seconds=duration)
        with pytest.raises(InvalidScene):
            scene.validate_renderable()

    @pytest.mark.parametrize("duration", [5, 30, 60])
    def test_valid_durations(self, duration):
        Scene(source_image=make_image(), duration_seconds=duration).validate_renderable()

    def test_snapshot_is_independent(self):
        scene = Scene(source_image=make_image(), aspect=Aspect.STORY)
        snap = scene.snapshot()
        scene.aspect = Aspect.FEED
        assert snap.aspect is Aspect.STORY
        assert snap.source_image is scene.source_image


class TestAppearanceSchedules:
    """Tests for overlay opacity over time."""

    def setup_method(self):
        self.elements = build_overlays()
        self.by_kind = {}
        for element in self.elements:
            self.by_kind.setdefault(element.kind, []).append(element)

    def test_draw_order(self):
        kinds = [e.kind for e in self.elements]
        assert kinds[0] is OverlayKind.BADGE
        assert kinds[1] is OverlayKind.HEADLINE
        assert kinds[-1] is OverlayKind.CTA
        assert kinds[2:-1] == [OverlayKind.BULLET] * 3

    def test_badge_always_opaque(self):
        badge = self.by_kind[OverlayKind.BADGE][0]
        for elapsed in (0.0, 0.01, 1.0, 30.0, 59.9):
            assert badge.opacity(elapsed, elapsed / 60) == 1.0

    def test_headline_eases_in(self):
        headline = self.by_kind[OverlayKind.HEADLINE][0]
        assert headline.opacity(0.0, 0.0) == 0.0
        assert headline.opacity(2.0, 2.0 / 60) == 1.0
        assert headline.opacity(10.0, 10.0 / 60) == 1.0
        values = [headline.opacity(x / 10, x / 600) for x in range(21)]
        assert all(a <= b for a, b in zip(values, values[1:]))
        # ease-out is ahead of linear
        assert headline.opacity(1.0, 1.0 / 60) == pytest.approx(1 - 0.5 ** 3)

    def test_headline_settles_after_five_percent(self):
        headline = self.by_kind[OverlayKind.HEADLINE][0]
        # 5 second clip: 5% progress is reached at 0.25s
        assert headline.opacity(0.25, 0.05) == 1.0
        assert headline.opacity(0.2, 0.04) < 1.0

    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_bullet_windows(self, index):
        bullet = self.by_kind[OverlayKind.BULLET][index]
        start = 4 + 3 * index
        assert bullet.index == index
        assert bullet.opacity(start - 0.01) == 0.0
        assert bullet.opacity(start) == 0.0
        assert bullet.opacity(start + 0.75) == pytest.approx(0.5)
        assert bullet.opacity(start + 1.5) == 1.0
        assert bullet.opacity(start + 30) == 1.0

    def test_cta_window(self):
        cta = self.by_kind[OverlayKind.CTA][0]
        assert cta.opacity(11.9) == 0.0
        assert cta.opacity(12.75) == pytest.approx(0.5)
        assert cta.opacity(13.5) == 1.0

    def test_instant_schedule(self):
        schedule = AppearanceSchedule(delay_seconds=3.0)
        assert schedule.opacity(2.9) == 0.0
        assert schedule.opacity(3.0) == 1.0

    def test_custom_copy(self):
        elements = build_overlays(PromoCopy(badge="B", headline="H", bullets=["one"], cta="C"))
        assert [e.text for e in elements] == ["B", "H", "one", "C"]


class TestRecordingArtifact:
    """Tests for RecordingArtifact."""

    def test_release_drops_bytes(self):
        artifact = RecordingArtifact(b"data", "video/webm", "deen-ply-instagram-9:16.webm")
        artifact.release()
        assert artifact.released
        assert artifact.size == 0

    def test_save_into_directory_uses_portable_name(self, tmp_path):
        artifact = RecordingArtifact(b"data", "video/webm", "deen-ply-instagram-9:16.webm")
        path = artifact.save(tmp_path)
        assert path.name == "deen-ply-instagram-9x16.webm"
        assert path.read_bytes() == b"data"

    def test_save_after_release_fails(self, tmp_path):
        artifact = RecordingArtifact(b"data", "video/webm", "clip.webm")
        artifact.release()
        with pytest.raises(ValueError):
            artifact.save(tmp_path / "clip.webm")


class TestPromoManifest:
    """Tests for manifest YAML files."""

    def test_yaml_round_trip(self, tmp_path):
        manifest = PromoManifest(
            project_name="doors",
            image="family.jpg",
            aspect=Aspect.FEED,
            duration_seconds=30,
            promo_copy=PromoCopy(cta="Call now"),
        )
        path = tmp_path / "reel.yaml"
        manifest.to_yaml(path)

        text = path.read_text()
        assert "4:5" in text

        loaded = PromoManifest.from_yaml(path)
        assert loaded == manifest

    def test_image_path_relative_to_manifest(self, tmp_path):
        manifest = PromoManifest(project_name="x", image="photos/a.png")
        assert manifest.image_path(tmp_path) == tmp_path / "photos" / "a.png"

    def test_image_path_missing(self, tmp_path):
        assert PromoManifest(project_name="x").image_path(tmp_path) is None

    def test_defaults(self, tmp_path):
        path = tmp_path / "minimal.yaml"
        path.write_text("project_name: minimal\n")
        loaded = PromoManifest.from_yaml(path)
        assert loaded.aspect is Aspect.STORY
        assert loaded.duration_seconds == 60
        assert loaded.promo_copy.badge == "Deen Ply Doors"
        assert len(loaded.promo_copy.bullets) == 3

    def test_unquoted_aspect_in_yaml(self, tmp_path):
        path = tmp_path / "hand-written.yaml"
        path.write_text("project_name: doors\naspect: 9:16\n")
        assert PromoManifest.from_yaml(path).aspect is Aspect.STORY

    @pytest.mark.parametrize("duration", [0, 4, 61])
    def test_duration_out_of_range_rejected(self, tmp_path, duration):
        path = tmp_path / "reel.yaml"
        path.write_text(f"project_name: reel\nduration_seconds: {duration}\n")
        with pytest.raises(ValidationError):
            PromoManifest.from_yaml(path)
