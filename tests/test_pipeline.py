from unittest.mock import patch

from creeper.composite.pipeline import SnapshotPipeline
from creeper.exceptions import SourceUnavailable
from creeper.models.snapshot import SlotStatus
from tests.conftest import FakeTransport


class TestSnapshotPipeline:
    def test_all_sources_live(self, make_pipeline, all_live_transport, settings):
        result = make_pipeline(all_live_transport).run()

        assert result.published
        assert result.published_path == str(settings.output.published_path)
        assert result.live_slots == 4
        assert result.error is None
        assert result.duration_ms > 0
        assert settings.output.published_path.exists()

    def test_consecutive_runs_are_pixel_identical(self, make_pipeline, all_live_transport, settings):
        pipeline = make_pipeline(all_live_transport)

        pipeline.run()
        first = settings.output.published_path.read_bytes()
        pipeline.run()
        second = settings.output.published_path.read_bytes()

        assert first == second

    def test_no_cameras_still_publishes_four_placeholders(self, make_pipeline, settings):
        empty = settings.model_copy(update={"cameras": ()})
        result = make_pipeline(FakeTransport(), empty).run()

        assert result.published
        assert [slot.status for slot in result.slots] == [SlotStatus.PLACEHOLDER] * 4
        assert {slot.error_kind for slot in result.slots} == {"configuration_gap"}

    def test_write_failure_aborts_run_but_keeps_previous(self, make_pipeline, all_live_transport, settings):
        pipeline = make_pipeline(all_live_transport)
        pipeline.run()
        previous = settings.output.published_path.read_bytes()

        with patch(
            "creeper.publish.snapshot_writer.os.replace",
            side_effect=PermissionError(13, "Permission denied"),
        ):
            result = pipeline.run()

        assert not result.published
        assert "Permission denied" in result.error
        assert result.live_slots == 4
        assert settings.output.published_path.read_bytes() == previous

    def test_slot_failures_recorded(self, make_pipeline, settings):
        transport = FakeTransport({"cam": [SourceUnavailable("Connection timeout")]})

        result = make_pipeline(transport).run()

        assert result.published
        assert result.live_slots == 0
        assert all(slot.attempts == 3 for slot in result.slots)
        assert "0/4 live" in result.summary()

    def test_builds_its_own_collaborators(self, settings):
        pipeline = SnapshotPipeline(settings)
        assert pipeline.writer.published_path == settings.output.published_path
        assert [s.location for s in pipeline.sources] == ["Harbour", "Bridge", "Square", "Station"]
