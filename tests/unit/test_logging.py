"""Unit tests for logging setup and pipeline statistics."""

import json
import logging

import pytest

from tracecam.utils import PipelineLogger, PipelineStats, configure_logging


@pytest.fixture
def root_handlers():
    """Restore the root logger's handlers after the test."""
    root = logging.getLogger()
    before = list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_reconfigure_replaces_handlers(self, root_handlers):
        """Test a second call does not stack another console handler."""
        configure_logging(console_level="WARNING")
        count = len(root_handlers.handlers)

        configure_logging(console_level="INFO", quiet=True)

        assert len(root_handlers.handlers) == count

    def test_file_output_is_json(self, root_handlers, tmp_path):
        log_file = tmp_path / "run.log"

        logger = configure_logging(log_file=log_file, console_level="ERROR")
        logger.info("Board loaded", primitives=3)
        for handler in root_handlers.handlers:
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        payload = json.loads(lines[-1].split(" | ", 3)[-1])
        assert payload["event"] == "Board loaded"
        assert payload["primitives"] == 3


class TestPipelineLogger:
    """Tests for PipelineLogger statistics."""

    def test_counters(self):
        pipeline_logger = PipelineLogger()

        pipeline_logger.log_primitive_dropped(2, "circle", "radius must be positive")
        pipeline_logger.log_fusion_complete(5, 2, 1, 12.3456)
        pipeline_logger.log_offset_pass("isolation", 0, 0.1, 2)
        pipeline_logger.log_offset_pass("isolation", 1, 0.2, 2)

        stats = pipeline_logger.stats
        assert stats.primitives_dropped == 1
        assert stats.primitives_in == 5
        assert stats.fused_paths == 2
        assert stats.holes_detected == 1
        assert stats.offset_passes == 2

    def test_reconstruction_stats(self):
        pipeline_logger = PipelineLogger()
        pipeline_logger.log_reconstruction(
            {
                "curves_registered": 4,
                "reconstructed": 3,
                "full_circles": 2,
                "partial_arcs": 1,
                "average_coverage": 0.9,
            }
        )
        stats = pipeline_logger.stats
        assert (stats.curves_registered, stats.curves_reconstructed) == (4, 3)
        assert (stats.full_circles, stats.partial_arcs) == (2, 1)
        assert stats.average_coverage == pytest.approx(0.9)

    def test_fusion_error_recorded(self):
        """Test a fusion error marks the run as fallen back."""
        pipeline_logger = PipelineLogger()
        pipeline_logger.log_fusion_error(ValueError("bad ring"))

        assert pipeline_logger.stats.fell_back
        assert pipeline_logger.stats.errors == [("fusion", "bad ring")]

        pipeline_logger.reset()
        assert pipeline_logger.stats.errors == []

    def test_duration(self):
        assert PipelineStats().duration_seconds == 0.0
        assert PipelineStats(start_time=10.0, end_time=12.5).duration_seconds == 2.5
