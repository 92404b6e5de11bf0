"""Unit tests for the JSON I/O layer.

Tests for PrimitiveReader, ResultWriter, and converter functions.
"""

import json
import math
from pathlib import Path

import pytest

from tracecam.core.pipeline import PipelineResult
from tracecam.domain import Arc, Circle, Obround, Point, Polarity, Rectangle
from tracecam.domain import Path as PathPrimitive
from tracecam.exceptions import InputLoadError, OutputWriteError, PrimitiveFormatError
from tracecam.io import PrimitiveReader, ResultWriter, build_document, primitive_from_dict


@pytest.fixture
def board_file(tmp_path: Path) -> Path:
    """Write a small primitive file."""
    document = {
        "primitives": [
            {"type": "circle", "center": {"x": 0, "y": 0}, "radius": 0.8},
            {"type": "rectangle", "origin": {"x": 1, "y": 1}, "width": 2, "height": 1, "polarity": "clear"},
        ],
        "drills": [{"type": "circle", "center": {"x": 5, "y": 5}, "radius": 0.4}],
    }
    path = tmp_path / "board.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestConverter:
    """Tests for primitive_from_dict."""

    def test_circle(self):
        circle = primitive_from_dict(
            {"type": "circle", "center": {"x": 1, "y": 2}, "radius": 3, "properties": {"source": "pad"}}
        )
        assert isinstance(circle, Circle)
        assert circle.center.to_tuple() == (1.0, 2.0)
        assert circle.radius == 3.0
        assert circle.properties.source == "pad"

    def test_arc(self):
        arc = primitive_from_dict(
            {
                "type": "arc",
                "center": {"x": 0, "y": 0},
                "radius": 1,
                "startAngle": 0,
                "endAngle": math.pi,
                "clockwise": True,
                "strokeWidth": 0.25,
            }
        )
        assert isinstance(arc, Arc)
        assert arc.clockwise
        assert arc.properties.stroke_width == 0.25
        assert arc.properties.is_stroke

    def test_rectangle_and_obround(self):
        rect = primitive_from_dict({"type": "rectangle", "origin": {"x": 0, "y": 0}, "width": 2, "height": 1})
        obround = primitive_from_dict({"type": "obround", "origin": {"x": 0, "y": 0}, "width": 2, "height": 1})
        assert isinstance(rect, Rectangle)
        assert isinstance(obround, Obround)

    def test_path_with_points_and_holes(self):
        """Test the points/holes shorthand for paths."""
        path = primitive_from_dict(
            {
                "type": "path",
                "points": [{"x": 0, "y": 0}, {"x": 10, "y": 0}, {"x": 10, "y": 10}],
                "holes": [[{"x": 1, "y": 1}, {"x": 2, "y": 1}, {"x": 2, "y": 2}]],
                "closed": True,
            }
        )
        assert isinstance(path, PathPrimitive)
        assert len(path.points) == 3
        assert len(path.holes) == 1

    def test_path_with_contours(self):
        path = primitive_from_dict(
            {
                "type": "path",
                "closed": False,
                "contours": [{"points": [{"x": 0, "y": 0}, {"x": 1, "y": 0}]}],
            }
        )
        assert not path.closed
        assert len(path.contours) == 1

    def test_top_level_polarity(self):
        """Test top-level polarity is accepted as a shorthand."""
        circle = primitive_from_dict(
            {"type": "circle", "center": {"x": 0, "y": 0}, "radius": 1, "polarity": "clear"}
        )
        assert circle.properties.polarity == Polarity.CLEAR

    def test_properties_take_precedence(self):
        circle = primitive_from_dict(
            {
                "type": "circle",
                "center": {"x": 0, "y": 0},
                "radius": 1,
                "polarity": "clear",
                "properties": {"polarity": "dark"},
            }
        )
        assert circle.properties.polarity == Polarity.DARK

    @pytest.mark.parametrize(
        "record,message",
        [
            ({"type": "hexagon"}, "unknown primitive type"),
            ({"type": "circle", "center": {"x": 0, "y": 0}}, "missing 'radius'"),
            ({"type": "circle", "center": {"x": 0}, "radius": 1}, "'center'"),
            ({"type": "circle", "center": {"x": 0, "y": 0}, "radius": "big"}, "invalid 'radius'"),
            ({"type": "path", "points": []}, "path needs"),
            ([1, 2, 3], "must be an object"),
        ],
    )
    def test_malformed_records(self, record, message):
        with pytest.raises(PrimitiveFormatError, match=message):
            primitive_from_dict(record, 4)

    def test_non_finite_rejected(self):
        """Test NaN and infinity are rejected anywhere in a record."""
        with pytest.raises(PrimitiveFormatError, match="non-finite"):
            primitive_from_dict({"type": "circle", "center": {"x": float("nan"), "y": 0}, "radius": 1})
        with pytest.raises(PrimitiveFormatError, match="non-finite"):
            primitive_from_dict({"type": "circle", "center": {"x": 0, "y": 0}, "radius": float("inf")})

    def test_error_carries_index(self):
        with pytest.raises(PrimitiveFormatError) as exc_info:
            primitive_from_dict({"type": "nope"}, 7)
        assert exc_info.value.index == 7
        assert "#7" in str(exc_info.value)


class TestPrimitiveReader:
    """Tests for PrimitiveReader class."""

    def test_load(self, board_file):
        """Test loading primitives and drills."""
        reader = PrimitiveReader(board_file)
        reader.load()

        assert reader.primitive_count == 2
        primitives = reader.read_primitives()
        assert isinstance(primitives[0], Circle)
        assert primitives[1].properties.polarity == Polarity.CLEAR
        drills = reader.read_drills()
        assert len(drills) == 1
        assert drills[0].center.to_tuple() == (5.0, 5.0)

    def test_bare_list(self, tmp_path):
        path = tmp_path / "bare.json"
        path.write_text(json.dumps([{"type": "circle", "center": {"x": 0, "y": 0}, "radius": 1}]))
        reader = PrimitiveReader(path)
        reader.load()
        assert reader.primitive_count == 1
        assert reader.read_drills() is None

    def test_load_nonexistent_file(self):
        """Test loading a nonexistent file raises InputLoadError."""
        reader = PrimitiveReader(Path("nonexistent.json"))
        with pytest.raises(InputLoadError, match="file not found"):
            reader.load()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(InputLoadError):
            PrimitiveReader(path).load()

    def test_nan_literal_rejected(self, tmp_path):
        """Test NaN literals are rejected at decode time."""
        path = tmp_path / "nan.json"
        path.write_text('{"primitives": [{"type": "circle", "center": {"x": NaN, "y": 0}, "radius": 1}]}')
        with pytest.raises(InputLoadError, match="non-finite"):
            PrimitiveReader(path).load()

    def test_missing_primitives_list(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"shapes": []}))
        with pytest.raises(InputLoadError, match="primitives"):
            PrimitiveReader(path).load()

    def test_read_before_load(self):
        """Test reading before loading raises RuntimeError."""
        reader = PrimitiveReader(Path("board.json"))
        with pytest.raises(RuntimeError, match="not loaded"):
            reader.read_primitives()
        with pytest.raises(RuntimeError, match="not loaded"):
            reader.read_drills()

    def test_malformed_record_raised(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"primitives": [{"type": "circle", "radius": 1}]}))
        reader = PrimitiveReader(path)
        reader.load()
        with pytest.raises(PrimitiveFormatError):
            reader.read_primitives()

    def test_context_manager(self, board_file):
        with PrimitiveReader(board_file) as reader:
            assert len(list(reader.iter_primitives())) == 2
        with pytest.raises(RuntimeError):
            reader.read_primitives()


class TestResultWriter:
    """Tests for ResultWriter class."""

    def test_get_output_path(self):
        """Test default output path generation."""
        assert ResultWriter.get_output_path(Path("/tmp/board.json")) == Path("/tmp/board-toolpaths.json")

    def test_build_document(self):
        result = PipelineResult(fused=[Circle(Point(0, 0), 1.0)])
        result.stats.errors.append(("fusion", "boom"))
        document = build_document(result, curves=[{"id": 1}])

        assert document["generator"].startswith("tracecam ")
        assert document["status"] == "ok"
        assert document["fused"][0]["type"] == "circle"
        assert document["stats"]["errors"] == [["fusion", "boom"]]
        assert document["curves"] == [{"id": 1}]

    def test_write(self, tmp_path):
        """Test writing a result produces valid JSON."""
        output = tmp_path / "out.json"
        ResultWriter(output).write(PipelineResult(fused=[Circle(Point(0, 0), 1.0)]))

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["fused"][0]["radius"] == 1.0
        assert "curves" not in data

    def test_write_rejects_nan(self, tmp_path):
        """Test non-finite output numbers are refused."""
        output = tmp_path / "out.json"
        result = PipelineResult(fused=[Circle(Point(0, 0), float("nan"))])
        with pytest.raises(OutputWriteError):
            ResultWriter(output).write(result)

    def test_write_to_missing_directory(self, tmp_path):
        output = tmp_path / "missing" / "out.json"
        with pytest.raises(OutputWriteError) as exc_info:
            ResultWriter(output).write(PipelineResult())
        assert exc_info.value.path == str(output)
