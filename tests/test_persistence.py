"""Tests for annotation persistence."""

import json

import pytest
from PyQt6.QtCore import QPointF
from PyQt6.QtGui import QColor

from chartpro.core.errors import AnnotationFormatError, AnnotationNotFoundError
from chartpro.core.models import ChartDrawMode, DrawnShape
from chartpro.core.persistence import (
    ChartAnnotations, ShapeAnnotation, deserialize_annotations, parse_annotations,
    read_annotations_file, serialize_shapes, write_annotations_file
)
from chartpro.core.strategies import DrawModeStrategyFactory


def make_shape(mode, x1, y1, x2, y2):
    strategy = DrawModeStrategyFactory.create_strategy(mode)
    return DrawnShape(strategy.create_final(QPointF(x1, y1), QPointF(x2, y2)), mode)


class TestShapeAnnotation:
    """Tests for the persisted shape record."""

    def test_to_dict_keys(self):
        record = ShapeAnnotation("TrendLine", 10.0, 100.0, 50.0, 110.0)

        assert record.to_dict() == {
            "ShapeType": "TrendLine",
            "X1": 10.0,
            "Y1": 100.0,
            "X2": 50.0,
            "Y2": 110.0,
            "LineColor": "#0000FF",
            "LineWidth": 2,
            "FillColor": None,
            "FillAlpha": None,
        }

    def test_from_dict_defaults(self):
        """Test that missing coordinates and style take defaults."""
        record = ShapeAnnotation.from_dict({"ShapeType": "Circle", "X2": 5})

        assert record.x1 == 0.0
        assert record.x2 == 5.0
        assert record.line_color == "#0000FF"
        assert record.line_width == 2

    def test_from_dict_bad_coordinate(self):
        with pytest.raises(AnnotationFormatError):
            ShapeAnnotation.from_dict({"ShapeType": "TrendLine", "X1": "ten"})

    def test_from_dict_missing_type(self):
        with pytest.raises(AnnotationFormatError):
            ShapeAnnotation.from_dict({"X1": 1})


class TestParseAnnotations:
    """Tests for validating decoded JSON."""

    def test_null_document(self):
        assert parse_annotations(None) is None

    def test_valid(self):
        document = parse_annotations({
            "Version": 1,
            "Shapes": [{"ShapeType": "TrendLine", "X1": 20, "Y1": 100, "X2": 60, "Y2": 110}],
        })

        assert document.version == 1
        assert document.shapes[0].shape_type == "TrendLine"
        assert document.shapes[0].x2 == 60.0

    @pytest.mark.parametrize("data", [
        [],
        "text",
        {"Shapes": []},
        {"Version": 2, "Shapes": []},
        {"Version": True, "Shapes": []},
        {"Version": 1},
        {"Version": 1, "Shapes": {}},
        {"Version": 1, "Shapes": [42]},
        {"Version": 1, "Shapes": [{"ShapeType": "TrendLine", "X1": float("nan")}]},
        {"Version": 1, "Shapes": [{"ShapeType": "TrendLine", "X1": 10 ** 400}]},
        {"Version": 1, "Shapes": [{"ShapeType": "TrendLine", "LineWidth": float("nan")}]},
        {"Version": 1, "Shapes": [{"ShapeType": "TrendLine", "LineWidth": float("inf")}]},
        {"Version": 1, "Shapes": [{"ShapeType": "Rectangle", "FillAlpha": float("-inf")}]},
    ])
    def test_invalid(self, data):
        with pytest.raises(AnnotationFormatError):
            parse_annotations(data)

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_annotations({"Version": 7, "Shapes": []})


class TestSerialize:
    """Tests for mapping shapes to a document."""

    def test_empty(self):
        """Test saving with zero shapes."""
        document = serialize_shapes([])

        assert document.to_dict() == {"Version": 1, "Shapes": []}

    def test_order_and_coordinates(self):
        shapes = [
            make_shape(ChartDrawMode.TREND_LINE, 10, 100, 50, 110),
            make_shape(ChartDrawMode.HORIZONTAL_LINE, 10, 100, 50, 120),
        ]

        records = serialize_shapes(shapes).shapes

        assert [r.shape_type for r in records] == ["TrendLine", "HorizontalLine"]
        assert (records[0].x1, records[0].y1, records[0].x2, records[0].y2) == (10, 100, 50, 110)
        assert (records[1].y1, records[1].y2) == (120, 120)

    def test_style(self):
        """Test colours are upper-case hex and fill is only set for rectangles."""
        line, rect = serialize_shapes([
            make_shape(ChartDrawMode.VERTICAL_LINE, 1, 2, 3, 4),
            make_shape(ChartDrawMode.RECTANGLE, 1, 2, 3, 4),
        ]).shapes

        assert line.line_color == "#FFA500"
        assert line.line_width == 2
        assert line.fill_color is None
        assert rect.fill_color == "#800080"
        assert rect.fill_alpha == 25


class TestDeserialize:
    """Tests for rebuilding shapes from a document."""

    def test_none(self):
        assert deserialize_annotations(None) == []

    def test_unknown_type_skipped(self):
        """Test that unknown records are skipped, not rejected."""
        document = parse_annotations({
            "Version": 1,
            "Shapes": [
                {"ShapeType": "InvalidType", "X1": 0, "Y1": 0, "X2": 1, "Y2": 1},
                {"ShapeType": "TrendLine", "X1": 20, "Y1": 100, "X2": 60, "Y2": 110},
            ],
        })

        shapes = deserialize_annotations(document)

        assert len(shapes) == 1
        assert shapes[0].draw_mode == ChartDrawMode.TREND_LINE
        assert shapes[0].plottable.defining_coordinates() == (20, 100, 60, 110)

    def test_undrawable_type_skipped(self):
        document = ChartAnnotations(shapes=[ShapeAnnotation("FibonacciExtension")])

        assert deserialize_annotations(document) == []

    def test_restyle(self):
        """Test that stored colours and widths are applied."""
        document = ChartAnnotations(shapes=[
            ShapeAnnotation("TrendLine", 0, 0, 1, 1, line_color="#FF0000", line_width=4),
            ShapeAnnotation("Rectangle", 0, 0, 1, 1, fill_color="#00FF00", fill_alpha=60),
        ])

        line, rect = deserialize_annotations(document)

        assert line.plottable.line_color == QColor("#FF0000")
        assert line.plottable.line_width == 4
        assert rect.plottable.fill_color == QColor("#00FF00")
        assert rect.plottable.fill_alpha == 60

    def test_no_surface_touched(self, plot):
        document = ChartAnnotations(shapes=[ShapeAnnotation("Circle", 0, 0, 2, 2)])

        deserialize_annotations(document)

        assert plot.plottables == ()

    def test_round_trip(self):
        """Test that type and coordinates survive serialize then deserialize."""
        shapes = [
            make_shape(ChartDrawMode.TREND_LINE, 10, 100, 50, 110),
            make_shape(ChartDrawMode.HORIZONTAL_LINE, 10, 100, 50, 120),
            make_shape(ChartDrawMode.VERTICAL_LINE, 30, 90, 30, 130),
            make_shape(ChartDrawMode.RECTANGLE, 10, 100, 50, 110),
            make_shape(ChartDrawMode.CIRCLE, 10, 100, 50, 110),
            make_shape(ChartDrawMode.FIBONACCI_RETRACEMENT, 50, 110, 10, 100),
        ]

        restored = deserialize_annotations(serialize_shapes(shapes))

        assert [s.draw_mode for s in restored] == [s.draw_mode for s in shapes]
        for original, copy in zip(shapes, restored):
            assert copy.plottable.defining_coordinates() == pytest.approx(
                original.plottable.defining_coordinates()
            )
            assert copy is not original


class TestAnnotationFiles:
    """Tests for reading and writing files."""

    def test_write_then_read(self, temp_dir):
        path = temp_dir / "annotations.json"
        document = serialize_shapes([make_shape(ChartDrawMode.TREND_LINE, 10, 100, 50, 110)])

        write_annotations_file(path, document)
        loaded = read_annotations_file(path)

        assert loaded == document
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["Version"] == 1
        assert data["Shapes"][0]["LineColor"] == "#0000FF"

    def test_missing_file(self, temp_dir):
        path = temp_dir / "missing.json"

        with pytest.raises(AnnotationNotFoundError, match="Annotations file not found"):
            read_annotations_file(path)

    def test_not_found_is_file_not_found_error(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            read_annotations_file(temp_dir / "missing.json")

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text("{ invalid json }", encoding="utf-8")

        with pytest.raises(AnnotationFormatError):
            read_annotations_file(path)

    @pytest.mark.parametrize("shape_json", [
        '{"ShapeType": "TrendLine", "LineWidth": 1e400}',
        '{"ShapeType": "Rectangle", "FillAlpha": Infinity}',
        '{"ShapeType": "TrendLine", "LineWidth": NaN}',
        '{"ShapeType": "TrendLine", "X1": ' + "9" * 400 + '}',
    ])
    def test_out_of_range_numbers(self, temp_dir, shape_json):
        """Test that numbers Python cannot represent are reported as format errors."""
        path = temp_dir / "numbers.json"
        path.write_text('{"Version": 1, "Shapes": [' + shape_json + "]}", encoding="utf-8")

        with pytest.raises(AnnotationFormatError):
            read_annotations_file(path)

    def test_null_file(self, temp_dir):
        path = temp_dir / "null.json"
        path.write_text("null", encoding="utf-8")

        assert read_annotations_file(path) is None
