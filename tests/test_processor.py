"""Test the LineProcessor request/response boundary.

Run:
    pytest tests/test_processor.py -v
"""

import logging

import pytest
from PIL import Image

from line_rendering import LineProcessor, RenderResult
from line_rendering import processor as processor_module
from line_rendering.paths import extract_polylines
from line_rendering.rendering import DiagonalHatchRenderer, FlowFieldRenderer
from models import (
    ExportFormat,
    InvalidConfigurationError,
    RendererKind,
    RenderSettings,
)

SETTINGS = RenderSettings(line_spacing=4, darkness_threshold=0.5)


class TestProcess:
    def test_black_square_statistics(self, solid_buffer):
        result = LineProcessor(SETTINGS).process(solid_buffer(10, 10), 10, 10)

        assert isinstance(result, RenderResult)
        assert result.renderer_name == "Orthogonal Hatch"
        assert len(result.lines) == 6
        assert result.total_length == pytest.approx(54.0)
        # No stroke ends where another begins
        assert result.pen_lifts == 6
        assert result.point_count == 12
        assert (result.width, result.height) == (10, 10)

    def test_polylines_are_chained_on_demand(self, solid_buffer, monkeypatch):
        calls = []

        def counting_extract(lines):
            calls.append(len(lines))
            return extract_polylines(lines)

        monkeypatch.setattr(processor_module, "extract_polylines", counting_extract)
        result = LineProcessor(SETTINGS).process(solid_buffer(10, 10), 10, 10)
        assert calls == []

        assert result.pen_lifts == 6
        assert result.point_count == 12
        assert calls == [6]

    def test_render_returns_lines_only(self, solid_buffer):
        lines = LineProcessor(SETTINGS).render(solid_buffer(10, 10), 10, 10)
        assert len(lines) == 6

    def test_logs_summary(self, solid_buffer, caplog):
        with caplog.at_level(logging.INFO, logger="line_rendering.processor"):
            LineProcessor(SETTINGS).process(solid_buffer(10, 10), 10, 10)
        assert "Generated 6 line segments" in caplog.text

    @pytest.mark.parametrize("width,height", [(0, 0), (0, 5)])
    def test_rejects_empty_request(self, width, height):
        with pytest.raises(InvalidConfigurationError) as excinfo:
            LineProcessor(SETTINGS).render([], width, height)
        assert excinfo.value.field == "pixels"

    def test_rejects_mismatched_buffer(self, solid_buffer):
        with pytest.raises(InvalidConfigurationError):
            LineProcessor(SETTINGS).render(solid_buffer(10, 10), 10, 9)

    def test_process_image(self):
        image = Image.new("L", (10, 10), 0)
        result = LineProcessor(SETTINGS).process_image(image)
        assert len(result.lines) == 6

    def test_white_image_has_no_lines(self):
        image = Image.new("RGB", (16, 16), (255, 255, 255))
        result = LineProcessor(SETTINGS).process_image(image)
        assert result.lines == []
        assert result.polylines == []
        assert result.total_length == 0.0


class TestRendererSelection:
    def test_default_renderer(self):
        assert LineProcessor().renderer.name == "Orthogonal Hatch"
        assert LineProcessor().settings == RenderSettings()

    def test_renderer_by_name_with_options(self):
        processor = LineProcessor(SETTINGS, "flow_field", follow_gradient=True)
        assert processor.renderer == FlowFieldRenderer(follow_gradient=True)

    def test_renderer_by_kind(self):
        processor = LineProcessor(SETTINGS, RendererKind.DIAGONAL_HATCH)
        assert isinstance(processor.renderer, DiagonalHatchRenderer)

    def test_renderer_instance(self):
        renderer = DiagonalHatchRenderer(draw_135=False)
        assert LineProcessor(SETTINGS, renderer).renderer is renderer

    def test_options_need_a_kind(self):
        with pytest.raises(InvalidConfigurationError) as excinfo:
            LineProcessor(SETTINGS, DiagonalHatchRenderer(), draw_45=False)
        assert excinfo.value.field == "options"

    def test_unknown_option(self):
        with pytest.raises(InvalidConfigurationError) as excinfo:
            LineProcessor(SETTINGS, "random_walker", radius_increment=2)
        assert excinfo.value.field == "options"


class TestExport:
    def test_export_result(self, solid_buffer, tmp_path):
        processor = LineProcessor(SETTINGS)
        result = processor.process(solid_buffer(10, 10), 10, 10)
        path = tmp_path / "square.csv"

        assert processor.export(result, path) is ExportFormat.CSV
        rows = path.read_text(encoding="utf-8").splitlines()
        assert rows[0] == "x1,y1,x2,y2"
        assert rows[1] == "0.000,0.000,9.000,0.000"
        assert len(rows) == 7

    def test_export_plain_lines(self, solid_buffer, tmp_path):
        processor = LineProcessor(SETTINGS)
        lines = processor.render(solid_buffer(10, 10), 10, 10)
        path = tmp_path / "square.plt"
        assert processor.export(lines, path) is ExportFormat.POLYLINES
        assert path.read_text(encoding="utf-8").count("\n\n") == 6
