"""Test loading and saving render settings.

Run:
    pytest tests/test_config_manager.py -v
"""

import json

import pytest

from config_manager import ConfigManager
from models import InvalidConfigurationError, RendererKind, RenderSettings


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "lineplot_config.json"


def test_missing_file_gives_defaults(config_path):
    manager = ConfigManager(config_path)
    assert manager.load() == RenderSettings()
    assert manager.load_renderer() is RendererKind.ORTHOGONAL_HATCH


def test_save_and_load_roundtrip(config_path):
    manager = ConfigManager(config_path)
    settings = RenderSettings(line_spacing=2.5, darkness_threshold=0.3, seed=7)

    assert manager.save(settings, RendererKind.FLOW_FIELD) == (True, None)

    reloaded = ConfigManager(config_path)
    assert reloaded.load() == settings
    assert reloaded.load_renderer() is RendererKind.FLOW_FIELD


def test_saved_file_is_plain_json(config_path):
    ConfigManager(config_path).save(RenderSettings(), "random_walker")
    data = json.loads(config_path.read_text(encoding="utf-8"))
    assert data["line_spacing"] == 4.0
    assert data["iterations"] == 1000
    assert data["renderer"] == "random_walker"


def test_partial_file_falls_back_to_defaults(config_path):
    config_path.write_text(json.dumps({"seed": 3}), encoding="utf-8")
    settings = ConfigManager(config_path).load()
    assert settings.seed == 3
    assert settings.line_spacing == RenderSettings().line_spacing


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_unreadable_file_gives_defaults(config_path, content, caplog):
    config_path.write_text(content, encoding="utf-8")
    assert ConfigManager(config_path).load() == RenderSettings()
    assert "config file" in caplog.text


def test_out_of_range_value_raises(config_path):
    config_path.write_text(json.dumps({"darkness_threshold": 2}), encoding="utf-8")
    with pytest.raises(InvalidConfigurationError) as excinfo:
        ConfigManager(config_path).load()
    assert excinfo.value.field == "darkness_threshold"


def test_unknown_renderer_raises(config_path):
    config_path.write_text(json.dumps({"renderer": "spiral"}), encoding="utf-8")
    with pytest.raises(InvalidConfigurationError):
        ConfigManager(config_path).load_renderer()


def test_save_failure_is_reported(tmp_path):
    success, error = ConfigManager(tmp_path).save(RenderSettings())
    assert success is False
    assert error
