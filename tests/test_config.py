"""Tests for configuration loading and dot-notation access."""

import pytest
import yaml

from handmimic.core import Config, DEFAULT_CONFIG


def test_defaults_without_file():
    config = Config.from_dict({})

    assert config.get("tracking.filter_alpha") == 0.5
    assert config.get("skeleton.model") == "linker-l10-right"
    assert config.path is None


def test_overrides_are_layered_over_defaults():
    config = Config.from_dict({"tracking": {"filter_alpha": 0.2}})

    assert config.get("tracking.filter_alpha") == 0.2
    assert config.get("tracking.max_hands") == 2


def test_missing_key_returns_default():
    config = Config.from_dict({})
    assert config.get("nope.missing", 7) == 7
    assert config.get("tracking.nope") is None


def test_set_creates_nested_keys():
    config = Config.from_dict({})

    config.set("retargeting.smoothing", 0.1)
    config.set("extra.nested.value", True)

    assert config.retargeting["smoothing"] == 0.1
    assert config.get("extra.nested.value") is True


def test_instances_do_not_share_state():
    a = Config.from_dict({})
    b = Config.from_dict({})

    a.set("tracking.hand", "Left")

    assert b.get("tracking.hand") == "auto"
    assert DEFAULT_CONFIG["tracking"]["hand"] == "auto"


def test_load_save_reload(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"retargeting": {"smoothing": 0.25}}))

    config = Config(str(path))
    assert config.get("retargeting.smoothing") == 0.25
    assert config.get("retargeting.reference_fps") == 60.0
    assert config.path == str(path)

    config.set("retargeting.smoothing", 0.6)
    config.save()
    config.set("retargeting.smoothing", 0.9)
    config.reload()

    assert config.get("retargeting.smoothing") == 0.6


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config(str(tmp_path / "absent.yaml"))


def test_reload_without_file_raises():
    with pytest.raises(FileNotFoundError):
        Config.from_dict({}).reload()
