import json
import logging

import pytest

from pdf_unlocker.utils.config import MAX_FILE_SIZE, Config, verbosity_to_level
from pdf_unlocker.utils.exceptions import ConfigError


def test_defaults(tmp_path):
    config = Config(str(tmp_path / "missing.json"))
    assert config["max_file_size"] == MAX_FILE_SIZE == 100 * 1024 * 1024
    assert config.get("render_scale") == 2.0
    assert config.get("full_scan_limit") == 100000
    assert config.get("nonexistent", "fallback") == "fallback"


def test_load_overrides_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"render_scale": 3.0, "verbosity": "debug"}))
    config = Config(str(path))
    assert config["render_scale"] == 3.0
    assert config["verbosity"] == "debug"
    assert config["scan_window"] == 50000


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = Config(str(path))
    config.set("max_file_size", 1024)
    config.save()
    assert Config(str(path))["max_file_size"] == 1024


def test_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        Config(str(path))


def test_non_object_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ConfigError):
        Config(str(path))


@pytest.mark.parametrize("verbosity, level", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    ("bogus", logging.INFO),
    (logging.ERROR, logging.ERROR),
])
def test_verbosity_to_level(verbosity, level):
    assert verbosity_to_level(verbosity) == level
