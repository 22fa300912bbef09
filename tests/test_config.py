import json

import pytest

from ewlab.config import DEFAULTS, EditorConfig, load_config, load_editor_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    import os

    for k in list(os.environ):
        if k.startswith("EWLAB_"):
            monkeypatch.delenv(k)


def test_defaults_match_editor_defaults():
    cfg = load_editor_config(use_env=False)
    assert cfg == EditorConfig()
    assert cfg.hit.point_threshold == 10.0


def test_env_overrides_nested_key(monkeypatch):
    monkeypatch.setenv("EWLAB_SNAP__TIME_GRID_SEC", "60")
    monkeypatch.setenv("EWLAB_SNAP__ENABLED", "true")
    cfg = load_editor_config()
    assert cfg.snap.enabled is True
    assert cfg.snap.time_grid_sec == 60.0
    assert cfg.snap.price_grid == 0.0


def test_file_then_env_precedence(tmp_path, monkeypatch):
    path = tmp_path / "ewlab.json"
    path.write_text(json.dumps({"rules": {"alternation_threshold": 0.2}, "history": {"max_depth": 5}}))
    monkeypatch.setenv("EWLAB_HISTORY__MAX_DEPTH", "7")
    raw = load_config(DEFAULTS, str(path))
    assert raw["rules"]["alternation_threshold"] == 0.2
    assert raw["rules"]["epsilon"] == 1e-9
    cfg = EditorConfig.from_dict(raw)
    assert cfg.history_depth == 7
    assert cfg.rules.alternation_threshold == 0.2


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(DEFAULTS, str(tmp_path / "nope.json"))


def test_colors_per_kind():
    cfg = EditorConfig.from_dict({"colors": {"correction": "#ff0000"}})
    assert cfg.colors.for_kind("correction") == "#ff0000"
    assert cfg.colors.for_kind("impulse") == DEFAULTS["colors"]["impulse"]
