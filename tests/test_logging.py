import json
import logging

from ewlab.logging import LogConfig, get_logger, setup_logging


def test_json_logs_carry_extra_fields(tmp_path):
    root = logging.getLogger()
    saved, level = list(root.handlers), root.level
    path = tmp_path / "logs" / "ewlab.jsonl"
    try:
        setup_logging(LogConfig(level="debug", json=True, to_file=str(path)))
        get_logger("ewlab.test").info("wave committed", extra={"wave_id": "w1"})
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved:
            root.addHandler(h)
        root.setLevel(level)

    rec = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
    assert rec["msg"] == "wave committed"
    assert rec["level"] == "info"
    assert rec["name"] == "ewlab.test"
    assert rec["wave_id"] == "w1"


def test_log_config_from_dict():
    lc = LogConfig.from_dict({"logging": {"level": "debug", "json": True}})
    assert lc.level == "debug" and lc.json and lc.to_file is None
    assert LogConfig.from_dict({}) == LogConfig()
