from ewlab.ew.core.rules import RULE_ORDER, RuleConfig, blocking, summarize, validate

from helpers import wave


def _by_id(results):
    return {r.id: r for r in results}


def test_r1_wave2_below_origin_in_bullish_wave():
    res = _by_id(validate(wave("impulse", [(0, 100), (60, 110), (120, 95)])))
    assert res["R1"].ok is False
    assert res["R1"].severity == "error"


def test_r1_mirrored_for_bearish():
    ok = _by_id(validate(wave("impulse", [(0, 100), (60, 90), (120, 95)])))
    bad = _by_id(validate(wave("impulse", [(0, 100), (60, 90), (120, 101)])))
    assert ok["R1"].ok and ok["R1"].severity == "info"
    assert not bad["R1"].ok


def test_r2_wave3_shortest():
    # legs: 1 = 20, 3 = 5, 5 = 28
    w = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 115), (4, 112), (5, 140)])
    res = _by_id(validate(w))
    assert res["R2"].ok is False and res["R2"].severity == "error"

    w = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 130), (5, 160)])
    assert _by_id(validate(w))["R2"].ok


def test_r2_needs_wave5_terminal():
    w = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 130)])
    assert "R2" not in _by_id(validate(w))


def test_r3_overlap_touch_and_clear():
    overlap = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 115)])
    touch = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 120)])
    clear = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 130)])
    assert _by_id(validate(overlap))["R3"].severity == "error"
    r = _by_id(validate(touch))["R3"]
    assert not r.ok and r.severity == "warn"
    assert _by_id(validate(clear))["R3"].ok


def test_r3_bearish_mirrored():
    clear = wave("impulse", [(0, 200), (1, 180), (2, 190), (3, 150), (4, 170)])
    overlap = wave("impulse", [(0, 200), (1, 180), (2, 190), (3, 150), (4, 185)])
    assert _by_id(validate(clear))["R3"].ok
    assert _by_id(validate(overlap))["R3"].severity == "error"


def test_r3_tolerates_float_noise():
    touch = wave("impulse", [(0, 0.1), (1, 0.3), (2, 0.2), (3, 0.6), (4, 0.1 + 0.2)])
    assert _by_id(validate(touch))["R3"].severity == "warn"


def test_r4_labels_prefix():
    assert _by_id(validate(wave("impulse", [(0, 1), (1, 2)])))["R4"].ok
    bad = wave("impulse", [(0, 1), (1, 2)], labels=("1", "3"))
    r = _by_id(validate(bad))["R4"]
    assert not r.ok and r.severity == "warn"


def test_alternation_guideline_is_informational():
    same = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 140)])
    diff = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 145)])
    r = _by_id(validate(same))["ALT"]
    assert not r.ok and r.severity == "info"
    assert _by_id(validate(diff))["ALT"].ok
    assert not blocking([r])


def test_alternation_threshold_from_config():
    w = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 150), (4, 141)])  # 10 vs 9
    assert _by_id(validate(w))["ALT"].ok is False
    assert _by_id(validate(w, RuleConfig(alternation_threshold=0.05)))["ALT"].ok


def test_r5_c_moves_against_b():
    ok = _by_id(validate(wave("correction", [(0, 100), (1, 110), (2, 90)])))
    bad = _by_id(validate(wave("correction", [(0, 100), (1, 110), (2, 120)])))
    flat = _by_id(validate(wave("correction", [(0, 100), (1, 100), (2, 90)])))
    assert ok["R5"].ok
    assert not bad["R5"].ok and bad["R5"].severity == "warn"
    assert not flat["R5"].ok


def test_partial_waves_never_raise():
    assert validate(wave("impulse", [])) == []
    assert [r.id for r in validate(wave("impulse", [(0, 1), (1, 2)]))] == ["R4"]
    assert validate(wave("correction", [(0, 1), (1, 2)])) == []


def test_results_in_fixed_order():
    w = wave("impulse", [(0, 100), (1, 120), (2, 110), (3, 115), (4, 112), (5, 140)])
    ids = [r.id for r in validate(w)]
    assert ids == ["R1", "R2", "R3", "R4", "ALT"]
    assert ids == sorted(ids, key=RULE_ORDER.index)


def test_summarize_counts_failures():
    w = wave("impulse", [(0, 100), (1, 120), (2, 95), (3, 100), (4, 112), (5, 140)])
    s = summarize(validate(w))
    assert s["checked"] == 5
    assert s["error"] == 3  # R1, R2, R3
    assert s["failed"] == 3
