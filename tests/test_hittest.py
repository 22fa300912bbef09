import pytest

from ewlab.geometry.hittest import (
    HitConfig,
    LinearTransform,
    PointHit,
    SegmentHit,
    hit_test,
    hit_test_point,
    hit_test_segment,
)

from helpers import transform, wave


def test_point_hit_is_reflexive():
    waves = [wave("impulse", [(100, 100), (200, 150), (300, 120)], wid="a")]
    tr = transform()
    for i, pt in enumerate(waves[0].points):
        hit = hit_test_point(tr.time_to_pixel(pt.t), tr.price_to_pixel(pt.p), waves, tr)
        assert hit == PointHit("a", i, 0.0)


def test_point_threshold_is_radius_plus_tolerance():
    waves = [wave("impulse", [(100, 100)])]
    assert hit_test_point(106, 108, waves, transform()) is not None  # exactly 10 px
    assert hit_test_point(107, 108, waves, transform()) is None
    assert hit_test_point(107, 108, waves, transform(), HitConfig(point_tol_px=5)) is not None


def test_latest_wave_wins_point_ties():
    waves = [wave("impulse", [(100, 100)], wid="old"), wave("impulse", [(100, 100)], wid="new")]
    assert hit_test_point(100, 100, waves, transform()).wave_id == "new"


def test_closer_point_in_older_wave_beats_later_wave():
    waves = [wave("impulse", [(100, 100)], wid="old"), wave("impulse", [(105, 100)], wid="new")]
    assert hit_test_point(100, 100, waves, transform()) == PointHit("old", 0, 0.0)
    assert hit_test_point(104, 100, waves, transform()).wave_id == "new"


def test_segment_hit_returns_closest_not_first():
    waves = [
        wave("impulse", [(100, 100), (300, 100)], wid="low"),   # y = 100 px
        wave("impulse", [(100, 104), (300, 104)], wid="high"),  # y = 96 px
    ]
    hit = hit_test_segment(200, 99, waves, transform())
    assert hit.wave_id == "low"
    assert (hit.a_index, hit.b_index) == (0, 1)
    assert hit.distance == pytest.approx(1.0)
    assert (hit.x, hit.y) == (200, 100)


def test_segment_projection_is_clamped():
    waves = [wave("impulse", [(100, 100), (200, 100)])]
    assert hit_test_segment(205, 100, waves, transform()).distance == pytest.approx(5.0)
    assert hit_test_segment(207, 100, waves, transform()) is None


def test_points_take_priority_over_segments():
    waves = [wave("impulse", [(100, 100), (300, 100)], wid="a")]
    assert isinstance(hit_test(102, 100, waves, transform()), PointHit)
    assert isinstance(hit_test(200, 102, waves, transform()), SegmentHit)
    assert hit_test(200, 150, waves, transform()) is None


def test_unprojectable_points_are_skipped():
    narrow = LinearTransform(t0=0, t1=150, p_lo=0, p_hi=200, width=150, height=200)
    waves = [wave("impulse", [(100, 100), (300, 100)])]
    assert hit_test_point(150, 100, waves, narrow) is None
    assert hit_test_segment(125, 100, waves, narrow) is None
    assert hit_test_point(100, 100, waves, narrow).index == 0
