from ewlab.geometry.hittest import (  # noqa: F401
    CoordinateTransform,
    HitConfig,
    LinearTransform,
    PointHit,
    SegmentHit,
    hit_test,
    hit_test_point,
    hit_test_segment,
)
from ewlab.geometry.snap import SnapSettings, snap_point  # noqa: F401
