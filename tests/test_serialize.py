import json

import pytest

from ewlab.ew.core.errors import SchemaError
from ewlab.ew.core.model import Point, Snapshot
from ewlab.ew.core.serialize import dumps_snapshot, dumps_waves, loads_snapshot, loads_waves

from helpers import wave


def _doc(**over):
    w = {"id": "w1", "kind": "impulse", "points": [{"t": 1, "p": 2}], "labels": ["1"],
         "color": "#fff", "createdAt": 10, "updatedAt": 20}
    w.update(over)
    return w


@pytest.mark.parametrize("text", ["not json", "{}", "42", '{"waves": {}}', '"waves"'])
def test_rejects_non_documents(text):
    with pytest.raises(SchemaError):
        loads_snapshot(text)


def test_rejects_deeply_nested_documents():
    with pytest.raises(SchemaError, match="nests too deeply"):
        loads_snapshot("[" * 100000 + "]" * 100000)


@pytest.mark.parametrize(
    "over",
    [
        {"kind": "triangle"},
        {"points": [{"t": 1}]},
        {"points": [{"t": "1", "p": 2}]},
        {"labels": ["2"]},
        {"labels": ["1", "2"]},
        {"color": None},
        {"id": ""},
    ],
)
def test_rejects_malformed_waves(over):
    with pytest.raises(SchemaError):
        loads_snapshot(json.dumps([_doc(**over)]))


def test_rejects_duplicate_ids_and_unknown_selection():
    with pytest.raises(SchemaError):
        loads_snapshot(json.dumps([_doc(), _doc()]))
    with pytest.raises(SchemaError):
        loads_snapshot(json.dumps({"ts": 1, "waves": [_doc()], "selectedWaveId": "nope"}))


def test_collection_form_and_legacy_timestamps():
    raw = _doc()
    del raw["createdAt"], raw["updatedAt"]
    snap = loads_snapshot(json.dumps([raw]))
    w = snap.waves[0]
    assert w.points == (Point(1.0, 2.0),)
    assert w.created_at > 0 and w.updated_at > 0
    assert snap.selected_wave_id is None


def test_snapshot_form_keeps_selection():
    snap = loads_snapshot(json.dumps({"ts": 5, "waves": [_doc()], "selectedWaveId": "w1"}))
    assert snap.ts == 5 and snap.selected_wave_id == "w1"
    assert snap.waves[0].created_at == 10


def test_export_matches_schema():
    s = Snapshot(ts=7, waves=(wave("correction", [(0, 1), (1, 2)], wid="c"),), selected_wave_id="c")
    raw = json.loads(dumps_snapshot(s))
    assert raw == {
        "ts": 7,
        "waves": [{"id": "c", "kind": "correction", "points": [{"t": 0, "p": 1}, {"t": 1, "p": 2}],
                   "labels": ["A", "B"], "color": "#22c55e", "createdAt": 0, "updatedAt": 0}],
        "selectedWaveId": "c",
    }
    assert loads_snapshot(dumps_snapshot(s)) == s
    assert loads_waves(dumps_waves(s.waves)) == s.waves


def test_loads_waves_requires_array():
    with pytest.raises(SchemaError):
        loads_waves(json.dumps({"waves": []}))
