import pytest

from backend.app.trends.records import Swing
from backend.app.trends.zones import (
    FieldThird,
    ZoneMetric,
    classify_field_third,
    classify_pitch_locations,
    directional_tendency,
    field_zone_stats,
    pitch_location_heatmap,
    spray_chart_points,
    strike_zone_grid,
    tendency_label,
)


def swing(swing_id, ev=90.0, la=10.0, sx=0.0, sz=150.0, px=0.0, py=20.0):
    return Swing(
        swing_id=swing_id,
        session_id="s1",
        exit_velocity=ev,
        launch_angle=la,
        spray_chart_x=sx,
        spray_chart_z=sz,
        poi_x=px,
        poi_y=py,
    )


def test_catcher_view_mirrors_horizontal_axis():
    swings = [swing("low-x", ev=80.0, px=0.0, py=6.0), swing("high-x", ev=100.0, px=10.0, py=6.0)]

    cells = strike_zone_grid(swings)

    by_col = {c.col: c for c in cells}
    assert set(by_col) == {0, 2}
    assert [s.swing_id for s in by_col[0].swings] == ["high-x"]
    assert [s.swing_id for s in by_col[2].swings] == ["low-x"]
    # poi_y is identical on every sample, so every cell sits on the middle row.
    assert {c.row for c in cells} == {1}


def test_degenerate_axes_land_in_single_middle_cell():
    swings = [swing(f"w{i}", ev=90.0 + i, px=3.0, py=7.0) for i in range(3)]

    cells = strike_zone_grid(swings)

    assert len(cells) == 1
    assert (cells[0].row, cells[0].col) == (1, 1)
    assert cells[0].count == 3
    assert cells[0].mean == pytest.approx(91.0)


def test_low_pitch_heights_are_excluded():
    swings = [swing("noise", py=5.0), swing("kept", py=5.1), swing("missing", py=None)]
    cells = strike_zone_grid(swings)
    assert sum(c.count for c in cells) == 1
    assert cells[0].swings[0].swing_id == "kept"


def test_metric_eligibility_differs_between_exit_velocity_and_launch_angle():
    swings = [
        swing("no-ev", ev=0.0, la=25.0, px=0.0, py=10.0),
        swing("no-la", ev=95.0, la=None, px=5.0, py=20.0),
        swing("both", ev=85.0, la=-5.0, px=10.0, py=30.0),
    ]

    ev_ids = {s.swing_id for c in strike_zone_grid(swings, ZoneMetric.EXIT_VELOCITY) for s in c.swings}
    la_cells = strike_zone_grid(swings, ZoneMetric.LAUNCH_ANGLE)
    la_ids = {s.swing_id for c in la_cells for s in c.swings}

    assert ev_ids == {"no-la", "both"}
    assert la_ids == {"no-ev", "both"}
    assert sorted(c.mean for c in la_cells) == [-5.0, 25.0]


def test_cells_are_row_major_and_counts_cover_sample():
    swings = [swing(f"w{i}", px=float(i % 4), py=6.0 + i) for i in range(20)]

    cells = classify_pitch_locations(swings, 4, 5)

    keys = [(c.row, c.col) for c in cells]
    assert keys == sorted(keys)
    assert all(0 <= r < 4 and 0 <= c < 5 for r, c in keys)
    assert sum(c.count for c in cells) == 20


def test_heatmap_defaults_to_twelve_by_twelve():
    swings = [swing(f"w{i}", px=float(i), py=6.0 + i) for i in range(30)]
    cells = pitch_location_heatmap(swings)
    assert max(c.row for c in cells) == 11
    assert min(c.col for c in cells) == 0
    assert max(c.col for c in cells) == 11


def test_grid_dimensions_must_be_positive():
    with pytest.raises(ValueError):
        classify_pitch_locations([swing("w")], 0, 3)


def test_empty_sample_produces_no_cells():
    assert strike_zone_grid([]) == []


@pytest.mark.parametrize(
    "x, expected",
    [(-51.0, FieldThird.LEFT), (-50.0, FieldThird.CENTER), (50.0, FieldThird.CENTER), (50.1, FieldThird.RIGHT)],
)
def test_field_third_cutoffs(x, expected):
    assert classify_field_third(x) is expected


def test_field_zone_stats_shares_and_empty_zone():
    swings = [
        swing("l1", ev=80.0, sx=-120.0),
        swing("l2", ev=90.0, sx=-60.0),
        swing("c1", ev=100.0, sx=10.0),
        swing("c2", ev=70.0, sx=-50.0),
    ]

    stats = {z.zone: z for z in field_zone_stats(swings)}

    assert stats["left"].count == 2
    assert stats["left"].pct == pytest.approx(50.0)
    assert stats["left"].avg_exit_velocity == pytest.approx(85.0)
    assert stats["center"].peak_exit_velocity == pytest.approx(100.0)
    assert stats["right"].count == 0
    assert stats["right"].pct == 0.0
    assert stats["right"].avg_exit_velocity is None
    assert sum(z.pct for z in stats.values()) == pytest.approx(100.0)


def test_directional_tendency_maps_and_clamps():
    assert directional_tendency([swing("a", sx=0.0)]) == pytest.approx(50.0)
    assert directional_tendency([swing("a", sx=-100.0)]) == pytest.approx(25.0)
    assert directional_tendency([swing("a", sx=-1000.0)]) == 0.0
    assert directional_tendency([swing("a", sx=900.0)]) == 100.0
    assert directional_tendency([swing("a", sx=None)]) is None


@pytest.mark.parametrize(
    "position, label",
    [(None, None), (0.0, "pull"), (39.9, "pull"), (40.0, "neutral"), (60.0, "neutral"), (60.1, "opposite")],
)
def test_tendency_label(position, label):
    assert tendency_label(position) == label


def test_spray_points_carry_level_tier():
    swings = [swing("fast", ev=99.0), swing("slow", ev=60.0), swing("unplaced", sx=None)]

    points = spray_chart_points(swings, "High School")

    assert [(p.swing_id, p.tier) for p in points] == [("fast", "hot"), ("slow", "ice")]


def test_exit_velocity_cells_carry_level_tier():
    swings = [swing("slow", ev=50.0, px=10.0, py=6.0), swing("fast", ev=120.0, px=0.0, py=6.0)]

    cells = {c.col: c for c in strike_zone_grid(swings, ZoneMetric.EXIT_VELOCITY, "professional")}

    assert cells[2].tier == "hot"
    assert cells[0].tier == "ice"


def test_launch_angle_cells_have_no_tier():
    cells = strike_zone_grid([swing("a", la=20.0)], ZoneMetric.LAUNCH_ANGLE, "college")
    assert cells[0].tier is None


def test_heatmap_tier_uses_playing_level():
    swings = [swing("a", ev=100.0, px=1.0, py=10.0)]
    assert pitch_location_heatmap(swings, 12, "youth")[0].tier == "hot"
    assert pitch_location_heatmap(swings, 12, "professional")[0].tier == "cool"
