from datetime import datetime, timedelta, timezone

import pytest

from pathshare.errors import ValidationError
from pathshare.models import (
    UNSET,
    LocationReport,
    SharedPath,
    UserPath,
    UserPathUpdate,
    format_timestamp,
    parse_timestamp,
    to_coordinates,
    to_latlon,
)


def test_unset_is_a_singleton_and_falsy():
    assert UserPathUpdate().name is UNSET
    assert not UNSET
    assert repr(UNSET) == "UNSET"


def test_update_only_includes_present_fields():
    update = UserPathUpdate(name="New")
    assert update.present_fields() == {"name": "New"}
    assert update.to_row() == {"name": "New"}


def test_update_keeps_falsy_values_that_were_set():
    update = UserPathUpdate(description="", vertex_data={}, user_location=None)
    assert update.to_row() == {
        "description": "",
        "vertex_data": {},
        "user_location": None,
    }


def test_update_normalises_coordinates():
    update = UserPathUpdate(coordinates=[{"lat": 1, "lng": 2}, (3, 4)])
    assert update.to_row() == {"coordinates": [[1.0, 2.0], [3.0, 4.0]]}


def test_to_latlon_accepts_common_shapes():
    assert to_latlon([1, 2]) == (1.0, 2.0)
    assert to_latlon({"lat": 1, "lng": 2}) == (1.0, 2.0)
    assert to_latlon({"lat": 1, "lon": 2}) == (1.0, 2.0)
    assert to_latlon(None) is None
    assert to_latlon({"lat": 1}) is None


def test_parse_timestamp_handles_z_suffix_and_naive_values():
    assert parse_timestamp("2024-03-01T10:05:00.000Z") == datetime(
        2024, 3, 1, 10, 5, tzinfo=timezone.utc
    )
    assert parse_timestamp("2024-03-01T10:05:00").tzinfo == timezone.utc
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_shared_path_row_round_trip():
    path = SharedPath(
        path_id="abc",
        coordinates=[(1.0, 2.0)],
        user_location=(3.0, 4.0),
        vertex_data={"0": {}},
        source_user_path_id="u-1",
    )
    row = path.to_row()
    assert row["coordinates"] == [[1.0, 2.0]]
    assert SharedPath.from_row(row) == path


def test_user_path_from_row_defaults():
    path = UserPath.from_row(
        {"id": 7, "user_id": "u", "name": "N", "coordinates": [[1, 2]]}
    )
    assert path.id == "7"
    assert path.description == ""
    assert path.vertex_data == {}
    assert path.user_location is None


def test_location_report_requires_both_locations():
    with pytest.raises(ValueError):
        LocationReport.from_row(
            {"default_location": [1, 2], "corrected_location": None, "timestamp": "2024-01-01"}
        )


def test_to_coordinates_rejects_points_without_lat_lng():
    with pytest.raises(ValueError):
        to_coordinates([{"lat": 1, "lng": 2}, {"lat": 3}])


def test_update_with_unreadable_coordinates_raises_validation_error():
    with pytest.raises(ValidationError):
        UserPathUpdate(coordinates=[{"lng": 2}]).to_row()


def test_format_timestamp_normalises_to_utc():
    ist = timezone(timedelta(hours=5, minutes=30))
    assert format_timestamp(datetime(2024, 1, 1, 10, 0, tzinfo=ist)) == (
        "2024-01-01T04:30:00+00:00"
    )
    assert format_timestamp(datetime(2024, 1, 1, 10, 0)) == "2024-01-01T10:00:00+00:00"
    assert format_timestamp(None) is None
