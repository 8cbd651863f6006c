from hypothesis import given, strategies as st

from captimeline.geometry import extract_polygon, polygon_area_km2, polygon_to_geojson
from captimeline.settings import RegionBounds

coordinates = st.tuples(
    st.floats(min_value=-90, max_value=90, allow_nan=False, allow_infinity=False),
    st.floats(min_value=-180, max_value=180, allow_nan=False, allow_infinity=False),
)


def _format(points) -> str:
    return " ".join(f"{lat!r},{lng!r}" for lat, lng in points)


def test_extract_polygon_closes_open_ring() -> None:
    ring = extract_polygon("-41.0,174.0 -41.5,174.5 -41.2,175.0")

    assert ring == ((-41.0, 174.0), (-41.5, 174.5), (-41.2, 175.0), (-41.0, 174.0))


def test_extract_polygon_keeps_closed_ring() -> None:
    ring = extract_polygon("-41.0,174.0 -41.5,174.5 -41.2,175.0 -41.0,174.0")

    assert ring is not None
    assert len(ring) == 4


def test_extract_polygon_skips_malformed_pairs() -> None:
    ring = extract_polygon("-41.0,174.0 abc,174.5 -41.5 -41.5,174.5 ,1 -41.2,175.0")

    assert ring == ((-41.0, 174.0), (-41.5, 174.5), (-41.2, 175.0), (-41.0, 174.0))


def test_extract_polygon_rejects_too_few_points() -> None:
    assert extract_polygon("-41.0,174.0 -41.5,174.5") is None
    assert extract_polygon("-41.0,174.0 nope -41.5,174.5") is None
    assert extract_polygon("") is None
    assert extract_polygon(None) is None


def test_extract_polygon_keeps_points_outside_region(caplog) -> None:
    bounds = RegionBounds(min_lat=-50, max_lat=-30, min_lng=160, max_lng=180)

    ring = extract_polygon("51.5,-0.1 51.6,-0.2 51.4,-0.3", bounds)

    assert ring is not None
    assert len(ring) == 4
    assert "outside expected region" in caplog.text


@given(points=st.lists(coordinates, min_size=3, max_size=12, unique=True))
def test_extract_polygon_returns_closed_ring_for_distinct_points(points) -> None:
    ring = extract_polygon(_format(points))

    assert ring is not None
    assert ring[0] == ring[-1]
    assert len(ring) == len(points) + 1


@given(points=st.lists(coordinates, max_size=2))
def test_extract_polygon_rejects_fewer_than_three_pairs(points) -> None:
    assert extract_polygon(_format(points)) is None


def test_polygon_to_geojson_swaps_axis_order() -> None:
    geojson = polygon_to_geojson(((-41.0, 174.0), (-41.5, 174.5), (-41.2, 175.0), (-41.0, 174.0)))

    assert geojson is not None
    assert geojson["type"] == "Polygon"
    assert geojson["coordinates"][0][0] == [174.0, -41.0]
    assert polygon_to_geojson(None) is None


def test_polygon_area_km2_is_positive() -> None:
    area = polygon_area_km2(((-41.0, 174.0), (-41.0, 175.0), (-42.0, 175.0), (-42.0, 174.0), (-41.0, 174.0)))

    assert area is not None
    assert 8_000 < area < 10_000
