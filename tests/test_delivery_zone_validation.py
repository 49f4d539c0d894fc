import pytest

from restaurant_ops.core.errors import ValidationError
from restaurant_ops.services.delivery_zones import validate_zone
from restaurant_ops.services.geo import coordinates_to_storage
from tests.fixtures_data import POLYGON_PUBLIC


def _zone(**overrides):
    zone = {
        "zone_name": "Centro",
        "delivery_cost": 5,
        "minimum_order": 20,
        "estimated_time": 30,
        "zone_type": "polygon",
        "coordinates": list(POLYGON_PUBLIC),
        "radius_km": None,
        "minimum_for_free_delivery": None,
    }
    zone.update(overrides)
    return zone


@pytest.mark.parametrize("point_count", [0, 1, 2])
def test_polygon_with_fewer_than_three_points_is_rejected(point_count):
    with pytest.raises(ValidationError) as exc_info:
        validate_zone(_zone(coordinates=POLYGON_PUBLIC[:point_count]))

    assert "at least 3" in exc_info.value.message


def test_polygon_with_three_points_is_accepted():
    validate_zone(_zone())


def test_stored_coordinates_are_accepted_for_revalidation():
    validate_zone(_zone(coordinates=coordinates_to_storage(POLYGON_PUBLIC)))


@pytest.mark.parametrize("zone_type", ["simple", "radius"])
def test_center_zones_need_exactly_one_point(zone_type):
    with pytest.raises(ValidationError):
        validate_zone(_zone(zone_type=zone_type, coordinates=POLYGON_PUBLIC[:2], radius_km=3))


def test_radius_zone_requires_positive_radius():
    with pytest.raises(ValidationError) as exc_info:
        validate_zone(_zone(zone_type="radius", coordinates=POLYGON_PUBLIC[:1], radius_km=0))

    assert "radiusKm" in exc_info.value.message


def test_simple_zone_with_one_point_is_accepted():
    validate_zone(_zone(zone_type="simple", coordinates=POLYGON_PUBLIC[:1], radius_km=2.5))


def test_unknown_zone_type_is_rejected():
    with pytest.raises(ValidationError):
        validate_zone(_zone(zone_type="circle"))


@pytest.mark.parametrize(
    "bad_point,field",
    [
        ({"latitude": 91, "longitude": 0}, "coordinates[2].latitude"),
        ({"latitude": -90.5, "longitude": 0}, "coordinates[2].latitude"),
        ({"latitude": 0, "longitude": 180.1}, "coordinates[2].longitude"),
    ],
)
def test_out_of_range_coordinates_are_rejected(bad_point, field):
    points = list(POLYGON_PUBLIC[:2]) + [bad_point]

    with pytest.raises(ValidationError) as exc_info:
        validate_zone(_zone(coordinates=points))

    assert field in exc_info.value.message


@pytest.mark.parametrize("field", ["delivery_cost", "minimum_order", "estimated_time", "minimum_for_free_delivery"])
def test_negative_amounts_are_rejected(field):
    with pytest.raises(ValidationError) as exc_info:
        validate_zone(_zone(**{field: -1}))

    assert field in exc_info.value.message


@pytest.mark.parametrize("field", ["delivery_cost", "minimum_order", "estimated_time"])
def test_required_amounts_must_be_present(field):
    with pytest.raises(ValidationError):
        validate_zone(_zone(**{field: None}))


def test_zero_amounts_are_allowed():
    validate_zone(_zone(delivery_cost=0, minimum_order=0, estimated_time=0, minimum_for_free_delivery=0))
