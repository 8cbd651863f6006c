from datetime import date

from captimeline.filters import DateRange, FilterSpec
from captimeline.url_params import (
    alert_id_from_params,
    build_query,
    deserialize_filters,
    read_query,
    serialize_filters,
)


def test_empty_spec_serializes_to_nothing() -> None:
    spec = FilterSpec()

    assert serialize_filters(spec) == {}
    assert deserialize_filters(serialize_filters(spec)) == spec


def test_search_only_round_trip() -> None:
    spec = FilterSpec(search_text="heavy rain")

    assert serialize_filters(spec) == {"search": "heavy rain"}
    assert deserialize_filters(serialize_filters(spec)) == spec


def test_categories_and_date_range_round_trip() -> None:
    spec = FilterSpec(
        categories={"Met", "Geo"},
        date_range=DateRange.for_days(date(2024, 5, 1), date(2024, 5, 31)),
    )

    params = serialize_filters(spec)

    assert params == {"dateStart": "2024-05-01", "dateEnd": "2024-05-31", "categories": "Geo,Met"}
    assert deserialize_filters(params) == spec


def test_message_types_use_camel_case_key() -> None:
    spec = FilterSpec(message_types={"Cancel"})

    assert serialize_filters(spec) == {"messageTypes": "Cancel"}


def test_deserialize_ignores_empty_and_malformed_values() -> None:
    spec = deserialize_filters({"categories": ",Met,,", "dateStart": "yesterday", "search": ""})

    assert spec == FilterSpec(categories={"Met"})


def test_query_string_round_trip_with_alert_id() -> None:
    spec = FilterSpec(severities={"Extreme"}, search_text="flood & slip")

    query = build_query(spec, alert_id="NZ-42")
    decoded, alert_id = read_query("?" + query)

    assert decoded == spec
    assert alert_id == "NZ-42"
    assert alert_id_from_params({}) is None


def test_whitespace_search_is_no_search() -> None:
    spec = FilterSpec(search_text="   ")

    assert spec == FilterSpec()
    assert serialize_filters(spec) == {}
    assert deserialize_filters(serialize_filters(spec)) == spec
    assert FilterSpec(search_text="  flood ").search_text == "flood"
