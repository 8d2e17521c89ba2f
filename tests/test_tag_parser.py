"""Unit tests for Route53 tag decoding."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from asg_route53.errors import TagDecodeError
from asg_route53.tag_parser import decode_tag_value, fetch_tag_value, needs_prefix_fixup, parse_tag_entry

GROUP = "web-asg"


def _decode_error(value: str) -> TagDecodeError:
    with pytest.raises(TagDecodeError) as exc_info:
        decode_tag_value(value, GROUP)
    return exc_info.value


def test_two_field_entry_defaults_to_cname_and_ttl_one():
    result = parse_tag_entry("Z1:www.example.com", GROUP)

    assert result.zone_count == 1
    spec = result.specs[0]
    assert spec.zone_id == "Z1"
    assert spec.record_type == "CNAME"
    assert spec.ttl == 1
    assert spec.record_name == "www.example.com"
    assert spec.needs_fixup is False
    assert spec.uses_dns_names is True


def test_three_field_entry_defaults_ttl():
    spec = parse_tag_entry("Z1:A:app.example.com", GROUP).specs[0]

    assert spec.record_type == "A"
    assert spec.ttl == 1
    assert spec.record_name == "app.example.com"
    assert spec.uses_dns_names is False


def test_four_field_entry():
    spec = parse_tag_entry("Z1:CNAME:www.example.com:30", GROUP).specs[0]

    assert (spec.record_type, spec.record_name, spec.ttl) == ("CNAME", "www.example.com", 30)


def test_prefix_marker_is_stripped_and_flags_fixup():
    spec = parse_tag_entry("Z1:CNAME:www.#:30", GROUP).specs[0]

    assert spec.record_name == "www."
    assert spec.needs_fixup is True


def test_multi_zone_entry_yields_one_spec_per_zone_sharing_prefix():
    result = parse_tag_entry("Z1,Z2:www.:30", GROUP)

    assert result.zone_count == 2
    assert [spec.zone_id for spec in result.specs] == ["Z1", "Z2"]
    for spec in result.specs:
        assert spec.record_name == "www."
        assert spec.record_type == "CNAME"
        assert spec.ttl == 30
        assert spec.needs_fixup is True


def test_multi_zone_ids_are_trimmed():
    result = parse_tag_entry("Z1, Z2 ,Z3:A:api.#", GROUP)

    assert [spec.zone_id for spec in result.specs] == ["Z1", "Z2", "Z3"]
    assert {spec.record_name for spec in result.specs} == {"api."}


def test_needs_prefix_fixup_predicate():
    assert needs_prefix_fixup("www.#", ["Z1"]) is True
    assert needs_prefix_fixup("www.", ["Z1", "Z2"]) is True
    assert needs_prefix_fixup("www.example.com", ["Z1"]) is False


@pytest.mark.parametrize(
    ("value", "cause"),
    [
        ("Z1", "field_count"),
        ("Z1:A:www.example.com:30:extra", "field_count"),
        (":www.example.com", "zone_ids"),
        ("Z1,,Z2:www.", "zone_ids"),
        ("Z1:MX:www.example.com:30", "record_type"),
        ("Z1:a:www.example.com", "record_type"),
        ("Z1:MX:www.example.com", "record_type"),
        ("Z1:A:www.example.com:abc", "ttl"),
        ("Z1:A:www.example.com:-5", "ttl"),
        ("Z1:A:www.example.com:1_0", "ttl"),
        ("Z1:A:www.example.com:\u0663\u0660", "ttl"),
        ("Z1:A: :30", "record_name"),
    ],
)
def test_malformed_entries_fail_with_cause(value, cause):
    error = _decode_error(value)

    assert error.cause == cause
    assert error.group_name == GROUP
    assert error.tag_name == "Route53"
    assert GROUP in str(error)
    assert "Route53" in str(error)


@pytest.mark.parametrize("value", [None, "", "   ", "none"])
def test_ignorable_values_decode_to_none(value):
    assert decode_tag_value(value, GROUP) is None


def test_json_array_is_decoded_in_order():
    result = decode_tag_value('["Z1:CNAME:www.example.com:30", "Z2:A:www.#"]', GROUP)

    assert result.zone_count == 2
    first, second = result.specs
    assert (first.zone_id, first.record_type, first.ttl, first.needs_fixup) == ("Z1", "CNAME", 30, False)
    assert (second.zone_id, second.record_type, second.record_name, second.needs_fixup) == ("Z2", "A", "www.", True)


def test_json_array_stops_at_first_malformed_entry():
    error = _decode_error('["Z1:A:a.example.com", "bad-entry", "Z3:A:c.#:abc"]')

    assert error.cause == "field_count"
    assert "bad-entry" in str(error)


def test_empty_json_array_has_no_zones():
    assert _decode_error("[]").cause == "no_zones"


@pytest.mark.parametrize("value", ["[not json", "[1, 2]", '["Z1:www.example.com", null]'])
def test_invalid_json_arrays(value):
    assert _decode_error(value).cause == "json"


def test_scalar_value_is_trimmed_before_decoding():
    result = decode_tag_value("  Z1:www.example.com  ", GROUP)

    assert result.specs[0].record_name == "www.example.com"


def test_fetch_tag_value_filters_on_group_and_key():
    autoscaling = MagicMock()
    autoscaling.describe_tags.return_value = {"Tags": [{"Key": "Route53", "Value": "Z1:www.example.com"}]}

    assert fetch_tag_value(autoscaling, GROUP) == "Z1:www.example.com"
    autoscaling.describe_tags.assert_called_once_with(
        Filters=[
            {"Name": "auto-scaling-group", "Values": [GROUP]},
            {"Name": "key", "Values": ["Route53"]},
        ],
        MaxRecords=1,
    )


def test_fetch_tag_value_missing_tag():
    autoscaling = MagicMock()
    autoscaling.describe_tags.return_value = {"Tags": []}

    assert fetch_tag_value(autoscaling, GROUP) is None
