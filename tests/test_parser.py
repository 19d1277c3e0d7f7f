"""Tests for DatasetParser."""

import logging

import pytest

from aws_ip_lookup.models import ParseError, RawRanges
from aws_ip_lookup.parser import DatasetParser


def _v4(prefix, service="AMAZON", region="us-east-1"):
    return {
        "ip_prefix": prefix,
        "region": region,
        "service": service,
        "network_border_group": region,
    }


def _v6(prefix, service="AMAZON", region="us-east-1"):
    return {
        "ipv6_prefix": prefix,
        "region": region,
        "service": service,
        "network_border_group": region,
    }


class TestDatasetParser:
    """Test cases for DatasetParser."""

    def test_parse_fixture_document(self, ranges_document):
        dataset = DatasetParser().parse(ranges_document, "MISS")

        assert len(dataset.v4_entries) == 6
        assert len(dataset.v6_entries) == 4
        assert dataset.freshness_tag == "MISS"
        assert dataset.sync_token == "1700000000"
        assert dataset.create_date == "2023-11-14-22-13-20"

    def test_preserves_document_order(self, ranges_document):
        dataset = DatasetParser().parse(ranges_document, "MISS")

        assert [e.cidr_text for e in dataset.v4_entries] == [
            p["ip_prefix"] for p in ranges_document["prefixes"]
        ]
        assert [e.cidr_text for e in dataset.v6_entries] == [
            p["ipv6_prefix"] for p in ranges_document["ipv6_prefixes"]
        ]

    def test_duplicate_prefixes_are_not_merged(self):
        raw = {"prefixes": [_v4("52.0.0.0/15", "AMAZON"), _v4("52.0.0.0/15", "EC2")]}

        dataset = DatasetParser().parse(raw, "MISS")

        assert [e.service for e in dataset.v4_entries] == ["AMAZON", "EC2"]

    def test_keeps_metadata(self):
        raw = {"ipv6_prefixes": [_v6("2406:da60::/32", "EC2", "ap-east-1")]}

        entry = DatasetParser().parse(raw, "MISS").v6_entries[0]

        assert entry.cidr_text == "2406:da60::/32"
        assert entry.region == "ap-east-1"
        assert entry.service == "EC2"
        assert entry.network_border_group == "ap-east-1"

    def test_keeps_cidr_text_verbatim(self):
        raw = {"prefixes": [_v4("10.0.0.1/8")]}

        entry = DatasetParser().parse(raw, "MISS").v4_entries[0]

        assert entry.cidr_text == "10.0.0.1/8"
        assert str(entry.range_index.network) == "10.0.0.0/8"

    def test_missing_lists_are_empty(self):
        dataset = DatasetParser().parse({}, "UNKNOWN")

        assert dataset.v4_entries == ()
        assert dataset.v6_entries == ()

    def test_accepts_validated_document(self, ranges_document):
        document = RawRanges.model_validate(ranges_document)

        dataset = DatasetParser().parse(document, "Hit")

        assert len(dataset) == 10

    def test_invalid_cidr_fails_whole_parse(self):
        raw = {"prefixes": [_v4("52.0.0.0/15"), _v4("52.0.0.0/99"), _v4("3.5.140.0/22")]}

        with pytest.raises(ParseError) as exc_info:
            DatasetParser().parse(raw, "MISS")

        assert "52.0.0.0/99" in exc_info.value.error
        assert exc_info.value.record["ip_prefix"] == "52.0.0.0/99"

    def test_wrong_family_in_ipv4_list(self):
        raw = {"prefixes": [_v4("2406:da60::/32")]}

        with pytest.raises(ParseError):
            DatasetParser().parse(raw, "MISS")

    def test_wrong_family_in_ipv6_list(self):
        raw = {"ipv6_prefixes": [_v6("52.0.0.0/15")]}

        with pytest.raises(ParseError):
            DatasetParser().parse(raw, "MISS")

    def test_missing_field_fails(self):
        raw = {"prefixes": [{"ip_prefix": "52.0.0.0/15", "region": "us-east-1", "service": "EC2"}]}

        with pytest.raises(ParseError) as exc_info:
            DatasetParser().parse(raw, "MISS")

        assert "network_border_group" in exc_info.value.details

    def test_non_object_record_fails(self):
        with pytest.raises(ParseError):
            DatasetParser().parse({"prefixes": ["52.0.0.0/15"]}, "MISS")

    def test_non_list_prefixes_fails(self):
        with pytest.raises(ParseError) as exc_info:
            DatasetParser().parse({"prefixes": "52.0.0.0/15"}, "MISS")

        assert exc_info.value.error == "Invalid ranges document"

    def test_skip_malformed_drops_bad_records(self, caplog):
        raw = {
            "prefixes": [_v4("52.0.0.0/15"), _v4("bogus"), _v4("3.5.140.0/22")],
            "ipv6_prefixes": [_v6("10.0.0.0/8"), _v6("2406:da60::/32")],
        }

        with caplog.at_level(logging.WARNING, logger="aws_ip_lookup.parser"):
            dataset = DatasetParser(skip_malformed=True).parse(raw, "MISS")

        assert [e.cidr_text for e in dataset.v4_entries] == ["52.0.0.0/15", "3.5.140.0/22"]
        assert [e.cidr_text for e in dataset.v6_entries] == ["2406:da60::/32"]
        assert "Skipped 2 malformed prefix records" in caplog.text

    def test_skip_malformed_still_rejects_broken_document(self):
        with pytest.raises(ParseError):
            DatasetParser(skip_malformed=True).parse({"ipv6_prefixes": None}, "MISS")
