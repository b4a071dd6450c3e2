"""
Unit tests for API payload parsing.
"""
from datetime import datetime, timezone

import pytest

from attestation_bot.services.models import (
    AttestationRecord,
    Campaign,
    RecordStatus,
    Role,
    parse_records,
    parse_timestamp
)
from tests.factories import campaign_payload, invite_payload, record_payload


class TestParseTimestamp:

    def test_iso_with_z_suffix(self):
        assert parse_timestamp("2025-03-14T12:00:00Z") == datetime(2025, 3, 14, 12, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2025-03-14T12:00:00").tzinfo == timezone.utc

    def test_epoch_milliseconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values(self, value):
        assert parse_timestamp(value) is None


class TestCampaign:

    def test_from_api(self):
        campaign = Campaign.from_api(campaign_payload(id=7, escalation_days=None))

        assert campaign.id == "7"
        assert campaign.escalation_days == 0
        assert campaign.is_active

    def test_negative_escalation_clamped(self):
        assert Campaign.from_api(campaign_payload(escalation_days=-3)).escalation_days == 0


class TestAttestationRecord:

    def test_registered_record(self):
        record = AttestationRecord.from_api(record_payload("5", "in_progress"))

        assert record.id == "5"
        assert record.status == RecordStatus.IN_PROGRESS
        assert record.key == "5"
        assert record.companies == frozenset({"Acme"})

    def test_pending_invite_is_unregistered(self):
        record = AttestationRecord.from_api(invite_payload("42"))

        assert record.status == RecordStatus.UNREGISTERED
        assert record.is_pending_invite
        assert record.key == "invite:42"

    def test_invite_and_record_keys_do_not_collide(self):
        record = AttestationRecord.from_api(record_payload("42"))
        invite = AttestationRecord.from_api(invite_payload("42"))

        assert record.key != invite.key

    def test_unknown_status_dropped(self):
        assert AttestationRecord.from_api(record_payload(status="archived")) is None

    def test_invite_without_invite_id_dropped(self):
        assert AttestationRecord.from_api(invite_payload(invite_id=None)) is None

    def test_record_without_id_dropped(self):
        assert AttestationRecord.from_api(record_payload(record_id=None)) is None


class TestParseRecords:

    def test_skips_malformed_entries(self):
        entries = [
            record_payload("1"),
            "not a record",
            record_payload("2", started_at="yesterday"),
            invite_payload("9"),
        ]

        records = parse_records(entries)

        assert [r.key for r in records] == ["1", "invite:9"]

    def test_none_is_empty(self):
        assert parse_records(None) == []


class TestRole:

    @pytest.mark.parametrize("raw,expected", [
        ("admin", Role.ADMIN),
        (" Manager ", Role.MANAGER),
        ("attestation_coordinator", Role.ATTESTATION_COORDINATOR),
        ("auditor", Role.EMPLOYEE),
        (None, Role.EMPLOYEE),
    ])
    def test_parse(self, raw, expected):
        assert Role.parse(raw) == expected
