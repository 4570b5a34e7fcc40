from datetime import datetime

import pytest

from muling_engine.ingest import CSVFormatError, build_column_mapping, parse_csv, parse_timestamp


CSV_STANDARD = """transaction_id,sender_id,receiver_id,amount,timestamp
T1,ACC_001,ACC_002,1000.00,2024-01-10 10:00:00
T2,ACC_002,ACC_003,900.50,2024-01-10 11:00:00
"""


class TestColumnMapping:
    def test_standard_headers(self):
        mapping = build_column_mapping(
            ["transaction_id", "sender_id", "receiver_id", "amount", "timestamp"]
        )
        assert mapping["amount"] == "amount"

    def test_alias_resolution(self):
        mapping = build_column_mapping(["Txn_ID", " From_Account ", "to_id", "Value", "Date"])
        assert mapping == {
            "transaction_id": "Txn_ID",
            "sender_id": " From_Account ",
            "receiver_id": "to_id",
            "amount": "Value",
            "timestamp": "Date",
        }

    def test_first_alias_wins(self):
        mapping = build_column_mapping(["id", "tx_id", "sender", "receiver", "amount", "time"])
        assert mapping["transaction_id"] == "id"

    def test_missing_columns(self):
        with pytest.raises(CSVFormatError) as exc:
            build_column_mapping(["transaction_id", "sender_id", "receiver_id"])
        assert "amount" in str(exc.value)
        assert "timestamp" in str(exc.value)


class TestTimestamps:
    def test_iso(self):
        assert parse_timestamp("2024-01-10 10:00:00") == datetime(2024, 1, 10, 10, 0, 0)
        assert parse_timestamp("2024-01-10T10:00:00") == datetime(2024, 1, 10, 10, 0, 0)

    def test_hour_offset(self):
        assert parse_timestamp("5") == datetime(2025, 1, 1, 5, 0, 0)
        assert parse_timestamp("49") == datetime(2025, 1, 3, 1, 0, 0)

    def test_aware_normalized_to_utc(self):
        assert parse_timestamp("2024-01-10T12:00:00+02:00") == datetime(2024, 1, 10, 10, 0, 0)

    def test_slash_and_day_first_formats(self):
        assert parse_timestamp("2024/01/15 10:00:00") == datetime(2024, 1, 15, 10, 0, 0)
        assert parse_timestamp("2024/01/15 10:30") == datetime(2024, 1, 15, 10, 30, 0)
        assert parse_timestamp("2024/01/15") == datetime(2024, 1, 15)
        assert parse_timestamp("01/15/2024 10:00:00") == datetime(2024, 1, 15, 10, 0, 0)
        assert parse_timestamp("01/15/2024") == datetime(2024, 1, 15)
        assert parse_timestamp("15-01-2024 10:00:00") == datetime(2024, 1, 15, 10, 0, 0)

    def test_ambiguous_slash_date_is_month_first(self):
        assert parse_timestamp("02/03/2024") == datetime(2024, 2, 3)

    def test_invalid(self):
        assert parse_timestamp("not-a-date") is None
        assert parse_timestamp("") is None


class TestParseCSV:
    def test_standard(self):
        txs = parse_csv(CSV_STANDARD)
        assert [t.transaction_id for t in txs] == ["T1", "T2"]
        assert txs[1].amount == 900.5
        assert txs[0].timestamp == datetime(2024, 1, 10, 10, 0, 0)

    def test_bytes_with_bom(self):
        txs = parse_csv(("\ufeff" + CSV_STANDARD).encode("utf-8"))
        assert len(txs) == 2

    def test_not_utf8(self):
        with pytest.raises(CSVFormatError):
            parse_csv(b"\xff\xfe\x00bad")

    def test_no_header(self):
        with pytest.raises(CSVFormatError):
            parse_csv("")

    def test_rows_filtered(self):
        data = (
            "tx_id,sender,receiver,tx_amount,datetime\n"
            "T1,A,B,100,2024-01-10 10:00:00\n"
            ",A,B,100,2024-01-10 10:00:00\n"
            "T3,A,,100,2024-01-10 10:00:00\n"
            "T4,A,B,abc,2024-01-10 10:00:00\n"
            "T5,A,B,nan,2024-01-10 10:00:00\n"
            "T6,A,B,100,yesterday\n"
            "T7, B , C ,250.5,3\n"
        )
        txs = parse_csv(data)
        assert [t.transaction_id for t in txs] == ["T1", "T7"]
        assert txs[1].sender_id == "B"
        assert txs[1].receiver_id == "C"
        assert txs[1].timestamp == datetime(2025, 1, 1, 3, 0, 0)

    def test_slash_dated_rows_kept(self):
        data = (
            "transaction_id,sender_id,receiver_id,amount,timestamp\n"
            "T1,A,B,10,2024/01/15 10:00:00\n"
            "T2,B,C,20,01/16/2024 09:30\n"
        )
        txs = parse_csv(data)
        assert [t.transaction_id for t in txs] == ["T1", "T2"]
        assert txs[0].timestamp == datetime(2024, 1, 15, 10, 0, 0)
        assert txs[1].timestamp == datetime(2024, 1, 16, 9, 30, 0)
