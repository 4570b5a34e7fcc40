from __future__ import annotations

import csv
import logging
import math
from datetime import datetime, timedelta
from io import StringIO
from typing import Dict, List, Optional, Sequence, Union

from .models import Transaction


logger = logging.getLogger("money_muling_analysis.ingest")


REQUIRED_COLUMNS = [
    "transaction_id",
    "sender_id",
    "receiver_id",
    "amount",
    "timestamp",
]

COLUMN_ALIASES: Dict[str, str] = {
    "tx_id": "transaction_id",
    "txn_id": "transaction_id",
    "trans_id": "transaction_id",
    "transactionid": "transaction_id",
    "transaction_id": "transaction_id",
    "id": "transaction_id",
    "sender_account_id": "sender_id",
    "sender": "sender_id",
    "from_id": "sender_id",
    "from_account": "sender_id",
    "source_id": "sender_id",
    "source": "sender_id",
    "sender_id": "sender_id",
    "senderid": "sender_id",
    "receiver_account_id": "receiver_id",
    "receiver": "receiver_id",
    "to_id": "receiver_id",
    "to_account": "receiver_id",
    "target_id": "receiver_id",
    "destination_id": "receiver_id",
    "receiver_id": "receiver_id",
    "receiverid": "receiver_id",
    "tx_amount": "amount",
    "txn_amount": "amount",
    "transaction_amount": "amount",
    "value": "amount",
    "amount": "amount",
    "timestamp": "timestamp",
    "date": "timestamp",
    "datetime": "timestamp",
    "time": "timestamp",
    "tx_date": "timestamp",
    "transaction_date": "timestamp",
}

# Bare numeric timestamps are hour offsets from this instant
HOUR_OFFSET_EPOCH = datetime(2025, 1, 1)

# Tried in order when the value is not ISO 8601
TIMESTAMP_FORMATS = [
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y %H:%M",
    "%d-%m-%Y",
]


class CSVFormatError(ValueError):
    pass


def build_column_mapping(headers: Sequence[str]) -> Dict[str, str]:
    """Map standard column names to the header that supplies them."""
    mapping: Dict[str, str] = {}
    for header in headers:
        standard = COLUMN_ALIASES.get(header.strip().lower())
        if standard and standard not in mapping:
            mapping[standard] = header

    missing = [c for c in REQUIRED_COLUMNS if c not in mapping]
    if missing:
        raise CSVFormatError(
            f"CSV missing required columns: {', '.join(missing)}. "
            f"Found columns: [{', '.join(headers)}]"
        )
    return mapping


def _parse_with_formats(raw: str) -> Optional[datetime]:
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def parse_timestamp(raw: str) -> Optional[datetime]:
    raw = raw.strip()
    if not raw:
        return None
    if len(raw) <= 10 and "-" not in raw:
        try:
            return HOUR_OFFSET_EPOCH + timedelta(hours=float(raw))
        except (ValueError, OverflowError):
            pass
    try:
        ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return _parse_with_formats(raw)
    # naive and aware datetimes do not compare; normalize to naive UTC
    if ts.tzinfo is not None:
        ts = (ts - ts.utcoffset()).replace(tzinfo=None)
    return ts


def parse_amount(raw: str) -> Optional[float]:
    try:
        amount = float(raw.strip())
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def parse_csv(data: Union[bytes, str]) -> List[Transaction]:
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CSVFormatError("CSV must be UTF-8 encoded.") from exc

    reader = csv.DictReader(StringIO(data))
    if reader.fieldnames is None:
        raise CSVFormatError("CSV file has no header row.")

    mapping = build_column_mapping(reader.fieldnames)
    logger.info("CSV column mapping: %s", mapping)

    transactions: List[Transaction] = []
    skipped = 0
    for line_no, row in enumerate(reader, start=2):  # row 1 is header
        fields = {std: str(row.get(header) or "").strip() for std, header in mapping.items()}
        if not (fields["transaction_id"] and fields["sender_id"] and fields["receiver_id"]):
            continue

        amount = parse_amount(fields["amount"])
        ts = parse_timestamp(fields["timestamp"])
        if amount is None or ts is None:
            skipped += 1
            logger.debug("Skipping CSV line %d: amount=%r timestamp=%r",
                         line_no, fields["amount"], fields["timestamp"])
            continue

        transactions.append(
            Transaction(
                transaction_id=fields["transaction_id"],
                sender_id=fields["sender_id"],
                receiver_id=fields["receiver_id"],
                amount=amount,
                timestamp=ts,
            )
        )

    if skipped:
        logger.warning("Skipped %d CSV rows with invalid amount or timestamp", skipped)
    logger.info("Parsed %d valid transactions", len(transactions))
    return transactions
