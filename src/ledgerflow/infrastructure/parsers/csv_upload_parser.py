"""Parser for bulk transaction uploads in CSV format."""

from __future__ import annotations

import csv
import logging
from io import StringIO
from typing import Optional, Union

from ledgerflow.domain.imports import CandidateRecord
from ledgerflow.domain.imports.exceptions import UploadParseError

logger = logging.getLogger(__name__)

# Accepted header spellings, mapped to CandidateRecord fields.
HEADER_ALIASES: dict[str, str] = {
    "external_id": "external_id",
    "id": "external_id",
    "transaction_id": "external_id",
    "amount": "amount",
    "date": "date",
    "booking_date": "date",
    "transaction_date": "date",
    "description": "description",
    "name": "description",
    "purpose": "description",
    "memo": "description",
    "merchant_name": "merchant_name",
    "merchant": "merchant_name",
    "counterparty": "merchant_name",
    "category_tags": "category_tags",
    "category": "category_tags",
    "tags": "category_tags",
    "primary_category": "primary_category",
    "payment_channel": "payment_channel",
    "channel": "payment_channel",
    "account_ref": "account_ref",
    "account": "account_ref",
    "account_id": "account_ref",
}

REQUIRED_FIELDS = ("external_id", "amount", "date")

TAG_SEPARATOR = "|"


def normalize_header(name: str) -> str:
    cleaned = name.strip().lstrip("\ufeff").strip().lower()
    return cleaned.replace(" ", "_").replace("-", "_")


class CsvUploadParser:
    """
    Turns an uploaded CSV file into candidate records.

    Only file-level problems (undecodable bytes, no header row, a required
    column missing) raise ``UploadParseError``. A bad value in a single row
    is passed through as-is so the record mapper rejects it and the import
    counts it as one error.
    """

    def __init__(self, encoding: str = "utf-8-sig"):
        self._encoding = encoding

    def parse(self, content: Union[bytes, str]) -> list[CandidateRecord]:
        """
        Parse CSV content.

        Parameters
        ----------
        content
            Raw file bytes or already decoded text. Comma and semicolon
            delimiters are both accepted.

        Returns
        -------
        One candidate per data row, in file order

        Raises
        ------
        UploadParseError
            If the file as a whole cannot be read
        """
        text = self._decode(content)
        if not text.strip():
            msg = "Uploaded file is empty"
            raise UploadParseError(msg)

        reader = csv.reader(StringIO(text), delimiter=self._detect_delimiter(text))
        try:
            header = next(reader)
        except csv.Error as e:
            msg = f"Uploaded file is not valid CSV: {e}"
            raise UploadParseError(msg) from e

        columns = self._map_header(header)

        records: list[CandidateRecord] = []
        try:
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                records.append(self._row_to_candidate(row, columns))
        except csv.Error as e:
            msg = f"Uploaded file is not valid CSV (line {reader.line_num}): {e}"
            raise UploadParseError(msg) from e

        logger.debug("Parsed %d records from CSV upload", len(records))
        return records

    def _decode(self, content: Union[bytes, str]) -> str:
        if isinstance(content, str):
            return content.lstrip("\ufeff")
        try:
            return content.decode(self._encoding)
        except UnicodeDecodeError as e:
            msg = f"Uploaded file is not {self._encoding} encoded"
            raise UploadParseError(msg) from e

    @staticmethod
    def _detect_delimiter(text: str) -> str:
        first_line = text.lstrip("\ufeff").splitlines()[0]
        return ";" if first_line.count(";") > first_line.count(",") else ","

    @staticmethod
    def _map_header(header: list[str]) -> dict[str, int]:
        columns: dict[str, int] = {}
        for index, name in enumerate(header):
            field_name = HEADER_ALIASES.get(normalize_header(name))
            if field_name and field_name not in columns:
                columns[field_name] = index

        missing = [f for f in REQUIRED_FIELDS if f not in columns]
        if missing:
            msg = f"Uploaded file is missing required column(s): {', '.join(missing)}"
            raise UploadParseError(msg)
        return columns

    @staticmethod
    def _row_to_candidate(row: list[str], columns: dict[str, int]) -> CandidateRecord:
        def cell(field_name: str) -> Optional[str]:
            index = columns.get(field_name)
            if index is None or index >= len(row):
                return None
            value = row[index].strip()
            return value or None

        raw_tags = cell("category_tags")
        tags = tuple(
            t.strip() for t in (raw_tags or "").split(TAG_SEPARATOR) if t.strip()
        )

        return CandidateRecord(
            external_id=cell("external_id"),
            amount=cell("amount"),
            date=cell("date"),
            description=cell("description") or "",
            merchant_name=cell("merchant_name"),
            category_tags=tags,
            primary_category=cell("primary_category"),
            payment_channel=cell("payment_channel"),
            account_ref=cell("account_ref"),
        )
