"""Parsers for uploaded transaction files."""

from ledgerflow.infrastructure.parsers.csv_upload_parser import CsvUploadParser

__all__ = ["CsvUploadParser"]
