"""Tests for the import request schemas."""

from ledgerflow.domain.imports import CandidateRecord, RecordMapper
from ledgerflow.presentation.api.schemas.imports import (
    CandidateRecordRequest,
    UploadImportRequest,
)
from tests.shared.fakes import TEST_ACCOUNT_ID, TEST_USER_ID


class TestCandidateRecordRequest:
    def test_category_suggestions_reach_the_ledger_transaction(self):
        body = UploadImportRequest.model_validate(
            {
                "account_id": str(TEST_ACCOUNT_ID),
                "records": [
                    {
                        "external_id": "tx-1",
                        "amount": "12.50",
                        "date": "2025-11-10",
                        "category_id": "groceries",
                        "subcategory_id": "supermarket",
                    },
                ],
            },
        )

        candidate = CandidateRecord.from_dict(body.records[0].model_dump())
        tx = RecordMapper().map(candidate, account_id=TEST_ACCOUNT_ID, user_id=TEST_USER_ID)

        assert candidate.category_id == "groceries"
        assert tx.category_id == "groceries"
        assert tx.subcategory_id == "supermarket"

    def test_category_suggestions_are_optional(self):
        record = CandidateRecordRequest(external_id="tx-1", amount="1", date="2025-11-10")

        assert record.category_id is None
        assert record.subcategory_id is None
