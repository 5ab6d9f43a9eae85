import pytest

from conftest import ORACLE_RESULT, OWNER_ID, application_payload, score_count
from loan_scoring.core.exceptions import ScoreConflictError
from loan_scoring.database.memory_storage import InMemoryLoanStorage
from loan_scoring.schemas.loan_schema import CreateLoanRequest, LoanApplicationFields
from loan_scoring.schemas.score_schema import LoanScoreCreate, OracleScoringResponse


def split_request(payload):
    request = CreateLoanRequest.model_validate(payload)
    fields = LoanApplicationFields.model_validate(request.model_dump(exclude={"documents"}))
    return fields, request.documents


class FailingDocumentStorage(InMemoryLoanStorage):
    def _build_document(self, application_id, document):
        if document.type.value == "bank_statement":
            raise RuntimeError("disk full")
        return super()._build_document(application_id, document)


@pytest.mark.asyncio
async def test_failed_document_leaves_nothing_behind():
    storage = FailingDocumentStorage()
    fields, documents = split_request(application_payload())

    with pytest.raises(RuntimeError):
        await storage.create_application_with_documents(OWNER_ID, fields, documents)

    assert await storage.list_by_owner(OWNER_ID) == []


@pytest.mark.asyncio
async def test_reads_return_copies(storage):
    fields, documents = split_request(application_payload())
    created = await storage.create_application_with_documents(OWNER_ID, fields, documents)

    fetched = await storage.get_by_id(created.id)
    fetched.purpose = "changed"
    assert (await storage.get_by_id(created.id)).purpose == "Car purchase"


@pytest.mark.asyncio
async def test_at_most_one_score_per_application(storage):
    fields, documents = split_request(application_payload())
    created = await storage.create_application_with_documents(OWNER_ID, fields, documents)
    score = LoanScoreCreate.from_oracle(created.id, OracleScoringResponse.model_validate(ORACLE_RESULT))

    stored = await storage.create_score(score)
    with pytest.raises(ScoreConflictError):
        await storage.create_score(score)

    assert score_count(storage) == 1
    assert (await storage.get_score(created.id)).id == stored.id


@pytest.mark.asyncio
async def test_unknown_ids(storage):
    assert await storage.get_by_id("nope") is None
    assert await storage.get_documents("nope") == []
    assert await storage.get_score("nope") is None
