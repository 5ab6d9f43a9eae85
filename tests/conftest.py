import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from loan_scoring.main import app
from loan_scoring.api.loan_routes import get_loan_storage, get_oracle_provider
from loan_scoring.core.auth_dependencies import get_current_user
from loan_scoring.core.idempotency import IdempotencyStore, get_idempotency_store
from loan_scoring.database.memory_storage import InMemoryLoanStorage

OWNER_ID = "user-1"
OTHER_ID = "user-2"

ORACLE_RESULT = {
    "affordability_score": 80,
    "stability_score": 70,
    "documentation_score": 90,
    "shariah_score": 85,
    "contract_compliance_score": 75,
    "final_score": 72,
    "risk_category": "Medium Risk",
    "decision": "Manual Review",
    "score_explanation": ["Stable income", "Debt ratio acceptable"],
    "key_risks": ["Short employment history"],
    "recommendations": ["Verify employer letter"],
    "contract_suitability_advice": "Murabahah suits an asset purchase",
    "shariah_warning_flag": "none",
}


def application_payload(**overrides):
    payload = {
        "requestedAmount": 50000,
        "durationMonths": 24,
        "contractType": "Murabahah",
        "purpose": "Car purchase",
        "assetType": "Vehicle",
        "monthlyIncome": 5000,
        "employmentType": "Full-time",
        "employerName": "Acme Sdn Bhd",
        "monthlyExpenses": 2000,
        "otherDebts": 0,
        "documents": [
            {"type": "identity", "fileName": "ic.pdf", "fileUrl": "uploads/a/ic.pdf"},
            {"type": "income", "fileName": "payslip.pdf", "fileUrl": "uploads/b/payslip.pdf"},
            {"type": "bank_statement", "fileName": "bank.pdf", "fileUrl": "uploads/c/bank.pdf"},
            {"type": "car_quotation", "fileName": "quote.pdf", "fileUrl": "uploads/d/quote.pdf"},
        ],
    }
    payload.update(overrides)
    return payload


def score_count(storage):
    return len(storage._scores)


class StubOracle:
    """Scoring model double that records calls and returns a canned reply."""

    def __init__(self, response=None, delay=0.0, error=None):
        self.response = json.dumps(ORACLE_RESULT) if response is None else response
        self.delay = delay
        self.error = error
        self.calls = 0
        self.requests = []

    async def complete(self, request):
        self.calls += 1
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def storage():
    return InMemoryLoanStorage()


@pytest.fixture
def oracle():
    return StubOracle()


@pytest.fixture
def current_user():
    return {"id": OWNER_ID, "email": "owner@example.com"}


@pytest.fixture
def client(storage, oracle, current_user):
    idempotency_store = IdempotencyStore()
    app.dependency_overrides = {}
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_loan_storage] = lambda: storage
    app.dependency_overrides[get_oracle_provider] = lambda: (lambda: oracle)
    app.dependency_overrides[get_idempotency_store] = lambda: idempotency_store
    yield TestClient(app)
    app.dependency_overrides = {}
