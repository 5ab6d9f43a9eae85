import httpx
import pytest

from loan_scoring.client import ApplicationWizard, LoanApiClient, LoanApiError, WizardStep, WizardTransitionError
from loan_scoring.main import app

FINANCING = {
    "requestedAmount": "50000",
    "durationMonths": "24",
    "contractType": "Murabahah",
    "purpose": "Car purchase",
    "assetType": "",
}

PROFILE = {
    "monthlyIncome": 5000,
    "employmentType": "Full-time",
    "employerName": "Acme Sdn Bhd",
    "monthlyExpenses": 2000,
    "otherDebts": "",
}


class RecordingClient:
    def __init__(self, error=None):
        self.error = error
        self.submitted = []

    async def create_loan(self, payload, idempotency_key=None):
        self.submitted.append((payload, idempotency_key))
        if self.error:
            raise self.error
        return {"id": "1", **payload}


def add_required_documents(wizard, asset_proof=True):
    wizard.add_document("identity", "ic.pdf", "uploads/a/ic.pdf")
    wizard.add_document("income", "payslip.pdf", "uploads/b/payslip.pdf")
    wizard.add_document("bank_statement", "bank.pdf", "uploads/c/bank.pdf")
    if asset_proof:
        wizard.add_document("car_quotation", "quote.pdf", "uploads/d/quote.pdf")


def wizard_at_review(client=None):
    wizard = ApplicationWizard(client or RecordingClient())
    assert wizard.next(FINANCING)
    assert wizard.next(PROFILE)
    add_required_documents(wizard)
    assert wizard.next()
    return wizard


def test_steps_coerce_and_store_values():
    wizard = ApplicationWizard(RecordingClient())
    assert wizard.next(FINANCING)
    assert wizard.step == WizardStep.FINANCIAL_PROFILE
    assert wizard.form_data["requested_amount"] == 50000
    assert wizard.form_data["duration_months"] == 24
    assert wizard.form_data["asset_type"] is None

    assert wizard.next(PROFILE)
    assert wizard.form_data["other_debts"] == 0
    assert wizard.step == WizardStep.DOCUMENTS


def test_invalid_step_stays_put_with_error():
    wizard = ApplicationWizard(RecordingClient())
    assert not wizard.next({**FINANCING, "requestedAmount": 0})
    assert wizard.step == WizardStep.FINANCING_DETAILS
    assert wizard.error.field == "requestedAmount"


def test_employer_name_required_in_wizard():
    wizard = ApplicationWizard(RecordingClient())
    wizard.next(FINANCING)
    assert not wizard.next({**PROFILE, "employerName": ""})
    assert wizard.error.field == "employerName"


def test_back_keeps_entered_data():
    wizard = ApplicationWizard(RecordingClient())
    wizard.next(FINANCING)
    wizard.next(PROFILE)
    wizard.back(WizardStep.FINANCING_DETAILS)

    assert wizard.step == WizardStep.FINANCING_DETAILS
    assert wizard.form_data["employer_name"] == "Acme Sdn Bhd"
    assert wizard.next()
    assert wizard.next()
    assert wizard.step == WizardStep.DOCUMENTS


def test_cannot_go_back_from_first_step():
    with pytest.raises(WizardTransitionError):
        ApplicationWizard(RecordingClient()).back()


def test_back_rejects_steps_out_of_range():
    wizard = ApplicationWizard(RecordingClient())
    wizard.next(FINANCING)

    for target in (9, -1, WizardStep.FINANCIAL_PROFILE):
        with pytest.raises(WizardTransitionError):
            wizard.back(target)
    assert wizard.step == WizardStep.FINANCIAL_PROFILE


def test_revisited_step_reports_wire_field_names():
    wizard = ApplicationWizard(RecordingClient())
    wizard.next(FINANCING)
    wizard.back()

    assert not wizard.next({"duration_months": 0})
    assert wizard.error.field == "durationMonths"
    assert wizard.form_data["duration_months"] == 24


def test_boolean_amounts_are_rejected():
    wizard = ApplicationWizard(RecordingClient())
    assert not wizard.next({**FINANCING, "requestedAmount": True})
    assert wizard.error.field == "requestedAmount"


def test_documents_gate_blocks_until_satisfied():
    wizard = ApplicationWizard(RecordingClient())
    wizard.next(FINANCING)
    wizard.next(PROFILE)

    add_required_documents(wizard, asset_proof=False)
    assert wizard.document_gate.tier1_satisfied
    assert not wizard.document_gate.asset_proof_satisfied
    assert not wizard.next()
    assert wizard.error.field == "documents"
    assert wizard.step == WizardStep.DOCUMENTS

    gate = wizard.add_document("sale_agreement", "spa.pdf", "uploads/e/spa.pdf")
    assert gate.can_proceed
    assert wizard.next()
    assert wizard.step == WizardStep.REVIEW


def test_unknown_document_tag_is_rejected():
    with pytest.raises(ValueError):
        ApplicationWizard(RecordingClient()).add_document("passport", "p.pdf", "uploads/p.pdf")


def test_payload_uses_wire_names():
    wizard = wizard_at_review()
    payload = wizard.build_payload()
    assert payload["requestedAmount"] == 50000
    assert payload["contractType"] == "Murabahah"
    assert payload["otherDebts"] == 0
    assert payload["documents"][0] == {"type": "identity", "fileName": "ic.pdf", "fileUrl": "uploads/a/ic.pdf"}


@pytest.mark.asyncio
async def test_submit_only_from_review():
    wizard = ApplicationWizard(RecordingClient())
    with pytest.raises(WizardTransitionError):
        await wizard.submit()


@pytest.mark.asyncio
async def test_failed_submission_keeps_state():
    client = RecordingClient(error=LoanApiError(400, "Number must be greater than 0", "requestedAmount"))
    wizard = wizard_at_review(client)

    assert await wizard.submit() is None
    assert wizard.step == WizardStep.REVIEW
    assert wizard.error.field == "requestedAmount"
    assert len(wizard.documents) == 4
    assert not wizard.completed

    client.error = None
    created = await wizard.submit()
    assert created["id"] == "1"
    assert wizard.completed
    assert client.submitted[0][1] == client.submitted[1][1] == wizard.idempotency_key


@pytest.mark.asyncio
async def test_no_edits_after_submission():
    wizard = wizard_at_review()
    await wizard.submit()
    with pytest.raises(WizardTransitionError):
        wizard.back()


@pytest.mark.asyncio
async def test_submit_against_api(client):
    api = LoanApiClient("http://testserver", transport=httpx.ASGITransport(app=app))
    wizard = wizard_at_review(api)

    created = await wizard.submit()
    assert created["userId"] == "user-1"
    assert created["contractType"] == "Murabahah"

    listed = await api.list_loans()
    assert [a["id"] for a in listed] == [created["id"]]

    detail = await api.get_loan(created["id"])
    assert [d["type"] for d in detail["documents"]] == ["identity", "income", "bank_statement", "car_quotation"]

    score = await api.assess_loan(created["id"])
    assert score["finalScore"] == 72


@pytest.mark.asyncio
async def test_api_errors_surface_message_and_field(client):
    api = LoanApiClient("http://testserver", transport=httpx.ASGITransport(app=app))
    with pytest.raises(LoanApiError) as exc_info:
        await api.get_loan("999")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Loan not found"
