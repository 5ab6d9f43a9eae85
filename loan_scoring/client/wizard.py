"""Four-step application wizard.

Sequencing for the intake form: financing details, financial profile,
documents and review. Each forward move validates the current step and
merges its values into the accumulated form state; moving back never loses
data. Leaving the documents step requires the document gate to pass, and a
failed submission leaves the wizard on the review step with the error
recorded and nothing discarded.
"""
import logging
import uuid
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import ConfigDict, Field, ValidationError as PydanticValidationError, field_validator
from pydantic.alias_generators import to_camel

from loan_scoring.client.api_client import LoanApiError
from loan_scoring.schemas.loan_schema import CamelModel, ContractTypeEnum, DocumentTypeEnum, reject_bool
from loan_scoring.services.document_requirements import DocumentGate, evaluate

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    FINANCING_DETAILS = 0
    FINANCIAL_PROFILE = 1
    DOCUMENTS = 2
    REVIEW = 3


class WizardTransitionError(Exception):
    pass


@dataclass
class WizardError:
    message: str
    field: Optional[str] = None


class FinancingDetailsForm(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    requested_amount: float = Field(..., gt=0, allow_inf_nan=False)
    duration_months: int = Field(..., gt=0)
    contract_type: ContractTypeEnum
    purpose: str = Field(..., min_length=1)
    asset_type: Optional[str] = None

    @field_validator("requested_amount", "duration_months", mode="before")
    @classmethod
    def numbers_are_not_booleans(cls, value):
        return reject_bool(value)

    @field_validator("asset_type", mode="before")
    @classmethod
    def blank_asset_type(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FinancialProfileForm(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    monthly_income: float = Field(..., ge=0, allow_inf_nan=False)
    employment_type: str = Field(..., min_length=1)
    employer_name: str = Field(..., min_length=1)
    monthly_expenses: float = Field(..., ge=0, allow_inf_nan=False)
    other_debts: float = Field(default=0, ge=0, allow_inf_nan=False)

    @field_validator("monthly_income", "monthly_expenses", "other_debts", mode="before")
    @classmethod
    def numbers_are_not_booleans(cls, value):
        return reject_bool(value)

    @field_validator("other_debts", mode="before")
    @classmethod
    def blank_other_debts(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value


STEP_FORMS: Dict[WizardStep, Type[CamelModel]] = {
    WizardStep.FINANCING_DETAILS: FinancingDetailsForm,
    WizardStep.FINANCIAL_PROFILE: FinancialProfileForm,
}


def _to_wire_names(form: Type[CamelModel], data: Mapping[str, Any]) -> Dict[str, Any]:
    # Keyed by alias so validation errors name fields the way the API does
    aliases = {name: (info.alias or name) for name, info in form.model_fields.items()}
    return {aliases.get(key, key): value for key, value in data.items()}


class ApplicationWizard:

    def __init__(self, client, idempotency_key: Optional[str] = None):
        self.client = client
        self.step = WizardStep.FINANCING_DETAILS
        self.form_data: Dict[str, Any] = {}
        self.documents: List[Dict[str, str]] = []
        self.error: Optional[WizardError] = None
        self.created_application: Optional[Dict[str, Any]] = None
        # One key per wizard session so a retried submission cannot create a duplicate
        self.idempotency_key = idempotency_key or str(uuid.uuid4())

    @property
    def completed(self) -> bool:
        return self.created_application is not None

    @property
    def document_gate(self) -> DocumentGate:
        return evaluate(self.documents, self.form_data.get("contract_type"))

    def next(self, data: Optional[Mapping[str, Any]] = None) -> bool:
        """Validate the current step and advance. Returns False and records the error on failure."""
        self._ensure_open()
        if self.step == WizardStep.REVIEW:
            raise WizardTransitionError("Review is the last step; call submit()")

        if self.step == WizardStep.DOCUMENTS:
            if not self.document_gate.can_proceed:
                self.error = WizardError("Required documents are missing", field="documents")
                return False
        else:
            form = STEP_FORMS[self.step]
            stored = {name: self.form_data[name] for name in form.model_fields if name in self.form_data}
            current = _to_wire_names(form, stored)
            current.update(_to_wire_names(form, data or {}))
            try:
                validated = form.model_validate(current)
            except PydanticValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(part) for part in first.get("loc", ()))
                self.error = WizardError(first.get("msg", "Invalid value"), field=field or None)
                logger.debug(f"Step {self.step.name} rejected: {self.error}")
                return False
            self.form_data.update(validated.model_dump(mode="json"))

        self.error = None
        self.step = WizardStep(self.step + 1)
        return True

    def back(self, to_step: Optional[WizardStep] = None) -> None:
        self._ensure_open()
        target = self.step - 1 if to_step is None else int(to_step)
        if not WizardStep.FINANCING_DETAILS <= target < self.step:
            raise WizardTransitionError(f"Cannot go back from {self.step.name} to step {target}")
        self.error = None
        self.step = WizardStep(target)

    def add_document(self, document_type: str, file_name: str, file_url: str) -> DocumentGate:
        self._ensure_open()
        tag = DocumentTypeEnum(document_type).value
        self.documents.append({"type": tag, "fileName": file_name, "fileUrl": file_url})
        return self.document_gate

    def remove_document(self, index: int) -> DocumentGate:
        self._ensure_open()
        del self.documents[index]
        return self.document_gate

    def build_payload(self) -> Dict[str, Any]:
        payload = {to_camel(key): value for key, value in self.form_data.items()}
        payload["documents"] = [dict(doc) for doc in self.documents]
        return payload

    async def submit(self) -> Optional[Dict[str, Any]]:
        """Create the application. On failure stay on review with ``error`` set."""
        self._ensure_open()
        if self.step != WizardStep.REVIEW:
            raise WizardTransitionError("Submission is only possible from the review step")

        try:
            created = await self.client.create_loan(self.build_payload(), idempotency_key=self.idempotency_key)
        except LoanApiError as e:
            self.error = WizardError(e.message, field=e.field)
            logger.warning(f"Application submission failed: {e.message}")
            return None

        self.error = None
        self.created_application = created
        logger.info(f"Application {created.get('id')} submitted")
        return created

    def _ensure_open(self) -> None:
        if self.completed:
            raise WizardTransitionError("Application already submitted")
