from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from enum import Enum
from typing import List, Optional
from datetime import datetime


class ContractTypeEnum(str, Enum):
    murabahah = "Murabahah"
    musharakah = "Musharakah"
    qard_hasan = "Qard Hasan"


class ApplicationStatusEnum(str, Enum):
    submitted = "submitted"
    processing = "processing"
    approved = "approved"
    rejected = "rejected"
    manual_review = "manual_review"


class DocumentTypeEnum(str, Enum):
    identity = "identity"
    income = "income"
    bank_statement = "bank_statement"
    car_quotation = "car_quotation"
    proforma_invoice = "proforma_invoice"
    sale_agreement = "sale_agreement"


def reject_bool(value):
    # JSON true/false would otherwise coerce to 1/0
    if isinstance(value, bool):
        raise ValueError("Expected a number")
    return value


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoanDocumentInput(CamelModel):
    """A document reference attached to a new application."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    type: DocumentTypeEnum = Field(..., description="Document tag from the controlled vocabulary")
    file_name: str = Field(..., min_length=1, description="Original file name")
    file_url: str = Field(..., min_length=1, description="Opaque reference to the stored object")


class LoanApplicationFields(CamelModel):
    """Fields an applicant submits. Declaration order is validation order."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    requested_amount: float = Field(..., gt=0, allow_inf_nan=False, description="Requested financing amount")
    duration_months: int = Field(..., gt=0, description="Financing duration in months")
    contract_type: ContractTypeEnum = Field(..., description="Islamic financing contract")
    purpose: str = Field(..., min_length=1, description="Purpose of financing")
    asset_type: Optional[str] = Field(None, description="Asset being financed (Murabahah)")
    monthly_income: float = Field(..., ge=0, allow_inf_nan=False)
    employment_type: str = Field(..., min_length=1)
    employer_name: Optional[str] = Field(None)
    monthly_expenses: float = Field(..., ge=0, allow_inf_nan=False)
    other_debts: float = Field(default=0, ge=0, allow_inf_nan=False)

    @field_validator(
        "requested_amount", "duration_months", "monthly_income", "monthly_expenses", "other_debts", mode="before"
    )
    @classmethod
    def numbers_are_not_booleans(cls, value):
        return reject_bool(value)


class CreateLoanRequest(LoanApplicationFields):
    """Request body for ``POST /api/loans``."""
    documents: List[LoanDocumentInput] = Field(default_factory=list)


class LoanApplicationSchema(LoanApplicationFields):
    id: str
    user_id: str
    status: ApplicationStatusEnum = ApplicationStatusEnum.submitted
    created_at: datetime


class LoanDocumentSchema(CamelModel):
    id: str
    application_id: str
    type: str
    file_name: str
    file_url: str
    created_at: datetime
