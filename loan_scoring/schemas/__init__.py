from .loan_schema import (
    ContractTypeEnum,
    ApplicationStatusEnum,
    DocumentTypeEnum,
    LoanDocumentInput,
    LoanApplicationFields,
    CreateLoanRequest,
    LoanApplicationSchema,
    LoanDocumentSchema,
)
from .score_schema import (
    RiskCategoryEnum,
    DecisionEnum,
    OracleScoringResponse,
    LoanScoreCreate,
    LoanScoreSchema,
)
from .detail_schema import LoanApplicationDetail
from .upload_schema import UploadDescriptor, UploadTarget
