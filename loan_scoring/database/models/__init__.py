from .loan_application_model import LoanApplication
from .document_model import LoanDocument
from .score_model import LoanAiScore
