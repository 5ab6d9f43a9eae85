from .api_client import LoanApiClient, LoanApiError
from .wizard import ApplicationWizard, WizardStep, WizardError, WizardTransitionError
