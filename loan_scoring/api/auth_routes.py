from fastapi import APIRouter, Depends, status
from typing import Dict

from loan_scoring.core.auth_dependencies import get_current_user

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"]
)


# Returns the identity of the authenticated caller
@router.get("/user", status_code=status.HTTP_200_OK)
async def get_current_user_info(current_user: Dict = Depends(get_current_user)) -> Dict:
    return {key: value for key, value in current_user.items() if value is not None}
