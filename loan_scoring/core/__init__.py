from .config import settings, Settings
from .security import create_access_token, decode_token
