"""Services package — expose all concrete services from one import."""
from .user_service import UserService, default_record
from .level_service import LevelService
from .session_service import SessionService

__all__ = [
    'UserService',
    'default_record',
    'LevelService',
    'SessionService',
]
