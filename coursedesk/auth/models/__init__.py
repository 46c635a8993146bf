from coursedesk.core.database import Base
from .users import User

__all__ = ["Base", "User"]
