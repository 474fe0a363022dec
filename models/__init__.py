"""
Persistence layer. The application factory builds one DBStorage and one
RevocationStore per app and registers them in app.extensions.
"""
from models.db_storage import DBStorage
from models.revocation_store import RevocationStore
from models.user import User

__all__ = ["DBStorage", "RevocationStore", "User"]
