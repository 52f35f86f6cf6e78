from harvester.auth.credentials import (
    CredentialStore,
    FileCredentialStore,
    RedisCredentialStore,
    build_credential_store,
)
from harvester.auth.manager import SessionManager, evaluate_login_status

__all__ = [
    "CredentialStore",
    "FileCredentialStore",
    "RedisCredentialStore",
    "SessionManager",
    "build_credential_store",
    "evaluate_login_status",
]
