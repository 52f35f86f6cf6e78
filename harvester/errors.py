"""Harvester error hierarchy."""


class HarvesterError(Exception):
    """Base error for harvester operations."""


class BrowserError(HarvesterError):
    """A browser query or element interaction failed (recoverable)."""


class BrowserTimeout(BrowserError):
    """A bounded wait on the browsing session elapsed."""


class SessionCrashed(HarvesterError):
    """The browsing session is gone (page, context or browser closed)."""


class FieldNotFound(HarvesterError):
    """No locator candidate produced the requested field or control."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Could not find {field}")


class SessionInvalid(HarvesterError):
    """No usable session: the stored credential is missing or failed validation."""


class AuthenticationRejected(HarvesterError):
    """The login page reported invalid credentials."""


class ExtractionEmpty(HarvesterError):
    """No post containers were found after every discovery strategy."""

    def __init__(self, url: str, title: str = "") -> None:
        self.url = url
        self.title = title
        super().__init__(f"No post containers found at {url}")


class StoreConflict(HarvesterError):
    """An insert collided with an existing record's identity key."""


class CredentialStoreError(HarvesterError):
    """Reading or writing the persisted cookie jar failed."""
