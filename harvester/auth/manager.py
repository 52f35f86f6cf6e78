"""Session Manager: one restore-or-login cycle per call.

The cycle is a state machine (see ``harvester.auth.states``) with one
transition coroutine per non-terminal state. Reaching Authenticated persists
the browser's cookie jar as a best-effort side effect; every other terminal
state leaves the stored jar untouched.

Login status is decided by a single layered check (``evaluate_login_status``):
1. Login or checkpoint URL → not logged in
2. Login form fields (#email and #pass) present → not logged in
3. Feed / main / navigation landmarks present → logged in
4. Otherwise logged in iff on the main domain off any login/checkpoint path
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence
from urllib.parse import urlsplit

from harvester.browser.base import BrowsingSession, PageElement
from harvester.config.settings import FacebookSettings, TimingSettings
from harvester.errors import AuthenticationRejected, BrowserError, FieldNotFound, HarvesterError
from harvester.extraction.selectors import (
    EMAIL_FIELD_LOCATORS,
    FEED_LANDMARK_LOCATOR,
    LOGIN_FORM_EMAIL_LOCATOR,
    LOGIN_FORM_PASSWORD_LOCATOR,
    PASSWORD_FIELD_LOCATORS,
    SUBMIT_BUTTON_LOCATORS,
)
from harvester.models.cookies import SessionCredential
from harvester.models.session import LoginCredentials, SessionOutcome

from .credentials import CredentialStore
from .states import (
    TERMINAL_STATES,
    TERMINAL_STATUS,
    Authenticated,
    AwaitingTwoFactor,
    CredentialExpired,
    Failed,
    LoginState,
    NoSession,
    PerformingFreshLogin,
    RestoringFromCredential,
    TerminalState,
    TwoFactorPending,
    Unknown,
)

logger = logging.getLogger(__name__)

TWO_FACTOR_MARKERS = ("Two-factor authentication", "two_step_verification")
REJECTION_MARKERS = ("The password that you", "incorrect password", "Wrong credentials")

LOGIN_URL_MARKERS = ("login.php", "/login/")
CHALLENGE_URL_MARKER = "checkpoint"

# Cookies need a loaded document on the target domain before they can be set.
DOMAIN_SETTLE_MS = 1000
LOGIN_PAGE_SETTLE_MS = 2000
TYPING_PAUSE_MS = 500

MISSING_CREDENTIALS = "Email and password are required"


def is_login_url(url: str) -> bool:
    return any(marker in url for marker in LOGIN_URL_MARKERS)


def is_challenge_url(url: str) -> bool:
    return CHALLENGE_URL_MARKER in url


def main_domain(base_url: str) -> str:
    """``https://www.facebook.com`` → ``facebook.com``."""
    host = urlsplit(base_url).hostname or base_url
    return host[4:] if host.startswith("www.") else host


def on_main_domain(url: str, domain: str) -> bool:
    return domain in url and "login" not in url and CHALLENGE_URL_MARKER not in url


async def evaluate_login_status(session: BrowsingSession, domain: str) -> bool:
    """Layered login check; see the module docstring for the order."""
    url = await session.current_url()
    logger.info("Checking login status at URL: %s", url)

    if is_login_url(url) or is_challenge_url(url):
        logger.info("Login or checkpoint page in URL - not logged in")
        return False

    try:
        email_fields = await session.find_all(LOGIN_FORM_EMAIL_LOCATOR)
        pass_fields = await session.find_all(LOGIN_FORM_PASSWORD_LOCATOR)
        if email_fields and pass_fields:
            logger.info("Login form fields present - not logged in")
            return False
    except BrowserError as e:
        logger.warning("Error checking for login form: %s", e)

    try:
        landmarks = await session.find_all(FEED_LANDMARK_LOCATOR)
        if landmarks:
            logger.info("Found %d feed/navigation landmarks - logged in", len(landmarks))
            return True
    except BrowserError as e:
        logger.warning("Error checking for feed landmarks: %s", e)

    logged_in = on_main_domain(url, domain)
    logger.info("Fallback domain check: logged_in=%s", logged_in)
    return logged_in


async def find_control(
    session: BrowsingSession,
    locators: Sequence[str],
    field: str,
    timeout_ms: int,
) -> PageElement:
    """First locator that appears within ``timeout_ms`` wins.

    Raises:
        FieldNotFound: no locator matched
    """
    for locator in locators:
        try:
            element = await session.wait_until_present(locator, timeout_ms)
        except BrowserError:
            continue
        logger.info("%s found using %s", field, locator)
        return element
    raise FieldNotFound(field)


Transition = Callable[[BrowsingSession, LoginState, Optional[LoginCredentials]], Awaitable[LoginState]]


class SessionManager:
    """Establishes an authenticated browsing session.

    Usage:
        manager = SessionManager(store, settings.facebook, settings.timing)
        outcome = await manager.establish(session, login)

    Raises (from ``establish``):
        FieldNotFound: a required login control could not be located
        AuthenticationRejected: the page reported bad credentials
        SessionCrashed: the browser went away mid-cycle
    """

    def __init__(
        self,
        store: CredentialStore,
        facebook: FacebookSettings,
        timing: TimingSettings,
    ) -> None:
        self.store = store
        self.facebook = facebook
        self.timing = timing
        self.domain = main_domain(facebook.base_url)
        self._transitions: dict[type, Transition] = {
            NoSession: self._from_no_session,
            RestoringFromCredential: self._restore,
            CredentialExpired: self._expire,
            PerformingFreshLogin: self._fresh_login,
            AwaitingTwoFactor: self._await_two_factor,
        }

    async def establish(
        self,
        session: BrowsingSession,
        login: LoginCredentials | None = None,
    ) -> SessionOutcome:
        state: LoginState = NoSession()
        while not isinstance(state, TERMINAL_STATES):
            next_state = await self.step(session, state, login)
            logger.info("Session state: %s -> %s", type(state).__name__, type(next_state).__name__)
            state = next_state

        if isinstance(state, Authenticated):
            await self.persist(session)
        return self.to_outcome(state)

    async def step(
        self,
        session: BrowsingSession,
        state: LoginState,
        login: LoginCredentials | None,
    ) -> LoginState:
        """Run the single transition out of ``state``."""
        return await self._transitions[type(state)](session, state, login)

    @staticmethod
    def to_outcome(state: TerminalState) -> SessionOutcome:
        status = TERMINAL_STATUS[type(state)]
        return SessionOutcome(
            status=status,
            message=state.message,
            url=getattr(state, "url", None),
            used_cookies=getattr(state, "used_cookies", False),
        )

    # ──────────────────────────────────────
    # Transitions
    # ──────────────────────────────────────

    async def _from_no_session(self, session, state, login) -> LoginState:
        credential = await self.store.load(self.facebook.session_name)
        if credential is not None and credential.cookies:
            logger.info("Found saved cookies, attempting to reuse session...")
            return RestoringFromCredential(credential)
        return self._login_or_fail(login)

    async def _restore(self, session, state: RestoringFromCredential, login) -> LoginState:
        await session.navigate(self.facebook.base_url)
        await session.sleep(DOMAIN_SETTLE_MS)

        try:
            await session.add_cookies(state.credential.cookies)
        except BrowserError as e:
            logger.warning("Failed to apply saved cookies: %s", e)

        await session.reload()
        await session.sleep(self.timing.restore_settle_ms)

        if await evaluate_login_status(session, self.domain):
            logger.info("Session restored successfully! Already logged in.")
            return Authenticated(
                url=await session.current_url(),
                message="Session restored from saved cookies. No login required!",
                used_cookies=True,
            )
        return CredentialExpired("Saved cookies are expired or invalid")

    async def _expire(self, session, state: CredentialExpired, login) -> LoginState:
        logger.warning("%s. Will perform fresh login.", state.reason)
        await self.store.delete(self.facebook.session_name)
        return self._login_or_fail(login)

    async def _fresh_login(self, session, state, login: LoginCredentials | None) -> LoginState:
        if login is None:
            return Failed(MISSING_CREDENTIALS)

        logger.info("Performing fresh login...")
        if self.domain not in await session.current_url():
            await session.navigate(self.facebook.base_url)
        await session.sleep(LOGIN_PAGE_SETTLE_MS)

        timeout = self.timing.field_wait_ms
        email = await find_control(session, EMAIL_FIELD_LOCATORS, "email input field", timeout)
        await email.fill(login.email)
        await session.sleep(TYPING_PAUSE_MS)

        password = await find_control(session, PASSWORD_FIELD_LOCATORS, "password input field", timeout)
        await password.fill(login.password.get_secret_value())
        await session.sleep(TYPING_PAUSE_MS)

        submit = await find_control(session, SUBMIT_BUTTON_LOCATORS, "login button", timeout)
        await submit.click()
        await session.sleep(self.timing.login_settle_ms)

        url = await session.current_url()
        markup = await session.page_markup()
        logger.info("Current URL after login: %s", url)

        if any(marker in markup for marker in TWO_FACTOR_MARKERS) or is_challenge_url(url):
            return AwaitingTwoFactor(url)
        if any(marker in markup for marker in REJECTION_MARKERS):
            raise AuthenticationRejected("Invalid credentials provided")
        if on_main_domain(url, self.domain):
            logger.info("Login successful!")
            return Authenticated(url=url, message="Successfully logged in")

        logger.warning("Login state unclear - keeping browser open")
        return Unknown(url=url, message="Login completed but final state is unclear. Check the browser.")

    async def _two_factor_present(self, session: BrowsingSession) -> bool:
        url = await session.current_url()
        if is_challenge_url(url) or any(marker in url for marker in TWO_FACTOR_MARKERS):
            return True
        markup = await session.page_markup()
        return any(marker in markup for marker in TWO_FACTOR_MARKERS)

    async def _await_two_factor(self, session, state: AwaitingTwoFactor, login) -> LoginState:
        total = self.timing.two_factor_wait_ms
        poll = self.timing.two_factor_poll_ms
        logger.warning("Two-factor challenge detected - waiting up to %ds for completion", total // 1000)

        # Ends early only once the challenge has left both the URL and the page.
        waited = 0
        while waited < total:
            chunk = min(poll, total - waited)
            await session.sleep(chunk)
            waited += chunk
            if not await self._two_factor_present(session):
                break

        url = await session.current_url()
        if not await self._two_factor_present(session) and await evaluate_login_status(session, self.domain):
            logger.info("Two-factor challenge completed")
            return Authenticated(url=url, message="Two-factor authentication completed successfully")

        logger.warning("Two-factor challenge not completed after %dms", waited)
        return TwoFactorPending(
            url=url,
            message="Two-factor authentication required but not completed. Please try logging in again.",
        )

    def _login_or_fail(self, login: LoginCredentials | None) -> LoginState:
        if login is None:
            return Failed(MISSING_CREDENTIALS)
        return PerformingFreshLogin()

    # ──────────────────────────────────────
    # Persistence
    # ──────────────────────────────────────

    async def persist(self, session: BrowsingSession) -> None:
        """Overwrite the stored jar with the browser's cookies. Never raises."""
        try:
            cookies = await session.get_cookies()
            await self.store.save(SessionCredential(name=self.facebook.session_name, cookies=cookies))
        except HarvesterError as e:
            logger.warning("Failed to save cookies, but login was successful: %s", e)
