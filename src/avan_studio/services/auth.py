"""Identity provider integration."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Union

import httpx
import structlog

from ..domain.errors import AuthError
from ..domain.models import Language, UserProfile
from ..i18n import translate

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 6

# Known provider codes and the string each one maps to.
AUTH_ERROR_KEYS: Dict[str, str] = {
    "auth/invalid-credential": "auth_invalid_credential",
    "auth/wrong-password": "auth_invalid_credential",
    "auth/user-not-found": "auth_invalid_credential",
    "auth/email-already-in-use": "auth_email_in_use",
    "auth/weak-password": "auth_weak_password",
    "auth/popup-closed-by-user": "auth_cancelled",
    "auth/unauthorized-domain": "auth_unauthorized_domain",
}


def auth_error_message(code: str, language: Union[Language, str] = Language.EN) -> str:
    """User-facing message for a provider error code."""
    key = AUTH_ERROR_KEYS.get(code)
    if key is None:
        return f"Error: {code}"
    return translate(language, key)


class IdentityProvider(ABC):
    """Account operations offered by an identity provider.

    Every operation raises AuthError with a provider code on failure.
    """

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> UserProfile:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> UserProfile:
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def update_profile(
        self, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> UserProfile:
        pass

    @abstractmethod
    async def update_password(self, new_password: str) -> None:
        pass

    @abstractmethod
    async def reauthenticate(self, password: str) -> None:
        pass

    @abstractmethod
    async def delete_account(self) -> None:
        pass

    @property
    @abstractmethod
    def current_user(self) -> Optional[UserProfile]:
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        pass


@dataclass
class _Account:
    uid: str
    email: str
    password: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    def profile(self) -> UserProfile:
        return UserProfile(
            uid=self.uid,
            email=self.email,
            display_name=self.display_name,
            photo_url=self.photo_url,
        )


class InMemoryIdentityProvider(IdentityProvider):
    """Local accounts for development and tests."""

    def __init__(self) -> None:
        self._accounts: Dict[str, _Account] = {}
        self._current: Optional[_Account] = None

    @property
    def current_user(self) -> Optional[UserProfile]:
        return self._current.profile() if self._current else None

    def _require_user(self) -> _Account:
        if self._current is None:
            raise AuthError("auth/no-current-user")
        return self._current

    async def sign_up(self, email: str, password: str) -> UserProfile:
        email = email.strip().lower()
        if email in self._accounts:
            raise AuthError("auth/email-already-in-use")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError("auth/weak-password")
        account = _Account(uid=uuid.uuid4().hex, email=email, password=password)
        self._accounts[email] = account
        self._current = account
        return account.profile()

    async def sign_in(self, email: str, password: str) -> UserProfile:
        account = self._accounts.get(email.strip().lower())
        if account is None or account.password != password:
            raise AuthError("auth/invalid-credential")
        self._current = account
        return account.profile()

    async def sign_out(self) -> None:
        self._current = None

    async def update_profile(
        self, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> UserProfile:
        account = self._require_user()
        if display_name is not None:
            account.display_name = display_name
        if photo_url is not None:
            account.photo_url = photo_url
        return account.profile()

    async def update_password(self, new_password: str) -> None:
        account = self._require_user()
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise AuthError("auth/weak-password")
        account.password = new_password

    async def reauthenticate(self, password: str) -> None:
        account = self._require_user()
        if account.password != password:
            raise AuthError("auth/wrong-password")

    async def delete_account(self) -> None:
        account = self._require_user()
        del self._accounts[account.email]
        self._current = None


FIREBASE_AUTH_URL = "https://identitytoolkit.googleapis.com/v1"

FIREBASE_ERROR_CODES: Dict[str, str] = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "WEAK_PASSWORD": "auth/weak-password",
    "INVALID_EMAIL": "auth/invalid-email",
    "USER_DISABLED": "auth/user-disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": "auth/requires-recent-login",
    "INVALID_ID_TOKEN": "auth/requires-recent-login",
    "TOKEN_EXPIRED": "auth/user-token-expired",
}


def firebase_error_code(message: str) -> str:
    """Normalize a REST error message such as ``WEAK_PASSWORD : ...``."""
    reason = message.split(":", 1)[0].strip()
    return FIREBASE_ERROR_CODES.get(reason, "auth/" + reason.lower().replace("_", "-"))


class FirebaseIdentityProvider(IdentityProvider):
    """Firebase Authentication through its REST API."""

    def __init__(self, api_key: str, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self._client = client or httpx.AsyncClient(base_url=FIREBASE_AUTH_URL, timeout=30.0)
        self._id_token: Optional[str] = None
        self._user: Optional[UserProfile] = None

    @property
    def current_user(self) -> Optional[UserProfile]:
        return self._user

    async def _call(self, endpoint: str, payload: dict) -> dict:
        try:
            response = await self._client.post(
                f"/accounts:{endpoint}", params={"key": self.api_key}, json=payload
            )
        except httpx.HTTPError as e:
            logger.error("identity_provider_unreachable", endpoint=endpoint, error=str(e))
            raise AuthError("auth/network-request-failed") from e

        try:
            data = response.json() if response.content else {}
        except ValueError:
            logger.error(
                "identity_provider_bad_response", endpoint=endpoint, status=response.status_code
            )
            if response.status_code >= 400:
                raise AuthError("auth/network-request-failed")
            raise AuthError("auth/internal-error")
        if response.status_code >= 400:
            message = data.get("error", {}).get("message", "UNKNOWN")
            code = firebase_error_code(message)
            logger.warning("identity_provider_error", endpoint=endpoint, code=code)
            raise AuthError(code, message)
        return data

    def _require_token(self) -> str:
        if not self._id_token:
            raise AuthError("auth/no-current-user")
        return self._id_token

    def _remember(self, data: dict) -> UserProfile:
        previous = self._user
        uid = data.get("localId") or (previous.uid if previous else "")
        # Update responses omit profile fields that did not change.
        if previous is not None and previous.uid != uid:
            previous = None
        self._id_token = data.get("idToken") or self._id_token
        self._user = UserProfile(
            uid=uid,
            email=data.get("email") or (previous.email if previous else None),
            display_name=data.get("displayName") or (previous.display_name if previous else None),
            photo_url=data.get("photoUrl") or (previous.photo_url if previous else None),
        )
        return self._user

    async def sign_up(self, email: str, password: str) -> UserProfile:
        data = await self._call(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        return self._remember(data)

    async def sign_in(self, email: str, password: str) -> UserProfile:
        data = await self._call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._remember(data)

    async def sign_out(self) -> None:
        self._id_token = None
        self._user = None

    async def update_profile(
        self, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> UserProfile:
        payload = {"idToken": self._require_token(), "returnSecureToken": False}
        if display_name is not None:
            payload["displayName"] = display_name
        if photo_url is not None:
            payload["photoUrl"] = photo_url
        data = await self._call("update", payload)
        return self._remember(data)

    async def update_password(self, new_password: str) -> None:
        data = await self._call(
            "update",
            {"idToken": self._require_token(), "password": new_password, "returnSecureToken": True},
        )
        self._remember(data)

    async def reauthenticate(self, password: str) -> None:
        if self._user is None or not self._user.email:
            raise AuthError("auth/no-current-user")
        await self.sign_in(self._user.email, password)

    async def delete_account(self) -> None:
        await self._call("delete", {"idToken": self._require_token()})
        await self.sign_out()

    async def aclose(self) -> None:
        await self._client.aclose()


class AuthService:
    """Account flows built from provider operations."""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    @property
    def current_user(self) -> Optional[UserProfile]:
        return self.provider.current_user

    async def register(self, name: Optional[str], email: str, password: str) -> UserProfile:
        user = await self.provider.sign_up(email, password)
        if name:
            user = await self.provider.update_profile(display_name=name)
        logger.info("user_registered", uid=user.uid)
        return user

    async def login(self, email: str, password: str) -> UserProfile:
        user = await self.provider.sign_in(email, password)
        logger.info("user_signed_in", uid=user.uid)
        return user

    async def logout(self) -> None:
        await self.provider.sign_out()
        logger.info("user_signed_out")

    async def update_profile(
        self, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> UserProfile:
        return await self.provider.update_profile(display_name, photo_url)

    async def change_password(self, current_password: str, new_password: str) -> None:
        await self.provider.reauthenticate(current_password)
        await self.provider.update_password(new_password)
        logger.info("password_changed")

    async def delete_account(self, current_password: str) -> None:
        await self.provider.reauthenticate(current_password)
        await self.provider.delete_account()
        logger.info("account_deleted")

    async def aclose(self) -> None:
        await self.provider.aclose()
