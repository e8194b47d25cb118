#  Secret Board - OAuth Service
#
#  OIDC provider support using authlib (Google by default).
#  Handles discovery, authorization URL generation, code exchange,
#  and resolving a provider profile to a local user (create or link).
#
#  Depends on: db/users.py, config.py, exceptions.py
#  Used by:    container.py, routes/auth_oauth.py

import logging
import secrets
import time
from dataclasses import dataclass, field

from authlib.integrations.httpx_client import AsyncOAuth2Client

from secretboard.config import AUTH_OAUTH_PROVIDERS
from secretboard.db.users import UserStore
from secretboard.exceptions import (
    AccountLinkError,
    DuplicateEmailError,
    MissingEmailError,
    NotFoundError,
    OAuthError,
)
from secretboard.models.records import User

logger = logging.getLogger("secretboard.oauth")

_METADATA_TTL = 3600  # 1 hour cache for OIDC discovery docs


@dataclass
class OAuthProfile:
    """What the provider told us about the account. Emails are verified ones only."""

    provider: str
    subject_id: str
    emails: list[str] = field(default_factory=list)
    display_name: str = ""

    @property
    def primary_email(self) -> str | None:
        return self.emails[0] if self.emails else None


class OAuthService:
    """OAuth login for any OIDC-compliant provider."""

    def __init__(self, users: UserStore):
        self._users = users
        self._providers: dict[str, dict] = {}
        self._metadata_cache: dict[str, dict] = {}
        self._metadata_expiry: dict[str, float] = {}

        for prov in AUTH_OAUTH_PROVIDERS:
            name = prov.get("name")
            if name and prov.get("issuer") and prov.get("client_id"):
                self._providers[name] = prov
                logger.info("OAuth provider registered: %s", name)

    # ------------------------------------------------------------------
    # Provider handshake
    # ------------------------------------------------------------------

    def get_available_providers(self) -> list[dict]:
        """Return public info about configured providers (no secrets)."""
        return [
            {"name": p["name"], "display_name": p.get("display_name", p["name"])}
            for p in self._providers.values()
        ]

    async def get_authorization_url(self, provider_name: str) -> tuple[str, str, str]:
        """Build the authorization URL for the given provider.

        Returns (authorization_url, state, nonce).
        """
        prov = self._get_provider(provider_name)
        metadata = await self._fetch_metadata(prov)

        state = secrets.token_urlsafe(32)
        nonce = secrets.token_urlsafe(16)
        scopes = prov.get("scopes", ["openid", "email", "profile"])

        client = self._make_client(prov)
        url, _ = client.create_authorization_url(
            metadata["authorization_endpoint"],
            redirect_uri=prov["redirect_uri"],
            state=state,
            nonce=nonce,
            scope=" ".join(scopes),
        )
        return url, state, nonce

    async def exchange_code(self, provider_name: str, code: str) -> OAuthProfile:
        """Exchange an authorization code for the provider's account profile."""
        prov = self._get_provider(provider_name)
        metadata = await self._fetch_metadata(prov)
        client = self._make_client(prov)

        token_resp = await client.fetch_token(
            metadata["token_endpoint"],
            code=code,
            redirect_uri=prov["redirect_uri"],
            grant_type="authorization_code",
        )

        userinfo = token_resp.get("userinfo")
        if not userinfo:
            userinfo_resp = await client.get(
                metadata["userinfo_endpoint"],
                token=token_resp,
            )
            userinfo = userinfo_resp.json()

        subject_id = userinfo.get("sub")
        if not subject_id:
            raise OAuthError("Provider returned no account identifier")

        email = userinfo.get("email")
        emails = [email] if email and userinfo.get("email_verified") else []

        return OAuthProfile(
            provider=provider_name,
            subject_id=subject_id,
            emails=emails,
            display_name=userinfo.get("name") or userinfo.get("preferred_username", ""),
        )

    # ------------------------------------------------------------------
    # Identity resolution
    # ------------------------------------------------------------------

    async def resolve_profile(self, profile: OAuthProfile) -> User:
        """Find or create the local user for a provider profile, linking by email.

        A user who registered with a password and later signs in through the
        provider with the same email ends up as one account with both set.
        """
        email = profile.primary_email
        if not email:
            raise MissingEmailError("Email is required for authentication")

        user = await self._users.find_by_subject_or_email(profile.subject_id, email)

        if not user:
            try:
                user = await self._users.create(email=email, oauth_subject_id=profile.subject_id)
                logger.info("Created user %s from %s login", user.id, profile.provider)
                return user
            except (DuplicateEmailError, AccountLinkError):
                # A concurrent first login for the same account won the insert
                user = await self._users.find_by_subject_or_email(profile.subject_id, email)
                if not user:
                    raise

        if not user.oauth_subject_id:
            if await self._users.link_oauth_subject(user.id, profile.subject_id):
                user.oauth_subject_id = profile.subject_id
                logger.info("Linked %s identity to existing user %s", profile.provider, user.id)
            else:
                # Another request linked this user first; report what is stored
                user = await self._users.get(user.id)

        return user

    async def oauth_login(self, provider_name: str, code: str) -> User:
        """Full login flow: exchange code, then find/create/link the user."""
        profile = await self.exchange_code(provider_name, code)
        return await self.resolve_profile(profile)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_provider(self, name: str) -> dict:
        if name not in self._providers:
            raise NotFoundError(f"OAuth provider '{name}' is not configured")
        return self._providers[name]

    def _make_client(self, prov: dict) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=prov["client_id"],
            client_secret=prov.get("client_secret", ""),
        )

    async def _fetch_metadata(self, prov: dict) -> dict:
        """Fetch and cache the OIDC discovery document."""
        name = prov["name"]
        now = time.time()

        if name in self._metadata_cache and now < self._metadata_expiry.get(name, 0):
            return self._metadata_cache[name]

        issuer = prov["issuer"].rstrip("/")
        discovery_url = f"{issuer}/.well-known/openid-configuration"

        async with AsyncOAuth2Client(
            client_id=prov["client_id"],
            client_secret=prov.get("client_secret", ""),
        ) as client:
            resp = await client.get(discovery_url)
            resp.raise_for_status()
            metadata = resp.json()

        self._metadata_cache[name] = metadata
        self._metadata_expiry[name] = now + _METADATA_TTL
        logger.info("Fetched OIDC discovery for '%s' from %s", name, discovery_url)
        return metadata
