from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from jose import JWTError, jwt
from passlib.context import CryptContext

from taskmanager.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

LOCAL_TOKEN_ALGORITHM = "HS256"
LOCAL_SUBJECT_PREFIX = "local:"


class InvalidTokenError(ValueError):
  pass


@dataclass(frozen=True)
class Identity:
  subject: str
  email: str | None = None


def hash_password(password: str) -> str:
  return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
  return pwd_context.verify(password, password_hash)


def local_subject(user_id: int) -> str:
  return f"{LOCAL_SUBJECT_PREFIX}{user_id}"


def create_access_token(*, subject: str, email: str | None = None, ttl_minutes: int | None = None) -> str:
  now = datetime.now(timezone.utc)
  ttl = ttl_minutes if ttl_minutes is not None else int(settings.access_token_ttl_minutes)
  claims: dict[str, Any] = {"sub": subject, "iat": int(now.timestamp()), "exp": int((now + timedelta(minutes=ttl)).timestamp())}
  if email:
    claims["email"] = email
  return jwt.encode(claims, settings.app_secret, algorithm=LOCAL_TOKEN_ALGORITHM)


def _identity_from_claims(claims: Any) -> Identity:
  if not isinstance(claims, dict):
    raise InvalidTokenError("Token payload is not an object")
  sub = claims.get("sub")
  if not isinstance(sub, str) or not sub.strip():
    raise InvalidTokenError("Token has no subject")
  email = claims.get("email")
  return Identity(subject=sub.strip(), email=email if isinstance(email, str) and email else None)


class TokenVerifier(Protocol):
  def verify(self, token: str) -> Identity: ...


class LocalTokenVerifier:
  """Tokens issued by this API's password login, signed with ``app_secret``."""

  def __init__(self, secret: str) -> None:
    self._secret = secret

  def verify(self, token: str) -> Identity:
    try:
      claims = jwt.decode(token, self._secret, algorithms=[LOCAL_TOKEN_ALGORITHM])
    except JWTError as exc:
      raise InvalidTokenError(str(exc)) from exc
    return _identity_from_claims(claims)


class PublicKeyTokenVerifier:
  """Identity-provider tokens checked against a PEM public key."""

  def __init__(self, public_key: str, *, algorithms: list[str], issuer: str | None = None, audience: str | None = None) -> None:
    self._public_key = public_key
    self._algorithms = algorithms
    self._issuer = issuer
    self._audience = audience

  def verify(self, token: str) -> Identity:
    options = {"verify_aud": self._audience is not None}
    try:
      claims = jwt.decode(
        token,
        self._public_key,
        algorithms=self._algorithms,
        issuer=self._issuer,
        audience=self._audience,
        options=options,
      )
    except JWTError as exc:
      raise InvalidTokenError(str(exc)) from exc
    return _identity_from_claims(claims)


class UnverifiedClaimsVerifier:
  """
  Reads ``sub`` from the payload segment without checking the signature,
  expiry or issuer. Any well-formed token is accepted, so this must only be
  enabled for local development against a trusted frontend.
  """

  def verify(self, token: str) -> Identity:
    if len(token.split(".")) != 3:
      raise InvalidTokenError("Token must have three segments")
    try:
      claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
      raise InvalidTokenError(str(exc)) from exc
    return _identity_from_claims(claims)


def build_verifier() -> TokenVerifier:
  mode = (settings.auth_mode or "local").strip().lower()
  if mode == "unverified":
    logger.warning("auth_mode=unverified: bearer token signatures are NOT checked")
    return UnverifiedClaimsVerifier()
  if mode == "public_key":
    if not settings.auth_public_key:
      raise RuntimeError("AUTH_PUBLIC_KEY is required when AUTH_MODE=public_key")
    return PublicKeyTokenVerifier(
      settings.auth_public_key,
      algorithms=settings.auth_algorithm_list(),
      issuer=settings.auth_issuer,
      audience=settings.auth_audience,
    )
  return LocalTokenVerifier(settings.app_secret)


def bearer_token(authorization: str | None) -> str | None:
  if not authorization or not authorization.startswith("Bearer "):
    return None
  token = authorization[len("Bearer "):].strip()
  return token or None


def resolve_bearer(authorization: str | None, verifier: TokenVerifier) -> Identity | None:
  token = bearer_token(authorization)
  if token is None:
    return None
  try:
    return verifier.verify(token)
  except InvalidTokenError as exc:
    logger.debug("Rejected bearer token: %s", exc)
    return None
