import uuid
from datetime import datetime, timedelta, timezone

import pytest

from muabook.core.errors import ProfileNotFound, Unauthenticated
from muabook.core.security import JWTAuthenticationProvider, PasswordHasher
from muabook.models import UserRole
from muabook.services.identity import (
    actor_role,
    get_actor,
    is_provider,
    resolve_actor,
    resolve_provider_profile,
)

from factories import make_provider, make_user

auth = JWTAuthenticationProvider("unit-test-secret", expiration_seconds=3600)


def test_resolve_actor_round_trips_user_id():
    user_id = uuid.uuid4()
    token = auth.issue(user_id)

    assert resolve_actor(auth, f"Bearer {token}") == user_id


@pytest.mark.parametrize(
    "header",
    [None, "", "Token abc", "Bearer ", "bearer abc", "Bearer not-a-jwt"],
)
def test_resolve_actor_rejects_bad_headers(header):
    with pytest.raises(Unauthenticated):
        resolve_actor(auth, header)


def test_expired_token_is_rejected():
    token = auth.issue(uuid.uuid4(), now=datetime.now(timezone.utc) - timedelta(hours=2))

    with pytest.raises(Unauthenticated):
        resolve_actor(auth, f"Bearer {token}")


def test_token_signed_with_other_secret_is_rejected():
    forged = JWTAuthenticationProvider("another-secret").issue(uuid.uuid4())

    with pytest.raises(Unauthenticated):
        resolve_actor(auth, f"Bearer {forged}")


def test_resolve_provider_profile(db):
    profile = make_provider(db)
    customer = make_user(db, UserRole.CUSTOMER)
    incomplete_provider = make_user(db, UserRole.PROVIDER)

    assert resolve_provider_profile(db, profile.user_id) == profile.id
    with pytest.raises(ProfileNotFound):
        resolve_provider_profile(db, customer.id)
    with pytest.raises(ProfileNotFound):
        resolve_provider_profile(db, incomplete_provider.id)


def test_get_actor_and_roles(db):
    customer = make_user(db, UserRole.CUSTOMER)
    provider = make_user(db, UserRole.PROVIDER)

    assert actor_role(get_actor(db, customer.id)) is UserRole.CUSTOMER
    assert is_provider(get_actor(db, provider.id))
    assert not is_provider(customer)
    with pytest.raises(Unauthenticated):
        get_actor(db, uuid.uuid4())


def test_password_hasher():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert hasher.verify("s3cret-pass", hashed)
    assert not hasher.verify("wrong", hashed)
    assert not hasher.verify("s3cret-pass", "not-a-bcrypt-hash")
