"""LocalIdentityProvider bookkeeping: stored password hashes and pending Google credentials."""

import pytest

from hiremind_client.providers import (
    AccountExistsWithDifferentCredential,
    GoogleAccount,
    LocalIdentityProvider,
    ProviderCode,
    ProviderError,
)

ALICE = "alice@example.com"


@pytest.fixture
def provider() -> LocalIdentityProvider:
    return LocalIdentityProvider()


def _conflict(provider: LocalIdentityProvider):
    provider.create_account(ALICE, "secret1")
    provider.sign_out()
    provider.choose_google_account(GoogleAccount(email=ALICE, display_name="Alice G", sub="g-alice"))
    with pytest.raises(AccountExistsWithDifferentCredential) as ei:
        provider.sign_in_with_federated()
    return ei.value.pending_credential


def test_password_is_stored_as_argon2_hash(provider):
    user = provider.create_account(ALICE, "secret1")
    stored = provider._accounts[user.uid].password_hash

    assert stored != "secret1"
    assert stored.startswith("$argon2")

    provider.sign_out()
    with pytest.raises(ProviderError) as ei:
        provider.sign_in_with_password(ALICE, "secret2")
    assert ei.value.code == ProviderCode.WRONG_PASSWORD
    assert provider.sign_in_with_password(ALICE, "secret1").uid == user.uid


def test_google_only_account_has_no_password(provider):
    provider.choose_google_account(GoogleAccount(email="dana@example.com", sub="g-dana"))
    provider.sign_in_with_federated()
    with pytest.raises(ProviderError) as ei:
        provider.reauthenticate("anything")
    assert ei.value.code == ProviderCode.WRONG_PASSWORD


def test_direct_google_sign_in_keeps_no_pending_credential(provider):
    provider.choose_google_account(GoogleAccount(email="dana@example.com", sub="g-dana"))
    provider.sign_in_with_federated()
    assert provider._google_tokens == {}


def test_attach_consumes_pending_credential(provider):
    pending = _conflict(provider)
    provider.sign_in_with_password(ALICE, "secret1")

    user = provider.attach_credential(pending)
    assert user.provider_ids == ("password", "google.com")
    assert provider._google_tokens == {}

    with pytest.raises(ProviderError) as ei:
        provider.attach_credential(pending)
    assert ei.value.code == ProviderCode.INVALID_CREDENTIAL


def test_failed_attach_keeps_pending_credential(provider):
    first = _conflict(provider)
    provider.sign_in_with_password(ALICE, "secret1")
    provider.attach_credential(first)
    provider.sign_out()

    # a second Google identity with the same email
    provider.choose_google_account(GoogleAccount(email=ALICE, sub="g-other"))
    with pytest.raises(AccountExistsWithDifferentCredential) as ei:
        provider.sign_in_with_federated()
    second = ei.value.pending_credential

    provider.sign_in_with_password(ALICE, "secret1")
    with pytest.raises(ProviderError) as ei:
        provider.attach_credential(second)
    assert ei.value.code == ProviderCode.PROVIDER_ALREADY_LINKED
    assert second.id_token in provider._google_tokens


def test_sign_out_drops_pending_credentials(provider):
    pending = _conflict(provider)
    provider.sign_in_with_password(ALICE, "secret1")
    provider.sign_out()
    assert provider._google_tokens == {}

    provider.sign_in_with_password(ALICE, "secret1")
    with pytest.raises(ProviderError) as ei:
        provider.attach_credential(pending)
    assert ei.value.code == ProviderCode.INVALID_CREDENTIAL
