import time

import pytest

from lucidwallet.models.consent import ConsentScope
from lucidwallet.wallet.audit_log import AuditLog
from lucidwallet.wallet.signer import PolicySigner


# ----------------------------------------------------------------------
# Environment: never reach a real model endpoint from the test-suite
# ----------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in (
        "LUCIDWALLET_OPENAI_API_KEY",
        "LUCIDWALLET_OPENAI_API_BASE",
        "LUCIDWALLET_OPENAI_MODEL",
        "LUCIDWALLET_NL_TEMPLATE_FILE",
        "LUCIDWALLET_WALLET_ADDRESS",
        "LUCIDWALLET_SPENDER_ADDRESS",
        "LUCIDWALLET_TOKEN_CONTRACT",
    ):
        monkeypatch.delenv(name, raising=False)


# ----------------------------------------------------------------------
# Shared fixtures
# ----------------------------------------------------------------------

RECIPIENT = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def recipient():
    return RECIPIENT


@pytest.fixture
def consent_scope():
    """A generous scope covering every default placeholder address."""
    return ConsentScope(
        chain="evm",
        spender_allowlist=["0xSWAP_CONTRACT"],
        tokens=["ETH", "USDC", "DAI"],
        max_amount="1000",
        expiry=int(time.time() * 1000) + 3_600_000,
    )


@pytest.fixture
def audit_log():
    return AuditLog()


@pytest.fixture
def signer(consent_scope, audit_log):
    return PolicySigner(consent_scope, audit_log=audit_log)
