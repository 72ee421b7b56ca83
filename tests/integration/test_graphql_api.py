"""
End-to-end tests of the GraphQL API over HTTP.
"""

import re

import pytest
from loguru import logger

from tests.helpers.fakes import RECIPIENT, TEST_PASSWORD
from tests.helpers.graphql_client import error_code, graphql
from wallet_api.config.settings import Settings

REGISTER = """
mutation Register($username: String!, $password: String!) {
  register(input: {username: $username, password: $password}) {
    token
    user { id username createdAt }
  }
}
"""

LOGIN = """
mutation Login($username: String!, $password: String!) {
  login(input: {username: $username, password: $password}) {
    token
    user { id username }
  }
}
"""

CREATE_WALLET = """
mutation CreateWallet($network: String) {
  createWallet(input: {network: $network}) {
    id userId address network mnemonic
  }
}
"""

BALANCE = """
query Balance($walletId: Int!) {
  balance(walletId: $walletId) { walletId address network wei ether }
}
"""

SEND_FUNDS = """
mutation Send($walletId: Int!, $toAddress: String!, $amount: String!) {
  sendFunds(input: {walletId: $walletId, toAddress: $toAddress, amount: $amount}) {
    hash from to amount
    transaction { id transactionHash status amount }
  }
}
"""

TRANSACTIONS = """
query Transactions($walletId: Int!) {
  transactions(walletId: $walletId) { transactionHash status }
}
"""

TRANSACTION = """
query Transaction($hash: String!) {
  transaction(hash: $hash) { transactionHash status blockNumber }
}
"""

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


async def _register(client, username: str = "alice") -> str:
    body = await graphql(
        client, REGISTER, {"username": username, "password": TEST_PASSWORD}
    )
    return body["data"]["register"]["token"]


async def _create_wallet(client, token: str) -> dict:
    body = await graphql(client, CREATE_WALLET, {"network": "sepolia"}, token=token)
    return body["data"]["createWallet"]


@pytest.mark.integration
class TestAuthFlow:

    @pytest.mark.asyncio
    async def test_register_login_and_me(
        self, client  # pylint: disable=redefined-outer-name
    ):
        registered = await graphql(
            client, REGISTER, {"username": "alice", "password": TEST_PASSWORD}
        )
        logged_in = await graphql(
            client, LOGIN, {"username": "alice", "password": TEST_PASSWORD}
        )
        token = logged_in["data"]["login"]["token"]
        me = await graphql(client, "{ me { id username } }", token=token)

        user = registered["data"]["register"]["user"]
        assert user["username"] == "alice"
        assert user["createdAt"].endswith("Z")
        assert me["data"]["me"] == {"id": user["id"], "username": "alice"}

    @pytest.mark.asyncio
    async def test_unauthenticated_query(
        self, client  # pylint: disable=redefined-outer-name
    ):
        body = await graphql(client, "{ wallets { id } }")

        assert error_code(body) == "UNAUTHENTICATED"
        assert body["errors"][0]["extensions"]["statusCode"] == 401

    @pytest.mark.asyncio
    async def test_garbage_token(
        self, client  # pylint: disable=redefined-outer-name
    ):
        body = await graphql(client, "{ me { id } }", token="not-a-jwt")

        assert error_code(body) == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_invalid_token_is_verified_once_per_request(
        self, client  # pylint: disable=redefined-outer-name
    ):
        """
        Scenario:
        GIVEN: A request with a forged bearer token
        WHEN: It passes the rate limit middleware and reaches a resolver
        THEN: Exactly one [SECURITY] line is written for it
        """
        messages: list[str] = []
        sink_id = logger.add(messages.append, format="{message}", level="WARNING")
        try:
            body = await graphql(client, "{ me { id } }", token="not-a-jwt")
        finally:
            logger.remove(sink_id)

        invalid = [m for m in messages if "[SECURITY] Invalid token" in m]
        assert error_code(body) == "UNAUTHENTICATED"
        assert len(invalid) == 1

    @pytest.mark.asyncio
    async def test_duplicate_registration(
        self, client  # pylint: disable=redefined-outer-name
    ):
        await _register(client)

        body = await graphql(
            client, REGISTER, {"username": "alice", "password": TEST_PASSWORD}
        )

        assert error_code(body) == "CONFLICT"

    @pytest.mark.asyncio
    async def test_weak_password(
        self, client  # pylint: disable=redefined-outer-name
    ):
        body = await graphql(
            client, REGISTER, {"username": "alice", "password": "short"}
        )

        assert error_code(body) == "BAD_USER_INPUT"
        assert body["errors"][0]["extensions"]["details"]["errors"]

    @pytest.mark.asyncio
    async def test_schema_validation_error(
        self, client  # pylint: disable=redefined-outer-name
    ):
        body = await graphql(client, "{ doesNotExist }")

        assert error_code(body) == "GRAPHQL_VALIDATION_FAILED"


@pytest.mark.integration
class TestWalletFlow:

    @pytest.mark.asyncio
    async def test_create_wallet_and_read_balance(
        self, client  # pylint: disable=redefined-outer-name
    ):
        """
        Scenario:
        GIVEN: alice registered
        WHEN: A sepolia wallet is created and its balance requested
        THEN: A valid address, a 12-word mnemonic and a zero balance
        """
        token = await _register(client)

        wallet = await _create_wallet(client, token)
        balance = await graphql(
            client, BALANCE, {"walletId": wallet["id"]}, token=token
        )
        listed = await graphql(client, "{ wallets { id } }", token=token)

        assert ADDRESS_RE.match(wallet["address"])
        assert len(wallet["mnemonic"].split()) == 12
        assert wallet["network"] == "sepolia"
        assert balance["data"]["balance"]["ether"] == "0.0"
        assert balance["data"]["balance"]["wei"] == "0"
        assert [w["id"] for w in listed["data"]["wallets"]] == [wallet["id"]]

    @pytest.mark.asyncio
    async def test_mnemonic_is_not_part_of_wallet_type(
        self, client  # pylint: disable=redefined-outer-name
    ):
        token = await _register(client)
        await _create_wallet(client, token)

        body = await graphql(client, "{ wallets { mnemonic } }", token=token)

        assert error_code(body) == "GRAPHQL_VALIDATION_FAILED"

    @pytest.mark.asyncio
    async def test_foreign_wallet_is_not_found(
        self, client  # pylint: disable=redefined-outer-name
    ):
        alice = await _register(client, "alice")
        mallory = await _register(client, "mallory")
        wallet = await _create_wallet(client, alice)

        body = await graphql(
            client, BALANCE, {"walletId": wallet["id"]}, token=mallory
        )

        assert error_code(body) == "NOT_FOUND"
        assert body["errors"][0]["message"] == "Wallet not found"

    @pytest.mark.asyncio
    async def test_malformed_recipient_is_rejected(
        self,
        client,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
    ):
        """
        Scenario:
        GIVEN: A funded wallet
        WHEN: sendFunds is called with a malformed toAddress
        THEN: INVALID_ADDRESS, nothing broadcast and no transaction stored
        """
        token = await _register(client)
        wallet = await _create_wallet(client, token)
        fake_blockchain.fund(wallet["address"], "1")

        body = await graphql(
            client,
            SEND_FUNDS,
            {"walletId": wallet["id"], "toAddress": "0x1234", "amount": "0.1"},
            token=token,
        )
        history = await graphql(
            client, TRANSACTIONS, {"walletId": wallet["id"]}, token=token
        )

        assert error_code(body) == "INVALID_ADDRESS"
        assert fake_blockchain.sent == []
        assert history["data"]["transactions"] == []

    @pytest.mark.asyncio
    async def test_insufficient_funds(
        self, client  # pylint: disable=redefined-outer-name
    ):
        token = await _register(client)
        wallet = await _create_wallet(client, token)

        body = await graphql(
            client,
            SEND_FUNDS,
            {"walletId": wallet["id"], "toAddress": RECIPIENT, "amount": "1"},
            token=token,
        )

        assert error_code(body) == "INSUFFICIENT_FUNDS"
        assert body["errors"][0]["extensions"]["details"] == {
            "required": "1",
            "available": "0.0",
        }

    @pytest.mark.asyncio
    async def test_send_funds_then_reconcile(
        self,
        client,  # pylint: disable=redefined-outer-name
        deps,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
    ):
        """
        Scenario:
        GIVEN: A wallet funded with 1 ETH
        WHEN: 0.25 ETH is sent and the chain later confirms it
        THEN: The transfer is pending at first and confirmed after reconciliation
        """
        token = await _register(client)
        wallet = await _create_wallet(client, token)
        fake_blockchain.fund(wallet["address"], "1")

        body = await graphql(
            client,
            SEND_FUNDS,
            {"walletId": wallet["id"], "toAddress": RECIPIENT, "amount": "0.25"},
            token=token,
        )
        result = body["data"]["sendFunds"]

        assert result["from"] == wallet["address"]
        assert result["to"] == RECIPIENT
        assert result["amount"] == "0.25"
        assert result["transaction"]["status"] == "pending"
        assert result["transaction"]["transactionHash"] == result["hash"]

        await deps.tasks.wait_idle(timeout=5)
        fake_blockchain.confirm(result["hash"])
        await deps.reconciler.reconcile(result["hash"])

        stored = await graphql(
            client, TRANSACTION, {"hash": result["hash"]}, token=token
        )
        assert stored["data"]["transaction"]["status"] == "confirmed"
        assert stored["data"]["transaction"]["blockNumber"] is not None


@pytest.mark.integration
@pytest.mark.security
class TestRateLimiting:

    @pytest.fixture
    def app_settings(
        self,
        test_settings: Settings,  # pylint: disable=redefined-outer-name
    ) -> Settings:
        return test_settings.model_copy(
            update={
                "auth_rate_limit_max_attempts": 2,
                "transfer_rate_limit_max": 1,
            }
        )

    @pytest.mark.asyncio
    async def test_login_attempts_are_limited(
        self, client  # pylint: disable=redefined-outer-name
    ):
        variables = {"username": "nobody", "password": TEST_PASSWORD}

        first = await graphql(client, LOGIN, variables)
        second = await graphql(client, LOGIN, variables)
        third = await graphql(client, LOGIN, variables)

        assert error_code(first) == "UNAUTHENTICATED"
        assert error_code(second) == "UNAUTHENTICATED"
        assert error_code(third) == "TOO_MANY_REQUESTS"
        assert third["errors"][0]["extensions"]["retryAfter"] > 0

    @pytest.mark.asyncio
    async def test_transfers_are_limited_per_user(
        self,
        client,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
    ):
        token = await _register(client)
        wallet = await _create_wallet(client, token)
        fake_blockchain.fund(wallet["address"], "1")
        variables = {
            "walletId": wallet["id"],
            "toAddress": RECIPIENT,
            "amount": "0.1",
        }

        first = await graphql(client, SEND_FUNDS, variables, token=token)
        second = await graphql(client, SEND_FUNDS, variables, token=token)

        assert error_code(first) is None
        assert error_code(second) == "TOO_MANY_REQUESTS"
        assert len(fake_blockchain.sent) == 1


@pytest.mark.integration
@pytest.mark.security
class TestGeneralRateLimit:

    @pytest.fixture
    def app_settings(
        self,
        test_settings: Settings,  # pylint: disable=redefined-outer-name
    ) -> Settings:
        return test_settings.model_copy(update={"rate_limit_max_requests": 2})

    @pytest.mark.asyncio
    async def test_429_with_retry_after(
        self, client  # pylint: disable=redefined-outer-name
    ):
        for _ in range(2):
            resp = await client.post("/graphql", json={"query": "{ __typename }"})
            assert resp.status == 200

        resp = await client.post("/graphql", json={"query": "{ __typename }"})
        body = await resp.json()

        assert resp.status == 429
        assert int(resp.headers["Retry-After"]) > 0
        assert error_code(body) == "TOO_MANY_REQUESTS"
