"""
GraphQL schema.

Resolvers authenticate the caller, apply per-operation rate limits and
delegate to the services. Each resolver runs in its own database session.
"""

from typing import Annotated

import strawberry
from strawberry.types import Info

from wallet_api.config.database import session_scope
from wallet_api.graphql.context import GraphQLContext
from wallet_api.graphql.errors import WalletSchema
from wallet_api.graphql.types import (
    AuthPayload,
    BalanceType,
    ChangePasswordInput,
    CreateWalletInput,
    LoginInput,
    RegisterInput,
    SendFundsInput,
    TransactionResult,
    TransactionType,
    UserType,
    WalletCreated,
    WalletType,
)
from wallet_api.utils.errors import InvalidAddressError
from wallet_api.utils.validation import validate_eth_address

GraphQLInfo = Info[GraphQLContext, None]


@strawberry.type
class Query:
    @strawberry.field
    async def me(self, info: GraphQLInfo) -> UserType:
        """Current authenticated user."""
        ctx = info.context
        caller = ctx.require_user()

        async with session_scope(ctx.deps.session_factory) as session:
            user = await ctx.deps.auth_service(session).get_user_by_id(
                caller.user_id
            )
            return UserType.from_model(user)

    @strawberry.field
    async def wallets(self, info: GraphQLInfo) -> list[WalletType]:
        """Wallets owned by the caller, newest first."""
        ctx = info.context
        caller = ctx.require_user()

        async with session_scope(ctx.deps.session_factory) as session:
            wallets = await ctx.deps.wallet_service(session).get_wallets(
                caller.user_id
            )
            return [WalletType.from_model(wallet) for wallet in wallets]

    @strawberry.field
    async def wallet(
        self,
        info: GraphQLInfo,
        wallet_id: Annotated[int, strawberry.argument(name="id")],
    ) -> WalletType:
        ctx = info.context
        caller = ctx.require_user()

        async with session_scope(ctx.deps.session_factory) as session:
            wallet = await ctx.deps.wallet_service(session).get_wallet(
                wallet_id, caller.user_id
            )
            return WalletType.from_model(wallet)

    @strawberry.field
    async def balance(self, info: GraphQLInfo, wallet_id: int) -> BalanceType:
        """Live on-chain balance of a wallet."""
        ctx = info.context
        caller = ctx.require_user()

        async with session_scope(ctx.deps.session_factory) as session:
            wallet, balance = await ctx.deps.wallet_service(session).get_balance(
                wallet_id, caller.user_id
            )
            return BalanceType.from_result(wallet, balance)

    @strawberry.field
    async def transactions(
        self,
        info: GraphQLInfo,
        wallet_id: int,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[TransactionType]:
        """Transaction history of a wallet, newest first."""
        ctx = info.context
        caller = ctx.require_user()

        async with session_scope(ctx.deps.session_factory) as session:
            transactions = await ctx.deps.wallet_service(
                session
            ).get_transaction_history(
                wallet_id, caller.user_id, limit=limit, offset=offset
            )
            return [TransactionType.from_model(tx) for tx in transactions]

    @strawberry.field
    async def transaction(self, info: GraphQLInfo, hash: str) -> TransactionType:
        ctx = info.context
        caller = ctx.require_user()

        async with session_scope(ctx.deps.session_factory) as session:
            transaction = await ctx.deps.wallet_service(
                session
            ).get_transaction(hash, caller.user_id)
            return TransactionType.from_model(transaction)


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def register(self, info: GraphQLInfo, input: RegisterInput) -> AuthPayload:
        ctx = info.context
        ctx.deps.rate_limiters.auth.hit(ctx.client_ip)

        async with session_scope(ctx.deps.session_factory) as session:
            user, token = await ctx.deps.auth_service(session).register(
                input.username, input.password
            )
            return AuthPayload(user=UserType.from_model(user), token=token)

    @strawberry.mutation
    async def login(self, info: GraphQLInfo, input: LoginInput) -> AuthPayload:
        ctx = info.context
        ctx.deps.rate_limiters.auth.hit(ctx.client_ip)

        async with session_scope(ctx.deps.session_factory) as session:
            user, token = await ctx.deps.auth_service(session).login(
                input.username, input.password
            )
            return AuthPayload(user=UserType.from_model(user), token=token)

    @strawberry.mutation
    async def change_password(
        self, info: GraphQLInfo, input: ChangePasswordInput
    ) -> UserType:
        ctx = info.context
        caller = ctx.require_user()
        ctx.deps.rate_limiters.auth.hit(f"user:{caller.user_id}")

        async with session_scope(ctx.deps.session_factory) as session:
            user = await ctx.deps.auth_service(session).change_password(
                caller.user_id, input.old_password, input.new_password
            )
            return UserType.from_model(user)

    @strawberry.mutation
    async def create_wallet(
        self, info: GraphQLInfo, input: CreateWalletInput | None = None
    ) -> WalletCreated:
        """Generate a wallet. The mnemonic is returned only here."""
        ctx = info.context
        caller = ctx.require_user()
        network = input.network if input else None

        async with session_scope(ctx.deps.session_factory) as session:
            wallet, mnemonic = await ctx.deps.wallet_service(
                session
            ).create_wallet(caller.user_id, network)
            return WalletCreated.from_model(wallet, mnemonic)

    @strawberry.mutation
    async def send_funds(
        self, info: GraphQLInfo, input: SendFundsInput
    ) -> TransactionResult:
        """Broadcast a transfer and return the pending transaction."""
        ctx = info.context
        caller = ctx.require_user()

        # Rejected before the transfer quota is charged
        if not validate_eth_address(input.to_address):
            raise InvalidAddressError(input.to_address)

        ctx.deps.rate_limiters.transfer.hit(f"user:{caller.user_id}")

        async with session_scope(ctx.deps.session_factory) as session:
            transaction, sent = await ctx.deps.wallet_service(
                session
            ).send_funds(
                input.wallet_id,
                caller.user_id,
                input.to_address,
                input.amount,
            )
            return TransactionResult.from_result(transaction, sent)


schema = WalletSchema(query=Query, mutation=Mutation)
