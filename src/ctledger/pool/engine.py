"""ProportionalPoolEngine - pooled donor/staker collateral paid out per customer numerator.

Customers register to a market and receive INITIAL_CUSTOMER_BALANCE units of a
transferable claim token. Donors and stakers fund a pot per (collateral,
market, oracle). The oracle reports one numerator per customer and then
finishes, locking the denominator. A holder of ``balance`` units of customer
``c``'s claim token is owed

    pot * numerator[c] * balance // (denominator * INITIAL_CUSTOMER_BALANCE)
"""

from __future__ import annotations

from dataclasses import replace

import structlog

from ctledger.errors import (
    AllZeroPayout,
    AlreadyFinished,
    AlreadyRedeemed,
    AlreadyRegistered,
    ConditionNotResolved,
    InvalidAmount,
    InvalidPayout,
    MarketNotFound,
    OracleNotFound,
    Unauthorized,
)
from ctledger.ids.hashing import (
    collateral_donated_token_id,
    collateral_staked_token_id,
    conditional_token_id,
    normalize_address,
)
from ctledger.ledger.store import LedgerStore
from ctledger.models.pool import Deposit, PoolMarket, PoolOracle
from ctledger.pool.claims import ClaimState, ClaimStatus

log = structlog.get_logger(__name__)

INITIAL_CUSTOMER_BALANCE = 1000 * 10**18

PotKey = tuple[str, int, int]  # (collateral token, market id, oracle id)


class ProportionalPoolEngine:
    """Registration-based markets sharing the store's PositionLedger for claim tokens."""

    def __init__(self, store: LedgerStore) -> None:
        self.store = store
        self.markets: dict[int, PoolMarket] = {}
        self.oracles: dict[int, PoolOracle] = {}
        self._pots: dict[PotKey, int] = {}
        self._deposits: dict[PotKey, list[Deposit]] = {}
        # Units of a customer's claim token already redeemed against a pot
        self._claimed_units: dict[tuple[PotKey, str], int] = {}
        self._claims: dict[tuple[PotKey, str, str], ClaimState] = {}

    # --- lookups ---

    def _market(self, market_id: int) -> PoolMarket:
        market = self.markets.get(market_id)
        if market is None:
            raise MarketNotFound(f"market not found: {market_id}")
        return market

    def _oracle(self, oracle_id: int) -> PoolOracle:
        oracle = self.oracles.get(oracle_id)
        if oracle is None:
            raise OracleNotFound(f"oracle not found: {oracle_id}")
        return oracle

    def _owned_oracle(self, caller: str, oracle_id: int) -> PoolOracle:
        oracle = self._oracle(oracle_id)
        if normalize_address(caller) != oracle.owner:
            log.warning("oracle_call_rejected", reason="not_owner", oracle_id=oracle_id, caller=caller)
            raise Unauthorized(f"{caller} is not the owner of oracle {oracle_id}")
        return oracle

    def payout_denominator(self, oracle_id: int) -> int:
        return self._oracle(oracle_id).payout_denominator

    def total_collateral(self, collateral_token: str, market_id: int, oracle_id: int) -> int:
        return self._pots.get((normalize_address(collateral_token), market_id, oracle_id), 0)

    def deposits(self, collateral_token: str, market_id: int, oracle_id: int) -> list[Deposit]:
        return list(self._deposits.get((normalize_address(collateral_token), market_id, oracle_id), []))

    def claim_state(
        self, collateral_token: str, market_id: int, oracle_id: int, customer: str, account: str
    ) -> ClaimState:
        key = ((normalize_address(collateral_token), market_id, oracle_id), normalize_address(customer), normalize_address(account))
        return self._claims.get(key) or ClaimState()

    # --- markets, oracles, customers ---

    def create_market(self, creator: str) -> int:
        creator = normalize_address(creator)
        with self.store.transaction():
            market_id = len(self.markets)
            self.markets[market_id] = PoolMarket(market_id=market_id, creator=creator)
            self.store.emit("MarketCreated", account=creator, market_id=market_id)
        log.info("market_created", market_id=market_id, creator=creator)
        return market_id

    def create_oracle(self, owner: str) -> int:
        owner = normalize_address(owner)
        with self.store.transaction():
            oracle_id = len(self.oracles)
            self.oracles[oracle_id] = PoolOracle(oracle_id=oracle_id, owner=owner)
            self.store.emit("OracleCreated", account=owner, oracle_id=oracle_id)
        log.info("oracle_created", oracle_id=oracle_id, owner=owner)
        return oracle_id

    def register_customer(self, market_id: int, customer: str) -> str:
        """Mint the customer's claim token. Returns its id."""
        customer = normalize_address(customer)
        with self.store.transaction():
            market = self._market(market_id)
            if customer in market.customers:
                log.warning("register_rejected", reason="already_registered", market_id=market_id, customer=customer)
                raise AlreadyRegistered("customer already registered")
            token_id = conditional_token_id(market_id, customer)
            market.customers.add(customer)
            self.store.positions.mint(customer, token_id, INITIAL_CUSTOMER_BALANCE)
            self.store.emit("CustomerRegistered", account=customer, market_id=market_id, token_id=token_id)
        log.info("customer_registered", market_id=market_id, customer=customer)
        return token_id

    def transfer(self, sender: str, recipient: str, token_id: str | int, amount: int) -> None:
        with self.store.transaction():
            self.store.positions.transfer(sender, recipient, token_id, amount)

    # --- funding ---

    def _deposit(self, kind: str, sender: str, collateral_token: str, market_id: int, oracle_id: int, amount: int) -> None:
        sender = normalize_address(sender)
        collateral_token = normalize_address(collateral_token)
        if amount < 0:
            raise InvalidAmount(f"negative {kind}: {amount}")
        with self.store.transaction():
            self._market(market_id)
            if self._oracle(oracle_id).finished:
                raise AlreadyFinished(f"oracle {oracle_id} already finished")
            self.store.collateral(collateral_token).transfer_in(sender, amount)
            key = (collateral_token, market_id, oracle_id)
            self._pots[key] = self._pots.get(key, 0) + amount
            self._deposits.setdefault(key, []).append(Deposit(account=sender, amount=amount, kind=kind))
            if kind == "donation":
                receipt = collateral_donated_token_id(collateral_token, market_id, oracle_id)
                event_type = "DonateCollateral"
            else:
                receipt = collateral_staked_token_id(collateral_token, market_id, oracle_id)
                event_type = "StakeCollateral"
            self.store.positions.mint(sender, receipt, amount)
            self.store.emit(
                event_type,
                account=sender,
                collateral_token=collateral_token,
                market_id=market_id,
                oracle_id=oracle_id,
                amount=amount,
            )
        log.info("pool_funded", kind=kind, sender=sender, market_id=market_id, oracle_id=oracle_id, amount=amount)

    def donate(self, sender: str, collateral_token: str, market_id: int, oracle_id: int, amount: int) -> None:
        self._deposit("donation", sender, collateral_token, market_id, oracle_id, amount)

    def stake_collateral(self, sender: str, collateral_token: str, market_id: int, oracle_id: int, amount: int) -> None:
        self._deposit("stake", sender, collateral_token, market_id, oracle_id, amount)

    # --- oracle ---

    def report_numerator(self, caller: str, oracle_id: int, customer: str, numerator: int) -> None:
        """Record (or overwrite, until finished) a customer's numerator."""
        customer = normalize_address(customer)
        if numerator < 0:
            raise InvalidPayout(f"negative numerator: {numerator}")
        with self.store.transaction():
            oracle = self._owned_oracle(caller, oracle_id)
            if oracle.finished:
                raise AlreadyFinished(f"oracle {oracle_id} already finished")
            oracle.numerators[customer] = numerator
            self.store.emit("ReportedNumerator", account=oracle.owner, oracle_id=oracle_id, customer=customer, numerator=numerator)
        log.debug("numerator_reported", oracle_id=oracle_id, customer=customer, numerator=numerator)

    def finish_oracle(self, caller: str, oracle_id: int) -> int:
        """Lock denominator = sum of numerators. Returns it."""
        with self.store.transaction():
            oracle = self._owned_oracle(caller, oracle_id)
            if oracle.finished:
                log.warning("finish_rejected", reason="already_finished", oracle_id=oracle_id)
                raise AlreadyFinished(f"oracle {oracle_id} already finished")
            denominator = sum(oracle.numerators.values())
            if denominator == 0:
                raise AllZeroPayout(f"all numerators are zero for oracle {oracle_id}")
            oracle.payout_denominator = denominator
            oracle.finished = True
            self.store.emit("OracleFinished", account=oracle.owner, oracle_id=oracle_id, payout_denominator=denominator)
        log.info("oracle_finished", oracle_id=oracle_id, payout_denominator=denominator)
        return denominator

    # --- redemption ---

    def _claimable_units(self, pot: PotKey, market_id: int, customer: str, account: str) -> int:
        balance = self.store.positions.balance_of(account, conditional_token_id(market_id, customer))
        left = INITIAL_CUSTOMER_BALANCE - self._claimed_units.get((pot, customer), 0)
        return min(balance, left)

    def _share(self, pot: PotKey, oracle: PoolOracle, customer: str, units: int) -> int:
        numerator = oracle.numerators.get(customer, 0)
        return self._pots.get(pot, 0) * numerator * units // (oracle.payout_denominator * INITIAL_CUSTOMER_BALANCE)

    def initial_collateral_balance_of(
        self, collateral_token: str, market_id: int, oracle_id: int, customer: str, account: str
    ) -> int:
        """Collateral ``account`` would lock by activating its claim on ``customer``'s token now."""
        pot = (normalize_address(collateral_token), market_id, oracle_id)
        customer = normalize_address(customer)
        account = normalize_address(account)
        oracle = self._oracle(oracle_id)
        if not oracle.finished:
            return 0
        state = self._claims.get((pot, customer, account))
        if state is not None and state.status is not ClaimStatus.UNCLAIMED:
            return 0
        return self._share(pot, oracle, customer, self._claimable_units(pot, market_id, customer, account))

    def _pending_activation(
        self, pot: PotKey, market_id: int, oracle_id: int, customer: str, account: str
    ) -> tuple[ClaimState, int]:
        """Locked claim and the claim-token units it consumes. Records nothing."""
        self._market(market_id)
        oracle = self._oracle(oracle_id)
        if not oracle.finished:
            raise ConditionNotResolved(f"oracle {oracle_id} has not finished")
        state = self._claims.get((pot, customer, account))
        if state is not None and state.status is not ClaimStatus.UNCLAIMED:
            log.warning("redeem_rejected", reason="already_redeemed", account=account, customer=customer)
            raise AlreadyRedeemed("Already redeemed.")
        units = self._claimable_units(pot, market_id, customer, account)
        state = ClaimState()
        state.lock(self._share(pot, oracle, customer, units))
        return state, units

    def _record_activation(
        self, pot: PotKey, market_id: int, oracle_id: int, customer: str, account: str, state: ClaimState, units: int
    ) -> None:
        self._claims[(pot, customer, account)] = state
        self._claimed_units[(pot, customer)] = self._claimed_units.get((pot, customer), 0) + units
        self.store.emit(
            "RedeemActivated",
            account=account,
            collateral_token=pot[0],
            market_id=market_id,
            oracle_id=oracle_id,
            customer=customer,
            units=units,
            amount=state.locked,
        )
        log.info(
            "redeem_activated",
            account=account,
            market_id=market_id,
            oracle_id=oracle_id,
            customer=customer,
            amount=state.locked,
        )

    def activate_redeem(
        self, account: str, collateral_token: str, market_id: int, oracle_id: int, customer: str
    ) -> int:
        """Lock ``account``'s share for ``customer``'s claim token. Replays fail with AlreadyRedeemed."""
        account = normalize_address(account)
        customer = normalize_address(customer)
        pot = (normalize_address(collateral_token), market_id, oracle_id)
        with self.store.transaction():
            state, units = self._pending_activation(pot, market_id, oracle_id, customer, account)
            self._record_activation(pot, market_id, oracle_id, customer, account, state, units)
        return state.locked

    def withdraw_collateral(
        self,
        account: str,
        collateral_token: str,
        market_id: int,
        oracle_id: int,
        customer: str,
        amount: int | None = None,
        to: str | None = None,
    ) -> int:
        """Pay out locked collateral to ``to`` (default ``account``).

        ``amount=None`` withdraws everything left, activating the claim first
        when needed; a second full withdrawal fails with AlreadyRedeemed. A
        numeric ``amount`` withdraws part; asking for more than remains fails
        with ArithmeticUnderflow. Claim state changes only once the collateral
        has been paid out.
        """
        account = normalize_address(account)
        customer = normalize_address(customer)
        recipient = normalize_address(to) if to is not None else account
        pot = (normalize_address(collateral_token), market_id, oracle_id)
        key = (pot, customer, account)
        with self.store.transaction():
            asset = self.store.collateral(pot[0])
            current = self._claims.get(key)
            if current is None or current.status is ClaimStatus.UNCLAIMED:
                state, units = self._pending_activation(pot, market_id, oracle_id, customer, account)
                paid = state.withdraw(state.remaining if amount is None else amount)
            else:
                state, units = replace(current), None
                paid = state.withdraw(amount)
            asset.transfer_out(recipient, paid)
            if units is None:
                self._claims[key] = state
            else:
                self._record_activation(pot, market_id, oracle_id, customer, account, state, units)
            self.store.emit(
                "CollateralWithdrawn",
                account=account,
                collateral_token=pot[0],
                market_id=market_id,
                oracle_id=oracle_id,
                customer=customer,
                recipient=recipient,
                amount=paid,
            )
        log.info("collateral_withdrawn", account=account, recipient=recipient, customer=customer, amount=paid)
        return paid
