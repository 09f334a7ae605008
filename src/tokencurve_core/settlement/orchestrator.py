"""
Settlement orchestrator: the only entry point that changes a curve.

Every buy and sell runs the same four steps:

  1) validate  - re-derive and compare every caller-supplied address, apply
                 the access guard, reject zero amounts, check the curve
                 agrees with the ledger
  2) quote     - price the trade against the state as loaded
  3) apply     - build the replacement CurveState
  4) transfer  - move reserve, mint or burn, re-check invariants and commit
                 the record, all inside one ledger transaction

No ledger instruction is issued unless steps 1-3 succeeded, and a failure
in step 4 rolls back the ledger and leaves the stored record untouched.
"""
import logging
from dataclasses import replace
from typing import Callable, Optional, Tuple

from solders.pubkey import Pubkey

from tokencurve_core.common.config import CurveConfig
from tokencurve_core.common.enums import CurveShape, OrderSide
from tokencurve_core.common.errors import (
    AlreadyInitialized,
    BondingCurveError,
    InvalidAccount,
    InvalidAmount,
    InvalidParameters,
    LedgerError,
    SlippageExceeded,
)
from tokencurve_core.common.math import checked_add, require_u64
from tokencurve_core.common.model import (
    BuyQuote,
    CurveState,
    InitializeAccounts,
    SellQuote,
    TradeAccounts,
    TransactionResult,
)
from tokencurve_core.curves import pricing
from tokencurve_core.ledger.addresses import NATIVE_MINT, AddressDeriver
from tokencurve_core.ledger.base import Ledger
from tokencurve_core.settlement.guard import AuthorityGuard
from tokencurve_core.state.layout import decode_curve_state, encode_curve_state
from tokencurve_core.state.store import AccountStore, StoredAccount
from tokencurve_core.validation.invariant_validator import CurveInvariantValidator
from tokencurve_core.validation.params_validator import CurveParamsValidator


logger = logging.getLogger(__name__)


class SettlementOrchestrator:
    def __init__(
        self,
        ledger: Ledger,
        store: Optional[AccountStore] = None,
        config: Optional[CurveConfig] = None,
        deriver: Optional[AddressDeriver] = None,
    ):
        self.ledger = ledger
        self.store = store or AccountStore()
        self.config = config or CurveConfig()
        self.deriver = deriver or AddressDeriver(self.config)

    def initialize_accounts(self, token_mint: Pubkey, authority: Pubkey) -> InitializeAccounts:
        """Derives the accounts a well-behaved client passes to initialize."""
        curve, _ = self.deriver.curve_address(token_mint)
        escrow, _ = self.deriver.escrow_address(curve)
        return InitializeAccounts(curve=curve, escrow=escrow, token_mint=token_mint, authority=authority)

    def trade_accounts(self, token_mint: Pubkey, trader: Pubkey) -> TradeAccounts:
        """Derives the accounts a well-behaved client passes to buy or sell."""
        curve, _ = self.deriver.curve_address(token_mint)
        escrow, _ = self.deriver.escrow_address(curve)
        return TradeAccounts(
            curve=curve,
            escrow=escrow,
            token_mint=token_mint,
            trader=trader,
            trader_token_account=self.deriver.token_account(trader, token_mint),
        )

    def get_state(self, token_mint: Pubkey) -> CurveState:
        curve, _ = self.deriver.curve_address(token_mint)
        return decode_curve_state(self.store.load(curve).data)

    def initialize(
        self,
        accounts: InitializeAccounts,
        base_price: int,
        slope: int,
        shape: CurveShape = CurveShape.LINEAR,
        fee_bps: Optional[int] = None,
    ) -> CurveState:
        """
        Creates the curve record and its mint; the caller becomes the authority.

        :raises InvalidAccount: curve or escrow address is not the derived one
        :raises AlreadyInitialized: a record already exists for this mint
        :raises InvalidParameters: parameters outside their bounds
        """
        curve, bump = self.deriver.curve_address(accounts.token_mint)
        self.deriver.require_match("Curve account", curve, accounts.curve)
        escrow, escrow_bump = self.deriver.escrow_address(curve)
        self.deriver.require_match("Escrow account", escrow, accounts.escrow)

        if self.store.exists(curve):
            raise AlreadyInitialized(f"Curve for mint {accounts.token_mint} is already initialized")

        fee_bps = self.config.default_fee_bps if fee_bps is None else fee_bps
        decimals = self.config.token_decimals
        validation = CurveParamsValidator.validate_params(shape, base_price, slope, fee_bps, decimals, self.config)
        if validation["errors"]:
            raise InvalidParameters("; ".join(validation["errors"]))
        for warning in validation["warnings"]:
            logger.warning(warning)

        state = CurveState(
            authority=accounts.authority,
            token_mint=accounts.token_mint,
            shape=shape,
            base_price=base_price,
            slope=slope,
            decimals=decimals,
            fee_bps=fee_bps,
            bump=bump,
            escrow_bump=escrow_bump,
        )
        data = encode_curve_state(state)

        with self.ledger.transaction():
            self._ledger_call(self.ledger.create_mint, accounts.token_mint, curve, decimals)
            self.store.create(curve, data)

        logger.info(
            "Bonding curve initialized for mint %s: shape %s, base price %d, slope %d, fee %d bps",
            accounts.token_mint, shape, base_price, slope, fee_bps,
        )
        return state

    def quote_buy(self, token_mint: Pubkey, amount_in: int) -> BuyQuote:
        return pricing.quote_buy(self.get_state(token_mint), amount_in)

    def quote_sell(self, token_mint: Pubkey, amount_in: int) -> SellQuote:
        return pricing.quote_sell(self.get_state(token_mint), amount_in)

    def cost_to_buy(self, token_mint: Pubkey, tokens_out: int) -> int:
        return pricing.cost_to_buy(self.get_state(token_mint), tokens_out)

    def buy(self, accounts: TradeAccounts, amount_in: int, min_tokens_out: int = 0) -> TransactionResult:
        """
        Spends amount_in of the reserve asset and mints the quoted tokens to the
        trader's token account.

        :raises SlippageExceeded: fewer than min_tokens_out would be minted
        """
        require_u64(min_tokens_out, "min_tokens_out")
        stored, state = self._validate_trade(accounts, amount_in)

        quote = pricing.quote_buy(state, amount_in)
        if quote.tokens_out < min_tokens_out:
            logger.warning("Buy rejected: %d tokens out < minimum %d", quote.tokens_out, min_tokens_out)
            raise SlippageExceeded(f"Would mint {quote.tokens_out} tokens, minimum is {min_tokens_out}")

        new_state = replace(
            state,
            reserve_balance=quote.new_reserve_balance,
            token_supply=quote.new_supply,
            fees_collected=checked_add(state.fees_collected, quote.fee),
        )

        def transfer():
            self._ledger_call(self.ledger.transfer, NATIVE_MINT, accounts.trader, accounts.escrow, amount_in)
            self._ledger_call(
                self.ledger.mint, accounts.token_mint, accounts.trader_token_account, quote.tokens_out, accounts.curve
            )

        self._settle(accounts, stored, new_state, transfer)
        logger.info(
            "Bought %d tokens of %s for %d (fee %d); supply %d, reserve %d",
            quote.tokens_out, accounts.token_mint, amount_in, quote.fee, quote.new_supply, quote.new_reserve_balance,
        )
        return TransactionResult(
            side=OrderSide.BUY,
            amount_in=amount_in,
            amount_out=quote.tokens_out,
            fee=quote.fee,
            new_reserve_balance=quote.new_reserve_balance,
            new_supply=quote.new_supply,
        )

    def sell(self, accounts: TradeAccounts, amount_in: int, min_reserve_out: int = 0) -> TransactionResult:
        """
        Burns amount_in tokens from the trader's token account and pays the
        quoted reserve out of the escrow.

        :raises SlippageExceeded: less than min_reserve_out would be paid
        """
        require_u64(min_reserve_out, "min_reserve_out")
        stored, state = self._validate_trade(accounts, amount_in)

        quote = pricing.quote_sell(state, amount_in)
        if quote.reserve_out < min_reserve_out:
            logger.warning("Sell rejected: %d reserve out < minimum %d", quote.reserve_out, min_reserve_out)
            raise SlippageExceeded(f"Would pay {quote.reserve_out}, minimum is {min_reserve_out}")

        new_state = replace(
            state,
            reserve_balance=quote.new_reserve_balance,
            token_supply=quote.new_supply,
            fees_collected=checked_add(state.fees_collected, quote.fee),
        )

        def transfer():
            self._ledger_call(self.ledger.burn, accounts.token_mint, accounts.trader_token_account, amount_in)
            self._ledger_call(self.ledger.transfer, NATIVE_MINT, accounts.escrow, accounts.trader, quote.reserve_out)

        self._settle(accounts, stored, new_state, transfer)
        logger.info(
            "Sold %d tokens of %s for %d (fee %d); supply %d, reserve %d",
            amount_in, accounts.token_mint, quote.reserve_out, quote.fee, quote.new_supply, quote.new_reserve_balance,
        )
        return TransactionResult(
            side=OrderSide.SELL,
            amount_in=amount_in,
            amount_out=quote.reserve_out,
            fee=quote.fee,
            new_reserve_balance=quote.new_reserve_balance,
            new_supply=quote.new_supply,
        )

    def set_paused(self, token_mint: Pubkey, caller: Pubkey, paused: bool) -> CurveState:
        state = self._admin_update(token_mint, caller, paused=bool(paused))
        logger.info("Trading on %s %s by %s", token_mint, "paused" if paused else "resumed", caller)
        return state

    def set_fee_bps(self, token_mint: Pubkey, caller: Pubkey, fee_bps: int) -> CurveState:
        errors = CurveParamsValidator.validate_fee(fee_bps, self.config)["errors"]
        if errors:
            raise InvalidParameters("; ".join(errors))
        state = self._admin_update(token_mint, caller, fee_bps=fee_bps)
        logger.info("Fee on %s set to %d bps by %s", token_mint, fee_bps, caller)
        return state

    def _admin_update(self, token_mint: Pubkey, caller: Pubkey, **changes) -> CurveState:
        curve, _ = self.deriver.curve_address(token_mint)
        stored = self.store.load(curve)
        state = decode_curve_state(stored.data)
        AuthorityGuard.require_authority(state, caller)
        new_state = replace(state, **changes)
        self.store.commit(curve, encode_curve_state(new_state), stored.version)
        return new_state

    def _validate_trade(self, accounts: TradeAccounts, amount_in: int) -> Tuple[StoredAccount, CurveState]:
        require_u64(amount_in, "amount_in")
        if amount_in == 0:
            raise InvalidAmount("Amount must be greater than 0")

        expected_curve, _ = self.deriver.curve_address(accounts.token_mint)
        self.deriver.require_match("Curve account", expected_curve, accounts.curve)
        stored = self.store.load(accounts.curve)
        state = decode_curve_state(stored.data)
        if state.token_mint != accounts.token_mint:
            raise InvalidAccount(f"Curve tracks mint {state.token_mint}, not {accounts.token_mint}")
        self.deriver.verify_curve(accounts.token_mint, accounts.curve, accounts.escrow, state.bump, state.escrow_bump)
        self.deriver.require_match(
            "Trader token account",
            self.deriver.token_account(accounts.trader, accounts.token_mint),
            accounts.trader_token_account,
        )

        AuthorityGuard.require_trading_open(state)
        CurveInvariantValidator.require_consistent(state, self.ledger, accounts.escrow)
        return stored, state

    def _settle(
        self,
        accounts: TradeAccounts,
        stored: StoredAccount,
        new_state: CurveState,
        transfer: Callable[[], None],
    ) -> None:
        data = encode_curve_state(new_state)
        with self.ledger.transaction():
            transfer()
            CurveInvariantValidator.require_consistent(new_state, self.ledger, accounts.escrow)
            self.store.commit(accounts.curve, data, stored.version)

    @staticmethod
    def _ledger_call(instruction: Callable, *args) -> None:
        try:
            instruction(*args)
        except BondingCurveError:
            raise
        except Exception as exc:
            raise LedgerError(f"{getattr(instruction, '__name__', 'ledger call')} failed: {exc}", cause=exc) from exc
