from dataclasses import asdict
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from solders.pubkey import Pubkey

from flask import jsonify
from flask_openapi3 import Info, Tag
from flask_openapi3 import OpenAPI

from tokencurve_core.common.config import CurveConfig, configure_logging
from tokencurve_core.common.enums import CurveShape
from tokencurve_core.common.errors import (
    AlreadyInitialized,
    BondingCurveError,
    ConsistencyFault,
    CurveNotFound,
    InvalidAccount,
    Unauthorized,
)
from tokencurve_core.common.math import U64_MAX, to_ui_amount
from tokencurve_core.common.model import CurveState, TransactionResult
from tokencurve_core.curves import pricing
from tokencurve_core.ledger.addresses import NATIVE_MINT
from tokencurve_core.ledger.memory import InMemoryLedger
from tokencurve_core.settlement.orchestrator import SettlementOrchestrator


_ERROR_STATUS = {
    AlreadyInitialized: 409,
    Unauthorized: 403,
    CurveNotFound: 404,
    ConsistencyFault: 500,
}


class CurveTransactionAction(Enum):
    buy = "buy"
    sell = "sell"


class CurveType(Enum):
    linear = "linear"
    constant_product = "constant_product"


class InitializeRequest(BaseModel):
    token_mint: str = Field(description="Mint of the token the curve issues")
    authority: str = Field(description="Caller; becomes the curve authority")
    base_price: int = Field(description="Reserve units per whole token at zero supply", ge=0, le=U64_MAX)
    slope: int = Field(description="Linear slope, or virtual depth for constant product", ge=0, le=U64_MAX)
    curve_type: CurveType = Field(CurveType.linear, description="The bonding curve type to use")
    fee_bps: Optional[int] = Field(None, description="Fee rate in basis points", ge=0)


class CurveTransactionRequest(BaseModel):
    token_mint: str = Field(description="Mint of the curve's token")
    trader: str = Field(description="Account paying and receiving")
    amount_in: int = Field(description="Reserve to spend (buy) or tokens to return (sell)", ge=0, le=U64_MAX)
    min_amount_out: int = Field(0, description="Slippage bound on the amount received", ge=0, le=U64_MAX)


class PauseRequest(BaseModel):
    token_mint: str
    caller: str
    paused: bool


class FeeRequest(BaseModel):
    token_mint: str
    caller: str
    fee_bps: int = Field(ge=0)


class AirdropRequest(BaseModel):
    account: str = Field(description="Account to credit with native reserve")
    amount: int = Field(description="Reserve units to credit", ge=1, le=U64_MAX)


class CurveStatusRequest(BaseModel):
    token_mint: str = Field(description="Mint of the curve's token")


class CurveQuoteRequest(BaseModel):
    token_mint: str = Field(description="Mint of the curve's token")
    action: CurveTransactionAction = Field(description="Side to quote")
    amount: int = Field(description="Reserve in (buy), tokens in (sell) or tokens wanted (exact_out)", ge=0, le=U64_MAX)
    exact_out: bool = Field(False, description="For buys, quote the reserve needed for 'amount' tokens")


curve_admin_tag = Tag(name="Bonding Curve Admin", description="Create a curve and manage its settings")
curve_action_tag = Tag(
    name="Bonding Curve Transaction",
    description="Perform a buy or sell transaction on a curve and get the execution information",
)
curve_status_tag = Tag(name="Bonding Curve Status", description="Read the state and prices of a curve")
simulation_tag = Tag(name="Simulation", description="Fund accounts on the in-memory ledger")


def _pubkey(value: str, label: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except Exception as exc:
        raise InvalidAccount(f"{label} is not a valid address: {value}") from exc


def _state_json(state: CurveState) -> dict:
    return {
        "authority": str(state.authority),
        "token_mint": str(state.token_mint),
        "shape": str(state.shape),
        "base_price": state.base_price,
        "slope": state.slope,
        "decimals": state.decimals,
        "fee_bps": state.fee_bps,
        "reserve_balance": state.reserve_balance,
        "token_supply": state.token_supply,
        "token_supply_ui": str(to_ui_amount(state.token_supply, state.decimals)),
        "fees_collected": state.fees_collected,
        "paused": state.paused,
    }


def _result_json(result: TransactionResult) -> dict:
    payload = asdict(result)
    payload["side"] = str(result.side)
    return payload


def create_app(orchestrator: Optional[SettlementOrchestrator] = None) -> OpenAPI:
    """
    Builds the HTTP API over an orchestrator. Without one, serves an
    in-memory ledger configured from the environment.
    """
    if orchestrator is None:
        orchestrator = SettlementOrchestrator(InMemoryLedger(), config=CurveConfig.from_env())

    info = Info(title="Bonding Curve API", version="1.0.0")
    app = OpenAPI(__name__, info=info)
    app.config["ORCHESTRATOR"] = orchestrator

    def handle_curve_error(error: BondingCurveError):
        return jsonify({"error": error.code, "message": str(error)}), _ERROR_STATUS.get(type(error), 400)

    app.register_error_handler(BondingCurveError, handle_curve_error)

    @app.post("/curve/initialize", summary="Initialize Curve", tags=[curve_admin_tag])
    def initialize(body: InitializeRequest):
        """
        Creates a curve for a new mint; the caller becomes its authority
        """
        token_mint = _pubkey(body.token_mint, "token_mint")
        accounts = orchestrator.initialize_accounts(token_mint, _pubkey(body.authority, "authority"))
        state = orchestrator.initialize(
            accounts,
            body.base_price,
            body.slope,
            shape=CurveShape.from_str(body.curve_type.value),
            fee_bps=body.fee_bps,
        )
        payload = _state_json(state)
        payload["curve"] = str(accounts.curve)
        payload["escrow"] = str(accounts.escrow)
        return jsonify(payload), 201

    @app.post("/curve/pause", summary="Pause Or Resume Trading", tags=[curve_admin_tag])
    def pause(body: PauseRequest):
        state = orchestrator.set_paused(
            _pubkey(body.token_mint, "token_mint"), _pubkey(body.caller, "caller"), body.paused
        )
        return jsonify(_state_json(state))

    @app.post("/curve/fee", summary="Set Fee Rate", tags=[curve_admin_tag])
    def fee(body: FeeRequest):
        state = orchestrator.set_fee_bps(
            _pubkey(body.token_mint, "token_mint"), _pubkey(body.caller, "caller"), body.fee_bps
        )
        return jsonify(_state_json(state))

    @app.post("/curve/buy", summary="Buy Tokens", tags=[curve_action_tag])
    def buy(body: CurveTransactionRequest):
        """
        Spends reserve on the curve and mints tokens to the trader
        """
        accounts = orchestrator.trade_accounts(_pubkey(body.token_mint, "token_mint"), _pubkey(body.trader, "trader"))
        result = orchestrator.buy(accounts, body.amount_in, min_tokens_out=body.min_amount_out)
        return jsonify(_result_json(result))

    @app.post("/curve/sell", summary="Sell Tokens", tags=[curve_action_tag])
    def sell(body: CurveTransactionRequest):
        """
        Returns tokens to the curve and pays reserve to the trader
        """
        accounts = orchestrator.trade_accounts(_pubkey(body.token_mint, "token_mint"), _pubkey(body.trader, "trader"))
        result = orchestrator.sell(accounts, body.amount_in, min_reserve_out=body.min_amount_out)
        return jsonify(_result_json(result))

    if isinstance(orchestrator.ledger, InMemoryLedger):
        @app.post("/curve/airdrop", summary="Airdrop Reserve", tags=[simulation_tag])
        def airdrop(body: AirdropRequest):
            """
            Credits native reserve to an account. Only served over the in-memory ledger
            """
            account = _pubkey(body.account, "account")
            ledger = orchestrator.ledger
            ledger.airdrop(account, body.amount)
            return jsonify({"account": str(account), "balance": ledger.balance_of(NATIVE_MINT, account)})

    @app.get("/curve/status", summary="Curve Status", tags=[curve_status_tag])
    def status(query: CurveStatusRequest):
        """
        Return the state of the curve and the marginal price of the next whole token.
        """
        state = orchestrator.get_state(_pubkey(query.token_mint, "token_mint"))
        payload = _state_json(state)
        payload["spot_price"] = pricing.spot_price(state)
        return jsonify(payload)

    @app.get("/curve/quote", summary="Curve Quote", tags=[curve_status_tag])
    def quote(query: CurveQuoteRequest):
        token_mint = _pubkey(query.token_mint, "token_mint")
        if query.action == CurveTransactionAction.buy and query.exact_out:
            return jsonify({"tokens_out": query.amount, "reserve_in": orchestrator.cost_to_buy(token_mint, query.amount)})
        if query.action == CurveTransactionAction.buy:
            return jsonify(asdict(orchestrator.quote_buy(token_mint, query.amount)))
        return jsonify(asdict(orchestrator.quote_sell(token_mint, query.amount)))

    return app


def main():
    config = CurveConfig.from_env()
    configure_logging(config)
    create_app(SettlementOrchestrator(InMemoryLedger(), config=config)).run(debug=True)


if __name__ == "__main__":
    main()
