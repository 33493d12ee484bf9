"""
Wire models for the Fusion+ API.

Only the fields the coordinator reads are declared; everything else the
service returns is kept (extra="allow") so a quote can be sent back
verbatim when building the order.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core import OrderState, PresetName


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Preset(_WireModel):
    """Execution preset attached to a quote."""
    auction_duration: Optional[int] = Field(None, alias="auctionDuration")
    start_auction_in: Optional[int] = Field(None, alias="startAuctionIn")
    initial_rate_bump: Optional[int] = Field(None, alias="initialRateBump")
    auction_start_amount: Optional[str] = Field(None, alias="auctionStartAmount")
    auction_end_amount: Optional[str] = Field(None, alias="auctionEndAmount")
    allow_partial_fills: bool = Field(False, alias="allowPartialFills")
    allow_multiple_fills: bool = Field(False, alias="allowMultipleFills")
    secrets_count: int = Field(..., alias="secretsCount")


class Quote(_WireModel):
    """Quote returned by the quoter."""
    quote_id: Optional[str] = Field(None, alias="quoteId")
    src_token_amount: str = Field(..., alias="srcTokenAmount")
    dst_token_amount: str = Field(..., alias="dstTokenAmount")
    presets: Dict[str, Optional[Preset]] = Field(default_factory=dict)
    recommended_preset: Optional[str] = Field(None, alias="recommendedPreset")
    src_escrow_factory: Optional[str] = Field(None, alias="srcEscrowFactory")
    dst_escrow_factory: Optional[str] = Field(None, alias="dstEscrowFactory")

    # Query parameters the quote was requested with; not part of the response
    request: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    @property
    def src_chain_id(self) -> Optional[int]:
        return self.request.get("srcChain")

    @property
    def dst_chain_id(self) -> Optional[int]:
        return self.request.get("dstChain")

    def resolve_preset(self, preset: Optional[PresetName] = None) -> PresetName:
        """Requested preset, else the recommended one, else FAST."""
        if preset is not None:
            return preset
        if self.recommended_preset:
            try:
                return PresetName(self.recommended_preset)
            except ValueError:
                pass
        return PresetName.FAST

    def get_preset(self, preset: Optional[PresetName] = None) -> Preset:
        name = self.resolve_preset(preset)
        found = self.presets.get(name.value)
        if found is None:
            available = sorted(k for k, v in self.presets.items() if v is not None)
            raise KeyError(f"Quote has no {name.value!r} preset (available: {available})")
        return found

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TakingFee(_WireModel):
    """Integrator fee taken from the destination amount."""
    taking_fee_bps: int = Field(..., alias="takingFeeBps", ge=0, le=10_000)
    taking_fee_receiver: str = Field(..., alias="takingFeeReceiver")


class ReadyFill(_WireModel):
    """Fill whose escrows are deployed and waiting for the secret."""
    idx: int
    src_escrow_deploy_tx_hash: Optional[str] = Field(None, alias="srcEscrowDeployTxHash")
    dst_escrow_deploy_tx_hash: Optional[str] = Field(None, alias="dstEscrowDeployTxHash")


class ReadyToAcceptSecretFills(_WireModel):
    fills: List[ReadyFill] = Field(default_factory=list)


class OrderStatusInfo(_WireModel):
    order_hash: Optional[str] = Field(None, alias="orderHash")
    status: str

    @property
    def state(self) -> OrderState:
        return OrderState.parse(self.status)


class BuiltOrder(_WireModel):
    """Unsigned order as produced by the quote builder."""
    order_hash: str = Field(..., alias="orderHash")
    typed_data: Dict[str, Any] = Field(..., alias="typedData")
    extension: str = "0x"


class SubmittedOrder(_WireModel):
    """Handle for an accepted order. Holds no secret material."""
    order_hash: str = Field(..., alias="orderHash")
    quote_id: Optional[str] = Field(None, alias="quoteId")
