"""Portfolio item, repricing and reporting endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from assetbook.api.deps import get_portfolio_service
from assetbook.api.schemas.portfolio import (
    AnalysisResponse,
    DepositTerms,
    PortfolioItemCreateRequest,
    PortfolioItemListResponse,
    PortfolioItemResponse,
    PortfolioItemUpdateRequest,
    PositionResponse,
    PositionsResponse,
    RepriceRequest,
    RepriceResponse,
    SummaryResponse,
)
from assetbook.domain.models import DepositMetadata, InstrumentType
from assetbook.services import (
    DepositInfoUpdate,
    PortfolioItemCreate,
    PortfolioItemUpdate,
    PortfolioService,
)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("/{owner_id}/items", response_model=PortfolioItemListResponse)
def list_items(
    owner_id: str,
    instrument_type: Optional[InstrumentType] = Query(default=None),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """List an owner's lots, newest first."""
    items = service.list_items(owner_id, instrument_type)
    return PortfolioItemListResponse(
        items=[PortfolioItemResponse.model_validate(item) for item in items],
        count=len(items),
    )


@router.post("/{owner_id}/items", response_model=PortfolioItemResponse, status_code=201)
def add_item(
    owner_id: str,
    data: PortfolioItemCreateRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Add a purchase lot; it starts priced at its purchase price."""
    metadata = DepositMetadata(**data.deposit.model_dump()) if data.deposit else None
    item = service.add_item(
        PortfolioItemCreate(
            owner_id=owner_id,
            instrument_type=data.instrument_type,
            display_name=data.display_name,
            quantity=data.quantity,
            purchase_price=data.purchase_price,
            symbol=data.symbol,
            purchase_date=data.purchase_date,
            metadata=metadata,
        )
    )
    return PortfolioItemResponse.model_validate(item)


@router.get("/{owner_id}/items/{item_id}", response_model=PortfolioItemResponse)
def get_item(
    owner_id: str,
    item_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    return PortfolioItemResponse.model_validate(service.get_item(owner_id, item_id))


@router.patch("/{owner_id}/items/{item_id}", response_model=PortfolioItemResponse)
def update_item(
    owner_id: str,
    item_id: str,
    data: PortfolioItemUpdateRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Edit a lot; derived figures are recomputed."""
    item = service.update_item(owner_id, item_id, PortfolioItemUpdate(**data.model_dump()))
    return PortfolioItemResponse.model_validate(item)


@router.put("/{owner_id}/items/{item_id}/deposit", response_model=PortfolioItemResponse)
def update_deposit_info(
    owner_id: str,
    item_id: str,
    data: DepositTerms,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Change a deposit's rate, exemption, maturity or bank."""
    item = service.update_deposit_info(owner_id, item_id, DepositInfoUpdate(**data.model_dump()))
    return PortfolioItemResponse.model_validate(item)


@router.delete("/{owner_id}/items/{item_id}", status_code=204)
def delete_item(
    owner_id: str,
    item_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Delete a lot and its accrual schedule."""
    service.delete_item(owner_id, item_id)


@router.post("/{owner_id}/reprice", response_model=RepriceResponse)
def reprice(
    owner_id: str,
    data: RepriceRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Apply a new market price to every lot of one symbol."""
    items = service.bulk_reprice(owner_id, data.symbol, data.price)
    return RepriceResponse(
        symbol=data.symbol,
        price=data.price,
        updated_count=len(items),
        items=[PortfolioItemResponse.model_validate(item) for item in items],
    )


@router.get("/{owner_id}/positions", response_model=PositionsResponse)
def consolidated_positions(
    owner_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """One merged position per symbol."""
    positions = service.consolidated_positions(owner_id)
    return PositionsResponse(
        positions=[PositionResponse.model_validate(p) for p in positions],
        count=len(positions),
    )


@router.get("/{owner_id}/summary", response_model=SummaryResponse)
def summary(
    owner_id: str,
    consolidated: bool = Query(default=True, description="Merge lots per symbol first"),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return SummaryResponse.model_validate(service.summary(owner_id, consolidated=consolidated))


@router.get("/{owner_id}/analysis", response_model=AnalysisResponse)
def analysis(
    owner_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Allocation, concentration risk and stability."""
    return AnalysisResponse.model_validate(service.analysis(owner_id))
