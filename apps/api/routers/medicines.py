"""Medicine catalog endpoints"""
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import List, Optional
import logging

from database import get_session
from models import User
from schemas import MedicineCreate, MedicineUpdate, MedicineResponse, MedicinePageResponse
from dependencies import require_admin, require_route
from services import medicine_service
from services.inventory_errors import InventoryError, http_error_for
from utils.cache import AnalyticsCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/medicines", tags=["Medicines"])


@router.get("", response_model=MedicinePageResponse)
def list_medicines(
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    sort_field: str = "name",
    sort_order: str = "asc",
    search: Optional[str] = None,
    category: str = medicine_service.ALL,
    status_filter: str = Query(medicine_service.ALL, alias="status"),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("medicines"))
):
    """Paginated medicine list with search, filters and sorting"""
    try:
        result = medicine_service.list_medicines(
            session,
            page=page,
            page_size=page_size,
            sort_field=sort_field,
            sort_order=sort_order,
            search_term=search,
            category_filter=category,
            status_filter=status_filter,
        )
    except InventoryError as e:
        raise http_error_for(e)

    return MedicinePageResponse(
        items=[MedicineResponse.model_validate(m) for m in result.items],
        total_count=result.total_count,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/categories", response_model=List[str])
def list_categories(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("medicines"))
):
    return medicine_service.list_categories(session)


@router.get("/barcode/{barcode}", response_model=MedicineResponse)
def get_medicine_by_barcode(
    barcode: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("medicines"))
):
    try:
        return medicine_service.get_medicine_by_barcode(session, barcode)
    except InventoryError as e:
        raise http_error_for(e)


@router.post("/refresh-status")
def refresh_statuses(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin)
):
    """Re-derive every medicine's status as of today"""
    try:
        changed = medicine_service.refresh_all_statuses(session)
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return {"message": f"Refreshed statuses, {changed} changed", "changed": changed}


@router.get("/{medicine_id}", response_model=MedicineResponse)
def get_medicine(
    medicine_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("medicines"))
):
    try:
        return medicine_service.get_medicine(session, medicine_id)
    except InventoryError as e:
        raise http_error_for(e)


@router.post("", response_model=MedicineResponse, status_code=status.HTTP_201_CREATED)
def create_medicine(
    medicine_data: MedicineCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("medicines"))
):
    try:
        medicine = medicine_service.create_medicine(session, medicine_data.model_dump())
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return medicine


@router.put("/{medicine_id}", response_model=MedicineResponse)
def update_medicine(
    medicine_id: int,
    medicine_data: MedicineUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("medicines"))
):
    try:
        medicine = medicine_service.update_medicine(
            session, medicine_id, medicine_data.model_dump(exclude_unset=True)
        )
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return medicine


@router.delete("/{medicine_id}")
def delete_medicine(
    medicine_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("medicines"))
):
    try:
        name = medicine_service.delete_medicine(session, medicine_id)
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    logger.info(f"Medicine {medicine_id} ({name}) deleted by user {current_user.id}")
    return {"message": f"{name} has been deleted."}
