"""
Catalog API Router
Medicine catalog that tracked medications refer to
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, http_error, services, SERVICE_ERRORS
from api.schemas.catalog import (
    CatalogMedicineCreate,
    CatalogMedicineUpdate,
    CatalogMedicineResponse,
)
from services.errors import CatalogEntryMissing


router = APIRouter(prefix="/medicines", tags=["medicines"])


def _not_found(e: CatalogEntryMissing) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/", response_model=List[CatalogMedicineResponse])
async def list_medicines(
    q: Optional[str] = Query(None, description="Case-insensitive name search"),
    db: Session = Depends(get_db)
):
    """
    List catalog medicines, newest first
    """
    catalog_service = services.get_catalog_service()
    return await catalog_service.list_medicines(query=q, db=db)


@router.post("/", response_model=CatalogMedicineResponse, status_code=status.HTTP_201_CREATED)
async def create_medicine(
    medicine_data: CatalogMedicineCreate,
    db: Session = Depends(get_db)
):
    catalog_service = services.get_catalog_service()

    try:
        return await catalog_service.create_medicine(
            name=medicine_data.name,
            price=medicine_data.price,
            description=medicine_data.description,
            symptoms=medicine_data.symptoms,
            db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.get("/{medicine_id}", response_model=CatalogMedicineResponse)
async def get_medicine(
    medicine_id: int,
    db: Session = Depends(get_db)
):
    catalog_service = services.get_catalog_service()

    try:
        return await catalog_service.get_medicine(medicine_id, db=db)
    except CatalogEntryMissing as e:
        raise _not_found(e)


@router.put("/{medicine_id}", response_model=CatalogMedicineResponse)
async def update_medicine(
    medicine_id: int,
    medicine_data: CatalogMedicineUpdate,
    db: Session = Depends(get_db)
):
    catalog_service = services.get_catalog_service()

    try:
        return await catalog_service.update_medicine(
            medicine_id,
            medicine_data.model_dump(exclude_unset=True),
            db=db
        )
    except CatalogEntryMissing as e:
        raise _not_found(e)


@router.delete("/{medicine_id}")
async def delete_medicine(
    medicine_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete a catalog medicine. Tracked medications that refer to it keep
    working under their stored name.
    """
    catalog_service = services.get_catalog_service()

    try:
        await catalog_service.delete_medicine(medicine_id, db=db)
    except CatalogEntryMissing as e:
        raise _not_found(e)

    return {"ok": True}
