"""
Catalog Service
Medicine catalog lookups used for display names and enrollment
"""

import logging
from typing import Dict, Iterable, List, Optional, Any
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import tracker_config
from database import get_db_context
import models
from services.errors import CatalogEntryMissing, DuplicateCatalogEntry


logger = logging.getLogger(__name__)


class CatalogService:
    """
    Service for catalog medicines
    """

    async def create_medicine(
        self,
        name: str,
        price: float = 0.0,
        description: Optional[str] = None,
        symptoms: Optional[List[str]] = None,
        db: Optional[Session] = None
    ) -> models.CatalogMedicine:
        """Add a medicine to the catalog"""
        def _create(session: Session) -> models.CatalogMedicine:
            name_clean = name.strip()
            existing = session.query(models.CatalogMedicine).filter(
                models.CatalogMedicine.name == name_clean
            ).first()
            if existing:
                raise DuplicateCatalogEntry(name_clean)

            medicine = models.CatalogMedicine(
                name=name_clean,
                description=description,
                price=price,
                symptoms=symptoms or []
            )
            session.add(medicine)
            session.commit()
            session.refresh(medicine)

            logger.info(f"Added catalog medicine {medicine.id} ({name_clean})")
            return medicine

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_medicine(
        self,
        medicine_id: int,
        db: Optional[Session] = None
    ) -> models.CatalogMedicine:
        """Get a catalog medicine, raising CatalogEntryMissing if absent"""
        def _get(session: Session) -> models.CatalogMedicine:
            return self.resolve(session, medicine_id)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def list_medicines(
        self,
        query: Optional[str] = None,
        db: Optional[Session] = None
    ) -> List[models.CatalogMedicine]:
        """List catalog medicines, newest first, optionally filtered by name"""
        def _list(session: Session) -> List[models.CatalogMedicine]:
            q = session.query(models.CatalogMedicine)
            if query:
                q = q.filter(models.CatalogMedicine.name.ilike(f"%{query.strip()}%"))
            return q.order_by(
                models.CatalogMedicine.created_at.desc(),
                models.CatalogMedicine.id.desc()
            ).all()

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def update_medicine(
        self,
        medicine_id: int,
        updates: Dict[str, Any],
        db: Optional[Session] = None
    ) -> models.CatalogMedicine:
        """Update catalog fields"""
        def _update(session: Session) -> models.CatalogMedicine:
            medicine = self.resolve(session, medicine_id)

            allowed_fields = {'name', 'description', 'price', 'symptoms'}
            for field, value in updates.items():
                if field in allowed_fields and value is not None:
                    setattr(medicine, field, value)

            medicine.updated_at = datetime.now()
            session.commit()
            session.refresh(medicine)
            return medicine

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def delete_medicine(
        self,
        medicine_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """
        Delete a catalog medicine.

        Tracked medications keep their dangling reference and fall back to
        their stored name.
        """
        def _delete(session: Session) -> bool:
            medicine = self.resolve(session, medicine_id)
            session.delete(medicine)
            session.commit()
            logger.info(f"Deleted catalog medicine {medicine_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)

    def resolve(self, session: Session, medicine_id: Optional[int]) -> models.CatalogMedicine:
        """Look up a catalog entry by reference"""
        if medicine_id is None:
            raise CatalogEntryMissing(medicine_id)
        medicine = session.query(models.CatalogMedicine).filter(
            models.CatalogMedicine.id == medicine_id
        ).first()
        if not medicine:
            raise CatalogEntryMissing(medicine_id)
        return medicine

    def find_or_create(self, session: Session, name: str) -> models.CatalogMedicine:
        """
        Catalog entry whose name matches exactly, ignoring case; created if absent.

        Does not commit; the caller owns the transaction.
        """
        name_clean = name.strip()
        medicine = session.query(models.CatalogMedicine).filter(
            func.lower(models.CatalogMedicine.name) == name_clean.lower()
        ).first()
        if medicine:
            return medicine

        medicine = models.CatalogMedicine(
            name=name_clean,
            description=tracker_config.IMPORT_CATALOG_DESCRIPTION,
            price=0.0,
            symptoms=[]
        )
        session.add(medicine)
        session.flush()
        logger.info(f"Added catalog medicine {medicine.id} ({name_clean}) from import")
        return medicine

    def resolve_names(self, session: Session, medicine_ids: Iterable[Optional[int]]) -> Dict[int, str]:
        """
        Display names for a batch of references.

        Missing entries are simply absent from the result; callers fall back
        to the medication's stored name.
        """
        ids = {m for m in medicine_ids if m is not None}
        if not ids:
            return {}
        rows = session.query(models.CatalogMedicine.id, models.CatalogMedicine.name).filter(
            models.CatalogMedicine.id.in_(ids)
        ).all()
        names = {row[0]: row[1] for row in rows}
        for missing in ids - set(names):
            logger.warning(str(CatalogEntryMissing(missing)) + "; using stored fallback name")
        return names


# Singleton instance
catalog_service = CatalogService()
