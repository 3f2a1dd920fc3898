# backend/salon/services/catalog_service.py
"""
Catalog Service: service categories and sellable services.

Services are never deleted. Deactivating one hides it from the visit form
while historical line items keep pointing at it with their own price copy.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Service, ServiceCategory
from ..validation import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CATEGORY_MUTABLE_FIELDS = {"name", "description"}
SERVICE_MUTABLE_FIELDS = {"name", "description", "price", "duration_minutes", "category_id", "active"}

# Seeded on first install
DEFAULT_CATEGORIES = [
    ("Haircut", "Hair cutting and styling services"),
    ("Coloring", "Hair coloring and highlights"),
    ("Facial", "Facial treatments and skincare"),
    ("Nails", "Manicure and pedicure services"),
    ("Spa", "Spa and wellness treatments"),
    ("Massage", "Massage therapy services"),
]


def _apply_patch(obj, patch: dict, allowed: set[str]) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(obj, k, v)


# -- categories --

def list_categories() -> list[ServiceCategory]:
    return db.session.query(ServiceCategory).order_by(ServiceCategory.name.asc()).all()


def get_category(category_id: int) -> ServiceCategory:
    category = db.session.get(ServiceCategory, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


def _ensure_category_name_free(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(ServiceCategory).filter(db.func.lower(ServiceCategory.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(ServiceCategory.id != exclude_id)
    if query.first():
        raise ConflictError(f"Category '{name}' already exists")


def create_category(*, patch: dict) -> ServiceCategory:
    _ensure_category_name_free(patch["name"])
    category = ServiceCategory()
    _apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Category '{patch['name']}' already exists")
    return category


def update_category(category_id: int, *, patch: dict) -> ServiceCategory:
    category = get_category(category_id)
    if "name" in patch:
        _ensure_category_name_free(patch["name"], exclude_id=category.id)
    _apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category name already exists")
    return category


def delete_category(category_id: int) -> None:
    """Delete a category; its services become uncategorized."""
    category = get_category(category_id)
    db.session.query(Service).filter(Service.category_id == category.id).update(
        {Service.category_id: None}, synchronize_session=False
    )
    db.session.delete(category)
    db.session.commit()


def seed_default_categories() -> int:
    """Insert any missing default categories. Returns how many were created."""
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        exists = db.session.query(ServiceCategory).filter_by(name=name).first()
        if exists:
            continue
        db.session.add(ServiceCategory(name=name, description=description))
        created += 1
    db.session.commit()
    return created


# -- services --

def list_services(*, include_inactive: bool = False, category_id: int | None = None) -> list[Service]:
    query = db.session.query(Service)
    if not include_inactive:
        query = query.filter(Service.active.is_(True))
    if category_id is not None:
        query = query.filter(Service.category_id == category_id)
    return query.order_by(Service.name.asc(), Service.id.asc()).all()


def get_service(service_id: int) -> Service:
    service = db.session.get(Service, service_id)
    if not service:
        raise NotFoundError("Service not found")
    return service


def _check_category(patch: dict) -> None:
    category_id = patch.get("category_id")
    if category_id is not None and db.session.get(ServiceCategory, category_id) is None:
        raise ValidationError("category_id does not reference an existing category")


def create_service(*, patch: dict) -> Service:
    _check_category(patch)
    service = Service(active=True, duration_minutes=30)
    _apply_patch(service, patch, SERVICE_MUTABLE_FIELDS)
    db.session.add(service)
    db.session.commit()
    logger.info("Created service id=%s name=%r price=%s", service.id, service.name, service.price)
    return service


def update_service(service_id: int, *, patch: dict) -> Service:
    """
    Update a service. Price changes only affect visits recorded afterwards;
    existing line items carry their own price snapshot.
    """
    service = get_service(service_id)
    _check_category(patch)
    _apply_patch(service, patch, SERVICE_MUTABLE_FIELDS)
    db.session.commit()
    return service


def set_service_active(service_id: int, active: bool) -> Service:
    service = get_service(service_id)
    service.active = bool(active)
    db.session.commit()
    logger.info("Service id=%s %s", service.id, "activated" if service.active else "deactivated")
    return service


def toggle_service_active(service_id: int) -> Service:
    service = get_service(service_id)
    return set_service_active(service.id, not service.active)
