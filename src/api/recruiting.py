"""Recruits and documents API endpoints (read side)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.common import (
    ensure_can_view,
    get_settings_store,
    not_found,
    paginate,
    visibility_restriction,
)
from src.auth.dependencies import get_current_user
from src.auth.permissions import Actor
from src.db import get_db
from src.models import Document, DocumentStatus, Recruit, RecruitStatus
from src.schemas.recruiting import (
    DocumentListResponse,
    DocumentResponse,
    RecruitListResponse,
    RecruitResponse,
)
from src.services.settings_store import SettingsStore
from src.services.visibility import EntityKind

recruits_router = APIRouter(prefix="/recruits", tags=["Recruits"])
documents_router = APIRouter(prefix="/documents", tags=["Documents"])


@recruits_router.get("", response_model=RecruitListResponse)
async def list_recruits(
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
    status_filter: Optional[RecruitStatus] = Query(None, alias="status"),
    recruiter_id: Optional[int] = Query(None),
    target_office_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    query = select(Recruit).where(
        await visibility_restriction(db, current_user, EntityKind.RECRUIT, store)
    )
    if status_filter:
        query = query.where(Recruit.status == status_filter)
    if recruiter_id is not None:
        query = query.where(Recruit.recruiter_id == recruiter_id)
    if target_office_id is not None:
        query = query.where(Recruit.target_office_id == target_office_id)

    recruits, total, pages = await paginate(
        db, query, page, per_page, order_by=Recruit.created_at.desc()
    )
    return RecruitListResponse(
        items=[RecruitResponse.model_validate(r) for r in recruits],
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )


@recruits_router.get("/{recruit_id}", response_model=RecruitResponse)
async def get_recruit(
    recruit_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
):
    recruit = await db.get(Recruit, recruit_id)
    if not recruit:
        raise not_found("Recruit")
    await ensure_can_view(db, current_user, EntityKind.RECRUIT, recruit_id, store)
    return RecruitResponse.model_validate(recruit)


@documents_router.get("", response_model=DocumentListResponse)
async def list_documents(
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    person_id: Optional[int] = Query(None),
    recruit_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    query = select(Document).where(
        await visibility_restriction(db, current_user, EntityKind.DOCUMENT, store)
    )
    if status_filter:
        query = query.where(Document.status == status_filter)
    if person_id is not None:
        query = query.where(Document.person_id == person_id)
    if recruit_id is not None:
        query = query.where(Document.recruit_id == recruit_id)

    documents, total, pages = await paginate(
        db, query, page, per_page, order_by=Document.created_at.desc()
    )
    return DocumentListResponse(
        items=[DocumentResponse.model_validate(d) for d in documents],
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )


@documents_router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
):
    document = await db.get(Document, document_id)
    if not document:
        raise not_found("Document")
    await ensure_can_view(db, current_user, EntityKind.DOCUMENT, document_id, store)
    return DocumentResponse.model_validate(document)
