"""FastAPI dependencies.

Services are built per request around the request's database session and
the clients stored on ``app.state`` by the application lifespan.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.quote_service import QuoteService
from storefront.catalog.service import CatalogService, CategoryService
from storefront.infrastructure.config import Settings
from storefront.infrastructure.database import get_session
from storefront.infrastructure.email_client import EmailSender

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_settings(request: Request) -> Settings:
    """Get the settings the application was built with."""
    return request.app.state.settings


def get_email_client(request: Request) -> EmailSender:
    """Get the shared transactional email client."""
    return request.app.state.email_client


def get_category_service(
    session: SessionDep,
    settings: Annotated[Settings, Depends(get_settings)],
) -> CategoryService:
    """Get category service for the request session."""
    return CategoryService(session, locale=settings.slug_locale)


def get_catalog_service(
    session: SessionDep,
    settings: Annotated[Settings, Depends(get_settings)],
) -> CatalogService:
    """Get catalogue service for the request session."""
    return CatalogService(session, page_size=settings.catalog_page_size)


def get_quote_service(
    session: SessionDep,
    settings: Annotated[Settings, Depends(get_settings)],
    email_client: Annotated[EmailSender, Depends(get_email_client)],
) -> QuoteService:
    """Get quote service for the request session."""
    return QuoteService(session, email_client, admin_email=settings.brevo_admin_email)


CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]
