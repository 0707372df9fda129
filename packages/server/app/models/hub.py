"""Client hub model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ClientHub(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "client_hubs"

    slug: str = Field(unique=True, nullable=False, index=True)  # immutable
    name: str = Field(nullable=False)
    workos_org_id: Optional[str] = Field(default=None, unique=True, index=True)
    is_active: bool = Field(default=True, nullable=False)
    request_forms_enabled: bool = Field(default=False, nullable=False)
    created_by: Optional[str] = None

    # Branding (opaque to the access core)
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    accent_color: Optional[str] = None
    footer_text: Optional[str] = None
