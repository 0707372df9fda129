from enum import Enum
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class HubRole(str, Enum):
    DEFAULT = "default"
    VIEW_ONLY = "view_only"


class Capability(str, Enum):
    READ = "read"
    WRITE = "write"


class PushStatus(str, Enum):
    PENDING = "pending"
    PUSHED = "pushed"
    FAILED = "failed"


# Workspace sentinel used as the owner of every synced mirror row
WORKSPACE_USER_ID = "workspace"


class CamelModel(BaseModel):
    """Base for payloads exchanged with the portal frontend in camelCase."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int
    field: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorBody
