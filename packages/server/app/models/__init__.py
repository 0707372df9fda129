# SQLModel definitions, imported here so SQLModel.metadata knows every table.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .hub import ClientHub  # noqa: F401
from .hub_member import HubMember  # noqa: F401
from .platform_admin import PlatformAdmin  # noqa: F401
from .team_mapping import HubTeamMapping  # noqa: F401
from .synced import SyncedProject, SyncedIssue, SyncedInitiative  # noqa: F401
from .hub_comment import HubComment  # noqa: F401
from .workspace_setting import WorkspaceSetting  # noqa: F401
