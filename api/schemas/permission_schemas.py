from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ResourceType(str, Enum):
    SEGMENT = "segment"
    POST = "post"

    @property
    def collection(self) -> str:
        """Record collection name used by the group service."""
        return f"app.collectivesocial.group.{self.value}"


class CollectionPermission(BaseModel):
    """Capabilities of one member on one resource type within a group."""
    model_config = ConfigDict(populate_by_name=True)

    can_create: bool = Field(default=False, alias="canCreate")
    can_read: bool = Field(default=False, alias="canRead")
    can_update: bool = Field(default=False, alias="canUpdate")
    can_delete: bool = Field(default=False, alias="canDelete")

    @classmethod
    def all(cls) -> "CollectionPermission":
        return cls(can_create=True, can_read=True, can_update=True, can_delete=True)

    @classmethod
    def none(cls) -> "CollectionPermission":
        return cls()
