"""
Permission collaborator: answers what a member may do with segments and posts in a group.

Group membership and roles live in the external group service. This module only
adapts it to ``get_permissions(member_id, group_id, resource_type)``.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import requests
from pydantic import ValidationError as PydanticValidationError

from api.config import settings
from api.schemas.permission_schemas import CollectionPermission, ResourceType
from api.utils.errors import PermissionDeniedError
from api.utils.logger import configure_logging

logger = configure_logging()


class PermissionProvider(ABC):
    @abstractmethod
    def get_permissions(self, member_id: str, group_id: str, resource_type: ResourceType) -> CollectionPermission:
        ...


class StaticPermissionProvider(PermissionProvider):
    """
    In-process grants keyed by (group, member, resource type).
    Anything not granted explicitly falls back to ``default``.
    """

    def __init__(self, default: Optional[CollectionPermission] = None):
        self.default = default or CollectionPermission.none()
        self._grants: Dict[Tuple[str, str, ResourceType], CollectionPermission] = {}

    def grant(
        self,
        group_id: str,
        member_id: str,
        resource_type: ResourceType,
        permission: CollectionPermission,
    ) -> None:
        self._grants[(group_id, member_id, ResourceType(resource_type))] = permission

    def get_permissions(self, member_id: str, group_id: str, resource_type: ResourceType) -> CollectionPermission:
        return self._grants.get((group_id, member_id, ResourceType(resource_type)), self.default)


class HttpPermissionProvider(PermissionProvider):
    """
    Reads permissions from the group service:

        GET {base_url}/groups/{group_id}/permissions?member={member_id}
        -> {"permissions": {"app.collectivesocial.group.segment": {"canCreate": ..., ...}, ...}}

    Fails closed: an unreachable service or malformed answer denies the request.
    """

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_permissions(self, member_id: str, group_id: str, resource_type: ResourceType) -> CollectionPermission:
        resource_type = ResourceType(resource_type)
        url = f"{self.base_url}/groups/{quote(group_id, safe='')}/permissions"
        try:
            response = self.session.get(url, params={"member": member_id}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("permission lookup failed group=%s member=%s error=%s", group_id, member_id, e)
            raise PermissionDeniedError("Permissions could not be verified") from e

        permissions = payload.get("permissions") if isinstance(payload, dict) else None
        if not isinstance(permissions, dict):
            logger.warning("permission lookup returned no permissions map group=%s", group_id)
            raise PermissionDeniedError("Permissions could not be verified")

        entry = permissions.get(resource_type.collection) or permissions.get(resource_type.value)
        if not isinstance(entry, dict):
            return CollectionPermission.none()
        try:
            return CollectionPermission.model_validate(entry)
        except PydanticValidationError as e:
            logger.warning(
                "permission lookup returned malformed entry group=%s resource=%s error=%s",
                group_id, resource_type.value, e,
            )
            raise PermissionDeniedError("Permissions could not be verified") from e


def build_permission_provider() -> PermissionProvider:
    """Provider selected by PERMISSIONS_BACKEND."""
    backend = settings.permissions_backend.lower()
    if backend == "http":
        return HttpPermissionProvider(settings.groups_api_url, timeout=settings.groups_api_timeout)
    if backend == "static":
        default = CollectionPermission.all() if settings.permissions_default_allow else CollectionPermission.none()
        return StaticPermissionProvider(default=default)
    raise ValueError(f"Unknown PERMISSIONS_BACKEND: {settings.permissions_backend}")


_provider: Optional[PermissionProvider] = None


def get_permission_provider() -> PermissionProvider:
    """FastAPI dependency returning the process-wide provider."""
    global _provider
    if _provider is None:
        _provider = build_permission_provider()
    return _provider
