"""Per-request caller context: tenant, role capabilities and audit mode."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional
from uuid import UUID

from .exceptions import AuthorizationError


class Role(str, Enum):
    """Caller roles issued by the identity provider."""
    SUPER_ADMIN = "SUPER_ADMIN"
    HOTEL_ADMIN = "HOTEL_ADMIN"
    SALES = "SALES"
    CUSTOMER = "CUSTOMER"


@dataclass(frozen=True)
class BookingPermissions:
    """Capabilities resolved once per request and handed to the booking service."""

    can_view_bookings: bool = False
    can_create_booking: bool = False
    can_update_booking: bool = False
    can_change_status: bool = False
    can_cancel_booking: bool = False
    can_delete_booking: bool = False
    can_view_audit_log: bool = False
    can_request_public_booking: bool = False

    @classmethod
    def staff(cls, *, can_delete: bool, can_view_audit: bool) -> "BookingPermissions":
        return cls(
            can_view_bookings=True,
            can_create_booking=True,
            can_update_booking=True,
            can_change_status=True,
            can_cancel_booking=True,
            can_delete_booking=can_delete,
            can_view_audit_log=can_view_audit,
        )

    def granted(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def require(self, capability: str) -> None:
        """Raise AuthorizationError unless the named capability is granted."""
        if not getattr(self, capability):
            raise AuthorizationError(
                detail=f"Your role is not permitted to perform this action ({capability})",
                required_permissions=[capability],
            )


@dataclass(frozen=True)
class AuditContext:
    """Whether the caller is an administrator impersonating the tenant."""

    is_impersonating: bool = False
    actor_id: Optional[str] = None

    @property
    def should_record(self) -> bool:
        return self.is_impersonating and bool(self.actor_id)


def resolve_permissions(role: Role, is_impersonating: bool) -> BookingPermissions:
    """Map a role to its booking capabilities."""
    if role == Role.HOTEL_ADMIN:
        return BookingPermissions.staff(can_delete=True, can_view_audit=True)
    if role == Role.SALES:
        return BookingPermissions.staff(can_delete=False, can_view_audit=False)
    if role == Role.SUPER_ADMIN:
        # Platform admins act on tenant data only through impersonation mode
        if is_impersonating:
            return BookingPermissions.staff(can_delete=True, can_view_audit=True)
        return BookingPermissions()
    if role == Role.CUSTOMER:
        return BookingPermissions(can_request_public_booking=True)
    return BookingPermissions()


@dataclass(frozen=True)
class RequestContext:
    """Everything the booking engine needs to know about the caller."""

    user_id: str
    role: Role
    hotel_id: Optional[UUID] = None
    permissions: BookingPermissions = field(default_factory=BookingPermissions)
    audit: AuditContext = field(default_factory=AuditContext)

    @classmethod
    def build(
        cls,
        user_id: str,
        role: Role,
        hotel_id: Optional[UUID] = None,
        impersonated_by: Optional[str] = None,
    ) -> "RequestContext":
        is_impersonating = bool(impersonated_by)
        return cls(
            user_id=user_id,
            role=role,
            hotel_id=hotel_id,
            permissions=resolve_permissions(role, is_impersonating),
            audit=AuditContext(is_impersonating=is_impersonating, actor_id=impersonated_by),
        )

    def require_hotel(self) -> UUID:
        """Return the caller's tenant or raise AuthorizationError."""
        if self.hotel_id is None:
            if self.role == Role.SUPER_ADMIN and not self.audit.is_impersonating:
                raise AuthorizationError(
                    detail="Super Admins must use Impersonation Mode to access hotel bookings"
                )
            raise AuthorizationError(detail="You must belong to a hotel to access bookings")
        return self.hotel_id
