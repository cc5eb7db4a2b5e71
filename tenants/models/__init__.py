from .tenant import Tenant, TenantMembership

__all__ = ["Tenant", "TenantMembership"]
