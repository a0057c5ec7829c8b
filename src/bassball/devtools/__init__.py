from .strict_audit import StrictAuditService, installed_package_root

__all__ = ["StrictAuditService", "installed_package_root"]
