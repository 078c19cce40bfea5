"""
RBAC (Role-Based Access Control) application.

Provides multi-tenant access control with:
- Global user identity with an optional platform role
- Per-organization memberships (owner > admin > member)
- Signed session resolution into an Actor
- Append-only compliance audit log
"""
