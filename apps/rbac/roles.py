"""
Closed role vocabularies shared by sessions, memberships and permission checks.
"""
from django.db import models


class OrgRole(models.TextChoices):
    OWNER = 'owner', 'Owner'
    ADMIN = 'admin', 'Admin'
    MEMBER = 'member', 'Member'


class PlatformRole(models.TextChoices):
    PLATFORM_ADMIN = 'platform_admin', 'Platform admin'
    PLATFORM_SUPPORT = 'platform_support', 'Platform support'


MANAGER_ROLES = frozenset({OrgRole.OWNER.value, OrgRole.ADMIN.value})
ALL_ORG_ROLES = frozenset(OrgRole.values)
