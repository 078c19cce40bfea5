"""
Pytest configuration and fixtures.
"""
import pytest
from django.conf import settings


def pytest_configure(config):
    """Configure Django settings for tests."""
    settings.DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': False,
    }
    settings.CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'medilink-tests',
        }
    }
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.NOTIFICATION_WEBHOOK_URL = None
    settings.PLATFORM_ROLE_FROM_USER_RECORD = False


@pytest.fixture(autouse=True)
def _clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_tenant(db):
    """Factory for organizations."""
    from apps.tenants.models import ProviderProfile, Tenant

    def _make(name='Bach Mai Hospital', kind='hospital', lifecycle_status='active', slug=None):
        tenant = Tenant.objects.create(
            name=name,
            slug=slug or name.lower().replace(' ', '-'),
            kind=kind,
            lifecycle_status=lifecycle_status,
        )
        if kind == Tenant.Kind.PROVIDER:
            ProviderProfile.objects.create(tenant=tenant, display_name=name)
        return tenant
    return _make


@pytest.fixture
def make_user(db):
    """Factory for users."""
    from apps.rbac.models import User

    def _make(email, name='', platform_role=None):
        return User.objects.create(email=email, name=name, platform_role=platform_role)
    return _make


@pytest.fixture
def make_member(db):
    """Factory for memberships."""
    from apps.rbac.models import Membership

    def _make(tenant, user, role='member'):
        return Membership.objects.create(tenant=tenant, user=user, role=role)
    return _make


@pytest.fixture
def make_actor():
    """Build an Actor the way SessionResolver would."""
    from apps.rbac.session import Actor

    def _make(user, tenant=None, role=None, platform_role=None):
        return Actor(
            user_id=str(user.id),
            tenant_id=str(tenant.id) if tenant is not None else None,
            org_role=role if tenant is not None else None,
            platform_role=platform_role if platform_role is not None else user.platform_role,
        )
    return _make


@pytest.fixture
def auth_client():
    """Return a factory for API clients carrying a session token for an Actor."""
    from rest_framework.test import APIClient
    from apps.rbac.session import SessionResolver

    def _make(actor):
        token = SessionResolver.issue(
            actor.user_id,
            tenant_id=actor.tenant_id,
            org_role=actor.org_role,
            platform_role=actor.platform_role,
        )
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return client
    return _make


@pytest.fixture
def hospital(make_tenant):
    return make_tenant('Bach Mai Hospital', kind='hospital')


@pytest.fixture
def other_hospital(make_tenant):
    return make_tenant('Cho Ray Hospital', kind='hospital')


@pytest.fixture
def provider_tenant(make_tenant):
    return make_tenant('MedTech Services', kind='provider')


@pytest.fixture
def provider_profile(provider_tenant):
    return provider_tenant.provider_profile


@pytest.fixture
def owner_user(make_user, make_member, hospital):
    user = make_user('owner@bachmai.test', name='Owner')
    make_member(hospital, user, 'owner')
    return user


@pytest.fixture
def hospital_admin_user(make_user, make_member, hospital):
    user = make_user('admin@bachmai.test', name='Admin')
    make_member(hospital, user, 'admin')
    return user


@pytest.fixture
def member_user(make_user, make_member, hospital):
    user = make_user('member@bachmai.test', name='Member')
    make_member(hospital, user, 'member')
    return user


@pytest.fixture
def outsider_user(make_user, make_member, other_hospital):
    user = make_user('owner@choray.test', name='Other Owner')
    make_member(other_hospital, user, 'owner')
    return user


@pytest.fixture
def provider_user(make_user, make_member, provider_tenant):
    user = make_user('tech@medtech.test', name='Technician')
    make_member(provider_tenant, user, 'owner')
    return user


@pytest.fixture
def platform_admin_user(make_user):
    return make_user('ops@medilink.test', platform_role='platform_admin')


@pytest.fixture
def platform_support_user(make_user):
    return make_user('support@medilink.test', platform_role='platform_support')


@pytest.fixture
def owner(make_actor, owner_user, hospital):
    return make_actor(owner_user, hospital, 'owner')


@pytest.fixture
def hospital_admin(make_actor, hospital_admin_user, hospital):
    return make_actor(hospital_admin_user, hospital, 'admin')


@pytest.fixture
def member(make_actor, member_user, hospital):
    return make_actor(member_user, hospital, 'member')


@pytest.fixture
def outsider(make_actor, outsider_user, other_hospital):
    return make_actor(outsider_user, other_hospital, 'owner')


@pytest.fixture
def provider_actor(make_actor, provider_user, provider_tenant):
    return make_actor(provider_user, provider_tenant, 'owner')


@pytest.fixture
def platform_admin(make_actor, platform_admin_user):
    return make_actor(platform_admin_user)


@pytest.fixture
def platform_support(make_actor, platform_support_user):
    return make_actor(platform_support_user)
