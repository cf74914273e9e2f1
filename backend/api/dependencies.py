"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

The storage backend is chosen by `settings.storage_backend`: "memory"
keeps everything in-process, "supabase" uses the Supabase-backed
repositories.
"""

from typing import TYPE_CHECKING, Optional

from shared.clock import Clock, SystemClock
from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.access.interfaces import IAccessService
    from modules.admin.interfaces import (
        IAdminDirectory,
        IAdminSessionGuard,
        IAdminSessionRepository,
    )
    from modules.audit.interfaces import IAuditLog
    from modules.codes.interfaces import ICodeRegistry, ICodeRepository
    from modules.entitlements.interfaces import IActivationReconciler, IEntitlementStore
    from modules.payments.interfaces import IPaymentSessionManager, IPaymentSessionRepository
    from modules.payments.poller import ConfirmationPoller
    from modules.payments.sweeper import PaymentSessionSweeper
    from modules.trials.interfaces import ITrialManager


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> None:
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        self.reset()

    @property
    def _use_supabase(self) -> bool:
        return self.settings.storage_backend == "supabase"

    def _db(self):
        from shared.database import get_supabase_client
        return get_supabase_client()

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    @property
    def audit(self) -> "IAuditLog":
        """Get the audit log instance."""
        if self._audit is None:
            if self._use_supabase:
                from modules.audit.service import SupabaseAuditLog
                self._audit = SupabaseAuditLog(self._db())
            else:
                from modules.audit.service import AuditLog
                self._audit = AuditLog()
        return self._audit

    @property
    def entitlement_store(self) -> "IEntitlementStore":
        """Get the entitlement store instance."""
        if self._entitlement_store is None:
            if self._use_supabase:
                from modules.entitlements.repository import SupabaseEntitlementStore
                self._entitlement_store = SupabaseEntitlementStore(self._db())
            else:
                from modules.entitlements.repository import InMemoryEntitlementStore
                self._entitlement_store = InMemoryEntitlementStore()
        return self._entitlement_store

    @property
    def code_repository(self) -> "ICodeRepository":
        """Get the code repository instance."""
        if self._code_repository is None:
            if self._use_supabase:
                from modules.codes.repository import SupabaseCodeRepository
                self._code_repository = SupabaseCodeRepository(self._db())
            else:
                from modules.codes.repository import InMemoryCodeRepository
                self._code_repository = InMemoryCodeRepository()
        return self._code_repository

    @property
    def payment_repository(self) -> "IPaymentSessionRepository":
        """Get the payment session repository instance."""
        if self._payment_repository is None:
            if self._use_supabase:
                from modules.payments.repository import SupabasePaymentSessionRepository
                self._payment_repository = SupabasePaymentSessionRepository(self._db())
            else:
                from modules.payments.repository import InMemoryPaymentSessionRepository
                self._payment_repository = InMemoryPaymentSessionRepository()
        return self._payment_repository

    @property
    def admin_directory(self) -> "IAdminDirectory":
        """Get the admin directory instance."""
        if self._admin_directory is None:
            if self._use_supabase:
                from modules.admin.repository import SupabaseAdminDirectory
                self._admin_directory = SupabaseAdminDirectory(self._db())
            else:
                from modules.admin.models import AdminProfile, PrivilegeLevel
                from modules.admin.repository import InMemoryAdminDirectory
                self._admin_directory = InMemoryAdminDirectory([
                    AdminProfile(admin_id=admin_id, privilege_level=PrivilegeLevel.SUPER)
                    for admin_id in self.settings.admin_bootstrap_ids
                ])
        return self._admin_directory

    @property
    def admin_session_repository(self) -> "IAdminSessionRepository":
        """Get the admin session repository instance."""
        if self._admin_session_repository is None:
            if self._use_supabase:
                from modules.admin.repository import SupabaseAdminSessionRepository
                self._admin_session_repository = SupabaseAdminSessionRepository(self._db())
            else:
                from modules.admin.repository import InMemoryAdminSessionRepository
                self._admin_session_repository = InMemoryAdminSessionRepository()
        return self._admin_session_repository

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    @property
    def reconciler(self) -> "IActivationReconciler":
        """Get the activation reconciler instance."""
        if self._reconciler is None:
            from modules.entitlements.reconciler import ActivationReconciler
            self._reconciler = ActivationReconciler(
                store=self.entitlement_store,
                audit=self.audit,
                clock=self.clock,
                max_retries=self.settings.reconcile_max_retries,
            )
        return self._reconciler

    @property
    def codes(self) -> "ICodeRegistry":
        """Get the code registry instance."""
        if self._codes is None:
            from modules.codes.service import CodeRegistry
            self._codes = CodeRegistry(
                repository=self.code_repository,
                reconciler=self.reconciler,
                audit=self.audit,
                clock=self.clock,
                prefix=self.settings.code_prefix,
            )
        return self._codes

    @property
    def payments(self) -> "IPaymentSessionManager":
        """Get the payment session manager instance."""
        if self._payments is None:
            from modules.payments.service import PaymentSessionManager
            self._payments = PaymentSessionManager(
                repository=self.payment_repository,
                reconciler=self.reconciler,
                audit=self.audit,
                clock=self.clock,
                ttl_seconds=self.settings.payment_session_ttl_seconds,
            )
        return self._payments

    @property
    def payment_sweeper(self) -> "PaymentSessionSweeper":
        """Get the background payment session sweeper."""
        if self._payment_sweeper is None:
            from modules.payments.sweeper import PaymentSessionSweeper
            self._payment_sweeper = PaymentSessionSweeper(
                self.payments,
                interval_seconds=self.settings.payment_sweep_interval_seconds,
            )
        return self._payment_sweeper

    @property
    def confirmation_poller(self) -> Optional["ConfirmationPoller"]:
        """Get the gateway confirmation poller, or None when no gateway is configured."""
        if self._confirmation_poller is None and self.settings.payment_gateway_url:
            from modules.payments.gateway import GatewayConfirmationSource
            from modules.payments.poller import ConfirmationPoller
            self._gateway_source = GatewayConfirmationSource(
                self.settings.payment_gateway_url,
                api_key=self.settings.payment_gateway_api_key,
            )
            self._confirmation_poller = ConfirmationPoller(
                self.payments,
                self._gateway_source,
                interval_seconds=self.settings.payment_poll_interval_seconds,
            )
        return self._confirmation_poller

    async def aclose(self) -> None:
        """Release clients held by the container."""
        if self._gateway_source is not None:
            await self._gateway_source.close()
            self._gateway_source = None

    @property
    def trials(self) -> "ITrialManager":
        """Get the trial manager instance."""
        if self._trials is None:
            from modules.trials.service import TrialManager
            self._trials = TrialManager(
                reconciler=self.reconciler,
                clock=self.clock,
                trial_days=self.settings.trial_days,
                grace_days=self.settings.grace_days,
            )
        return self._trials

    @property
    def admin(self) -> "IAdminSessionGuard":
        """Get the admin session guard instance."""
        if self._admin is None:
            from modules.admin.service import AdminSessionGuard
            self._admin = AdminSessionGuard(
                directory=self.admin_directory,
                sessions=self.admin_session_repository,
                audit=self.audit,
                clock=self.clock,
                ttl_seconds=self.settings.admin_session_ttl_seconds,
            )
        return self._admin

    @property
    def access(self) -> "IAccessService":
        """Get the access service instance."""
        if self._access is None:
            from modules.access.service import AccessService
            self._access = AccessService(
                reconciler=self.reconciler,
                codes=self.codes,
                payments=self.payments,
                trials=self.trials,
                admin=self.admin,
                audit=self.audit,
                clock=self.clock,
            )
        return self._access

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._audit = None
        self._entitlement_store = None
        self._code_repository = None
        self._payment_repository = None
        self._admin_directory = None
        self._admin_session_repository = None
        self._reconciler = None
        self._codes = None
        self._payments = None
        self._payment_sweeper = None
        self._confirmation_poller = None
        self._gateway_source = None
        self._trials = None
        self._admin = None
        self._access = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_access_service() -> "IAccessService":
    """FastAPI dependency for the access service."""
    return get_container().access


def get_payment_manager() -> "IPaymentSessionManager":
    """FastAPI dependency for the payment session manager."""
    return get_container().payments


def get_trial_manager() -> "ITrialManager":
    """FastAPI dependency for the trial manager."""
    return get_container().trials


def get_admin_guard() -> "IAdminSessionGuard":
    """FastAPI dependency for the admin session guard."""
    return get_container().admin


def get_clock() -> Clock:
    """FastAPI dependency for the container's clock."""
    return get_container().clock
