"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

When we're ready to extract a module to a microservice, we only need
to change the implementation here to an HTTP client.
"""

from typing import TYPE_CHECKING

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import IAuthService
    from modules.billing.interfaces import IBillingRepository, IBillingService
    from modules.billing.reconciler import BillingReconciler
    from modules.products.interfaces import IProductRepository
    from modules.users.interfaces import IUserRepository


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self) -> None:
        self._auth_service: "IAuthService | None" = None
        self._user_repository: "IUserRepository | None" = None
        self._product_repository: "IProductRepository | None" = None
        self._billing_repository: "IBillingRepository | None" = None
        self._reconciler: "BillingReconciler | None" = None
        self._billing_service: "IBillingService | None" = None

    @property
    def auth(self) -> "IAuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.service import AuthService
            self._auth_service = AuthService()
        return self._auth_service

    @property
    def users(self) -> "IUserRepository":
        """Get the user repository instance."""
        if self._user_repository is None:
            from modules.users.repository import UserRepository
            from shared.database import get_supabase_client
            self._user_repository = UserRepository(get_supabase_client())
        return self._user_repository

    @property
    def products(self) -> "IProductRepository":
        """Get the product repository instance."""
        if self._product_repository is None:
            from modules.products.repository import ProductRepository
            from shared.database import get_supabase_client
            self._product_repository = ProductRepository(get_supabase_client())
        return self._product_repository

    @property
    def billings(self) -> "IBillingRepository":
        """Get the billing repository instance."""
        if self._billing_repository is None:
            from modules.billing.repository import BillingRepository
            from shared.database import get_supabase_client
            self._billing_repository = BillingRepository(get_supabase_client())
        return self._billing_repository

    @property
    def reconciler(self) -> "BillingReconciler":
        """Get the reconciler; one instance so its per-user locks are shared."""
        if self._reconciler is None:
            from modules.billing.reconciler import BillingReconciler
            self._reconciler = BillingReconciler(
                billings=self.billings,
                products=self.products,
                users=self.users,
            )
        return self._reconciler

    @property
    def billing(self) -> "IBillingService":
        """Get the billing service instance."""
        if self._billing_service is None:
            from modules.billing.gateway import SessionGateway
            from modules.billing.processor import StripeProcessor, StripeWebhookVerifier
            from modules.billing.service import BillingService
            from shared.config import get_settings

            settings = get_settings()
            self._billing_service = BillingService(
                verifier=StripeWebhookVerifier(
                    settings.stripe_webhook_secret,
                    tolerance=settings.stripe_webhook_tolerance,
                ),
                reconciler=self.reconciler,
                gateway=SessionGateway(
                    billings=self.billings,
                    products=self.products,
                    users=self.users,
                    processor=StripeProcessor(
                        settings.stripe_secret_key,
                        api_version=settings.stripe_api_version or None,
                    ),
                ),
            )
        return self._billing_service

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._auth_service = None
        self._user_repository = None
        self._product_repository = None
        self._billing_repository = None
        self._reconciler = None
        self._billing_service = None


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


def get_auth_service() -> "IAuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth


def get_billing_service() -> "IBillingService":
    """FastAPI dependency for billing service."""
    return get_container().billing


def get_product_repository() -> "IProductRepository":
    """FastAPI dependency for the product catalog."""
    return get_container().products
