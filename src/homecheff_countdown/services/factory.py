"""
Simple factory for service singletons.

Activities call `ServiceFactory.get_engine()` instead of wiring stores and
the dispatcher themselves. Instances are cached at class level; tests and the demo
worker call `ServiceFactory.configure(...)` to swap in their own
implementations, and `ServiceFactory.reset()` to start over.
"""

from datetime import timedelta

from homecheff_countdown import config
from homecheff_countdown.domain.tiers import TierThresholds
from homecheff_countdown.engine import DeliveryCountdownEngine
from homecheff_countdown.services.notify import NotificationDispatcher, NotificationService
from homecheff_countdown.services.order_store import InMemoryOrderStore, OrderStore
from homecheff_countdown.services.warning_store import InMemoryWarningStore, WarningStore


class ServiceFactory:
    """Lazily creates and caches service instances (class-level singletons)."""

    _order_store: OrderStore | None = None
    _warning_store: WarningStore | None = None
    _dispatcher: NotificationDispatcher | None = None
    _engine: DeliveryCountdownEngine | None = None

    @classmethod
    def get_order_store(cls) -> OrderStore:
        if cls._order_store is None:
            cls._order_store = InMemoryOrderStore()
        return cls._order_store

    @classmethod
    def get_warning_store(cls) -> WarningStore:
        if cls._warning_store is None:
            cls._warning_store = InMemoryWarningStore()
        return cls._warning_store

    @classmethod
    def get_notification_service(cls) -> NotificationDispatcher:
        if cls._dispatcher is None:
            cls._dispatcher = NotificationService()
        return cls._dispatcher

    @classmethod
    def get_engine(cls) -> DeliveryCountdownEngine:
        if cls._engine is None:
            cls._engine = DeliveryCountdownEngine(
                order_store=cls.get_order_store(),
                warning_store=cls.get_warning_store(),
                dispatcher=cls.get_notification_service(),
                thresholds=TierThresholds.from_minutes(config.APPROACHING_MINUTES, config.URGENT_MINUTES),
                max_concurrency=config.SWEEP_MAX_CONCURRENCY,
                call_timeout=config.SWEEP_CALL_TIMEOUT_SECONDS,
                claim_lease=timedelta(seconds=config.SWEEP_CLAIM_LEASE_SECONDS),
            )
        return cls._engine

    @classmethod
    def configure(
        cls,
        order_store: OrderStore | None = None,
        warning_store: WarningStore | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        """Replace some services; the engine is rebuilt on next use."""
        if order_store is not None:
            cls._order_store = order_store
        if warning_store is not None:
            cls._warning_store = warning_store
        if dispatcher is not None:
            cls._dispatcher = dispatcher
        cls._engine = None

    @classmethod
    def reset(cls) -> None:
        cls._order_store = None
        cls._warning_store = None
        cls._dispatcher = None
        cls._engine = None
