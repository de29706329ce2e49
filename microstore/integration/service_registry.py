# microstore/integration/service_registry.py
from dataclasses import dataclass, replace

from microstore.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ServiceConfig:
    name: str
    url: str
    version: str | None = None
    is_local: bool = True
    #nazwa rekordu w service_statuses (dashboard)
    label: str | None = None
    #uslugi lokalne dziela jeden proces i jeden /health
    health_base: str | None = None

    @property
    def health_url_base(self) -> str:
        return self.health_base or self.url

    @property
    def status_name(self) -> str:
        return self.label or self.name


class ServiceRegistry:
    """
    Rejestr uslug. Zwykla instancja tworzona w create_app (app.state),
    nie globalny singleton - testy dostaja wlasny rejestr.
    """

    def __init__(self, services: list[ServiceConfig] | None = None):
        self._services: dict[str, ServiceConfig] = {}
        for config in services or []:
            self.register(config)

    def register(self, config: ServiceConfig) -> None:
        self._services[config.name] = config
        logger.info(f"Service registered: {config.name} at {config.url}")

    def get(self, name: str) -> ServiceConfig | None:
        return self._services.get(name)

    def list(self) -> list[ServiceConfig]:
        return list(self._services.values())

    def unregister(self, name: str) -> bool:
        existed = self._services.pop(name, None) is not None
        if existed:
            logger.info(f"Service unregistered: {name}")
        return existed

    def update(self, name: str, **changes) -> bool:
        service = self._services.get(name)
        if not service:
            return False
        self._services[name] = replace(service, **changes)
        logger.info(f"Service updated: {name}")
        return True


#(nazwa, sciezka, rekord na dashboardzie)
_DEFAULT_SERVICES = (
    ("user-service", "/users", "User Service"),
    ("product-service", "/products", "Product Service"),
    ("cart-service", "/cart", "Cart Service"),
    ("order-service", "/orders", "Order Service"),
    ("payment-service", "/payments", "Payment Service"),
    ("notification-service", "/notifications", "Notification Service"),
    ("api-gateway", "", "API Gateway"),
)


def default_registry(base_url: str) -> ServiceRegistry:
    base = base_url.rstrip("/")
    return ServiceRegistry(
        [
            ServiceConfig(name=name, url=f"{base}{path}", is_local=True, label=label, health_base=base)
            for name, path, label in _DEFAULT_SERVICES
        ]
    )
