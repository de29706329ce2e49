# microstore/services/gateway_service.py
import random
from typing import Any, Dict

from sqlalchemy.orm import Session

from microstore.domain.errors import ValidationError
from microstore.domain.orders import OrderStatus
from microstore.integration.service_client import ServiceClient
from microstore.integration.service_registry import ServiceRegistry
from microstore.repos.order_repo import OrderRepo
from microstore.repos.service_status_repo import ServiceStatusRepo
from microstore.repos.user_repo import UserRepo
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_STATUSES = ("healthy", "warning", "error")

API_TRAFFIC = {
    "total_requests": 243581,
    "average_response": "187ms",
    "error_rate": "0.8%",
    "cache_hit_ratio": "68%",
    "time_points": ["00:00", "06:00", "12:00", "18:00", "23:59"],
    "data_points": [
        {"time": "00:00", "requests": 5200},
        {"time": "02:00", "requests": 4300},
        {"time": "04:00", "requests": 3200},
        {"time": "06:00", "requests": 5600},
        {"time": "08:00", "requests": 7800},
        {"time": "10:00", "requests": 9200},
        {"time": "12:00", "requests": 12500},
        {"time": "14:00", "requests": 13800},
        {"time": "16:00", "requests": 15200},
        {"time": "18:00", "requests": 14300},
        {"time": "20:00", "requests": 10500},
        {"time": "22:00", "requests": 7800},
    ],
}

CONTAINERS = [
    {
        "name": "microstore-api-gateway",
        "image": "microstore/api-gateway:latest",
        "status": "Running",
        "cpu": "0.8%",
        "memory": "128MB",
        "port": "8080:80",
    },
    {
        "name": "microstore-product-service",
        "image": "microstore/product-service:1.2.0",
        "status": "Running",
        "cpu": "1.2%",
        "memory": "256MB",
        "port": "8081:8081",
    },
    {
        "name": "microstore-user-service",
        "image": "microstore/user-service:1.1.5",
        "status": "Warning",
        "cpu": "87.2%",
        "memory": "384MB",
        "port": "8082:8082",
    },
    {
        "name": "microstore-payment-service",
        "image": "microstore/payment-service:1.0.8",
        "status": "Error",
        "cpu": "0.0%",
        "memory": "0MB",
        "port": "8083:8083",
    },
]


def _mock_metrics(name: str | None = None, status: str | None = None) -> Dict[str, Any]:
    metrics = {
        "cpu": random.random() * 100,
        "memory": random.random() * 512,
        "requests": random.randint(0, 999),
        "errors": random.randint(0, 9),
    }
    if name == "User Service" and status == "warning":
        metrics["cpu"] = 87.2
    if name == "Payment Service" and status == "error":
        metrics.update(cpu=0.0, memory=0.0, requests=0, errors=100)
    return metrics


def _status_to_dict(status) -> Dict[str, Any]:
    return {
        "id": status.id,
        "name": status.name,
        "status": status.status,
        "details": status.details,
        "last_updated": status.last_updated,
        "metrics": _mock_metrics(status.name, status.status),
    }


class GatewayService:
    """
    Fasada dashboardu: statusy uslug (z metrykami demo), ruch API,
    metryki systemu z bazy, kontenery i sondowanie zarejestrowanych uslug.
    """

    def __init__(self, db: Session):
        self.statuses = ServiceStatusRepo(db)
        self.orders = OrderRepo(db)
        self.users = UserRepo(db)

    def get_service_statuses(self) -> list[Dict[str, Any]]:
        return [_status_to_dict(s) for s in self.statuses.list_statuses()]

    def update_service_status(self, name: str, status: str, details: str | None = None) -> Dict[str, Any]:
        if status not in SERVICE_STATUSES:
            raise ValidationError(f"Invalid service status: {status}")
        updated = self.statuses.upsert_status(name, status, details)
        logger.info(f"Service status {name} -> {status}")
        return _status_to_dict(updated)

    def get_api_traffic_stats(self) -> Dict[str, Any]:
        return API_TRAFFIC

    def get_system_metrics(self) -> Dict[str, Any]:
        order_count, revenue = self.orders.order_stats(exclude_status=OrderStatus.CANCELLED.value)
        return {
            "orders": {"count": order_count, "period": "All time"},
            "users": {"count": self.users.count_users(), "period": "All time"},
            "revenue": {"amount": str(revenue), "period": "All time"},
        }

    def get_container_statuses(self) -> list[Dict[str, Any]]:
        return CONTAINERS

    def probe_services(self, registry: ServiceRegistry, client_factory=ServiceClient) -> list[Dict[str, Any]]:
        """
        Use Case: Sprawdzenie zdrowia wszystkich zarejestrowanych uslug.
        Wynik trafia do service_statuses (healthy / error).
        """
        results = []
        for config in registry.list():
            client = client_factory(config.health_url_base, config.name)
            healthy = client.check_health()
            status = "healthy" if healthy else "error"
            details = "Health check passed" if healthy else f"Health check failed for {config.url}"
            self.statuses.upsert_status(config.status_name, status, details)
            results.append({"name": config.name, "url": config.url, "healthy": healthy})
            if not healthy:
                logger.warning(f"Service {config.name} is unhealthy")
        return results
