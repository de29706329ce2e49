# microstore/api/routers/gateway.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from microstore.api.deps import get_registry, require_admin
from microstore.data.database import get_db
from microstore.domain.errors import ValidationError
from microstore.domain.schemas import RegisteredServiceOut, ServiceStatusIn, ServiceStatusOut
from microstore.integration.service_registry import ServiceRegistry
from microstore.services.gateway_service import GatewayService

#dashboard: wszystko tylko dla admina
router = APIRouter(tags=["gateway"], dependencies=[Depends(require_admin)])


@router.get("/services/status", response_model=list[ServiceStatusOut])
def get_service_statuses(db: Session = Depends(get_db)):
    return GatewayService(db).get_service_statuses()


@router.put("/services/status/{name}", response_model=ServiceStatusOut)
def update_service_status(name: str, payload: ServiceStatusIn, db: Session = Depends(get_db)):
    try:
        return GatewayService(db).update_service_status(name, payload.status, payload.details)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/gateway/metrics")
def get_system_metrics(db: Session = Depends(get_db)):
    return GatewayService(db).get_system_metrics()


@router.get("/gateway/traffic")
def get_api_traffic(db: Session = Depends(get_db)):
    return GatewayService(db).get_api_traffic_stats()


@router.get("/gateway/containers")
def get_containers(db: Session = Depends(get_db)):
    return GatewayService(db).get_container_statuses()


@router.get("/gateway/services", response_model=list[RegisteredServiceOut])
def get_registered_services(registry: ServiceRegistry = Depends(get_registry)):
    return [
        {"name": s.name, "url": s.url, "version": s.version, "is_local": s.is_local}
        for s in registry.list()
    ]


@router.post("/gateway/probe")
def probe_services(registry: ServiceRegistry = Depends(get_registry), db: Session = Depends(get_db)):
    return GatewayService(db).probe_services(registry)
