"""Service registration CRUD + client configuration downloads."""

from typing import Any

from fastapi import APIRouter, Body, status
from fastapi.responses import PlainTextResponse

from panda.api.deps import Caller, Registry, Renderer
from panda.models.service import Service, ServiceRead
from panda.services.tunnel_config import ClientConfig

router = APIRouter(prefix="/services", tags=["services"])


def to_service_read(service: Service) -> ServiceRead:
    return ServiceRead(
        id=service.id,
        owner_id=service.owner_id,
        name=service.name,
        description=service.description,
        local_port=service.local_port,
        subdomain=service.subdomain,
        frp_type=service.frp_type,
        remote_port=service.remote_port,
        use_encryption=service.use_encryption,
        use_compression=service.use_compression,
        public_url=service.public_url,
        created_at=service.created_at,
        updated_at=service.updated_at,
    )


@router.post("", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
async def register_service(
    caller: Caller,
    registry: Registry,
    body: Any = Body(...),
) -> ServiceRead:
    """Register a tunnel. The public URL is derived from the subdomain."""
    service = await registry.create(caller, body)
    return to_service_read(service)


@router.get("", response_model=list[ServiceRead])
async def list_my_services(caller: Caller, registry: Registry) -> list[ServiceRead]:
    return [to_service_read(s) for s in await registry.list_by_owner(caller)]


@router.get("/{service_id}", response_model=ServiceRead)
async def get_service(service_id: str, caller: Caller, registry: Registry) -> ServiceRead:
    return to_service_read(await registry.get(caller, service_id))


@router.put("/{service_id}", response_model=ServiceRead)
async def update_service(
    service_id: str,
    caller: Caller,
    registry: Registry,
    body: Any = Body(...),
) -> ServiceRead:
    service = await registry.update(caller, service_id, body)
    return to_service_read(service)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(service_id: str, caller: Caller, registry: Registry) -> None:
    await registry.delete(caller, service_id)


# ── Client configuration ──────────────────────────────────────

@router.get("/{service_id}/client-config", response_model=ClientConfig)
async def get_client_config(
    service_id: str,
    caller: Caller,
    registry: Registry,
    renderer: Renderer,
) -> ClientConfig:
    """frpc.toml + run.bat for the service, ready to save next to frpc.exe."""
    service = await registry.get(caller, service_id)
    return renderer.render(service)


@router.get("/{service_id}/client-config/frpc.toml", response_class=PlainTextResponse)
async def download_frpc_toml(
    service_id: str,
    caller: Caller,
    registry: Registry,
    renderer: Renderer,
) -> PlainTextResponse:
    service = await registry.get(caller, service_id)
    return PlainTextResponse(
        renderer.render_frpc_toml(service),
        headers={"Content-Disposition": 'attachment; filename="frpc.toml"'},
    )


@router.get("/{service_id}/client-config/run.bat", response_class=PlainTextResponse)
async def download_startup_script(
    service_id: str,
    caller: Caller,
    registry: Registry,
    renderer: Renderer,
) -> PlainTextResponse:
    service = await registry.get(caller, service_id)
    return PlainTextResponse(
        renderer.render_startup_script(service),
        headers={"Content-Disposition": 'attachment; filename="run.bat"'},
    )
