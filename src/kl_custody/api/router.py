"""kl_custody REST endpoints.

POST /kits                     — register a kit (admin)
POST /kits/{kit_id}/location   — record a location update (transporter, admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from src.kl_chain.application.schemas import BlockOut
from src.kl_common.enums import UserRole
from src.kl_common.response import ApiResponse, request_success
from src.kl_custody.application.schemas import RegisterKitRequest, UpdateLocationRequest
from src.kl_gateway.auth.dependencies import require_roles
from src.kl_gateway.user.models import User
from src.node import LedgerNode, get_node

router = APIRouter(prefix="/kits", tags=["custody"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_kit(
    body: RegisterKitRequest,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(UserRole.ADMIN))],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    block = await node.custody.register_kit(
        body.kit_id, body.type, body.origin, body.temperature, body.location
    )
    node.audit_log.record("KIT_REGISTERED", current_user.email, f"kit={body.kit_id} block={block.index}")
    return request_success(request, BlockOut.from_domain(block).to_wire(), "Kit registered")


@router.post("/{kit_id}/location")
async def update_location(
    kit_id: str,
    body: UpdateLocationRequest,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(UserRole.TRANSPORTER, UserRole.ADMIN))],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    block = await node.custody.update_location(
        kit_id,
        body.new_location,
        updated_by=current_user.email,
        updated_role=current_user.role.value,
        temperature=body.temperature,
        notes=body.notes,
    )
    node.audit_log.record(
        "LOCATION_UPDATED", current_user.email, f"kit={kit_id} location={body.new_location}"
    )
    return request_success(request, BlockOut.from_domain(block).to_wire(), "Location updated")
