from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.workflow.schemas import ClientInfoResponse, WorkflowRequest, WorkflowResponse
from liquipay.api.v1.workflow.service import WorkflowService
from liquipay.core.clock import Clock
from liquipay.core.config import QrSettings
from liquipay.core.deps import get_clock, get_db, get_payment_codec, get_qr_settings
from liquipay.core.exceptions import raise_for_reason
from liquipay.core.payment_codec import PaymentCodec

router = APIRouter(tags=["workflow"])


def get_workflow_service(
    db: AsyncSession = Depends(get_db),
    codec: PaymentCodec = Depends(get_payment_codec),
    qr_settings: QrSettings = Depends(get_qr_settings),
    clock: Clock = Depends(get_clock),
) -> WorkflowService:
    return WorkflowService(db, codec, qr_settings, clock)


@router.post(
    "/generate",
    response_model=WorkflowResponse,
    summary="Generate a QR code and its client-info link",
    description="The link resolves to GET /workflow/client-info/{token}.",
)
async def generate_workflow(data: WorkflowRequest, service: WorkflowService = Depends(get_workflow_service)):
    outcome = service.generate_workflow(
        data.amount,
        data.client_info,
        qr_type=data.qr_type,
        merchant_name=data.merchant_name,
        transaction_reference=data.transaction_reference,
    )
    if not outcome["success"]:
        raise_for_reason(outcome["reason"], outcome["message"])
    return WorkflowResponse(success=True, message=outcome["message"], **outcome["data"])


# base64 tokens may contain "/", hence the path converter
@router.get("/client-info/{token:path}", response_model=ClientInfoResponse, summary="Resolve a workflow link")
async def client_info(token: str, service: WorkflowService = Depends(get_workflow_service)):
    outcome = await service.resolve_link(token)
    if not outcome["success"]:
        raise_for_reason(outcome["reason"], outcome["message"])
    return ClientInfoResponse(success=True, message=outcome["message"], **outcome["data"])
