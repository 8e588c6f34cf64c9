from fastapi import APIRouter

from liquipay.api.v1.health import router as health_router
from liquipay.api.v1.customers.router import router as customers_router
from liquipay.api.v1.liquidations.router import router as liquidations_router
from liquipay.api.v1.liquidation_qr.router import router as liquidation_qr_router
from liquipay.api.v1.qr_data.router import router as qr_data_router
from liquipay.api.v1.payment_codec.router import router as payment_codec_router
from liquipay.api.v1.workflow.router import router as workflow_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(customers_router, prefix="/customers", tags=["customers"])
api_router.include_router(liquidations_router, prefix="/liquidations")  # Tags are defined in the router itself
api_router.include_router(liquidation_qr_router, prefix="/liquidations/{liquidation_id}/qr")
api_router.include_router(qr_data_router, prefix="/qr-data")
api_router.include_router(payment_codec_router, prefix="/payment-codec")
api_router.include_router(workflow_router, prefix="/workflow")
