"""pm_lmsr REST API — stateless trade previews over a caller-supplied pool snapshot."""

from fastapi import APIRouter, Request

from src.pm_common.response import ApiResponse, success_response
from src.pm_lmsr.application.schemas import DepthRequest, PlanRequest, SimulateRequest
from src.pm_lmsr.application.service import LmsrPreviewService

router = APIRouter(prefix="/lmsr", tags=["lmsr"])

_service = LmsrPreviewService()


@router.post("/simulate")
async def simulate_trade(body: SimulateRequest, request: Request) -> ApiResponse:
    data = _service.simulate(body)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.post("/plan")
async def plan_trade(body: PlanRequest, request: Request) -> ApiResponse:
    data = _service.plan(body)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.post("/depth")
async def price_depth(body: DepthRequest, request: Request) -> ApiResponse:
    data = _service.depth(body)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))
