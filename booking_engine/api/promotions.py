from fastapi import APIRouter, Depends, HTTPException

from booking_engine.api.schemas import (
    ActivePromotionsResponse,
    PromotionSchema,
    ValidatePromotionRequest,
    ValidatePromotionResponse,
)
from booking_engine.application.results import PromotionRejected
from booking_engine.wiring.dependencies import Container, get_container

router = APIRouter(prefix="/promotions")


@router.post("/validate", response_model=ValidatePromotionResponse)
def validate_promotion(
    req: ValidatePromotionRequest,
    container: Container = Depends(get_container),
):
    if container.catalog.get_shop(req.shop_id) is None:
        raise HTTPException(status_code=404, detail="Shop not found")

    result = container.validator.evaluate(req.shop_id, req.coupon_code, req.service_ids, req.total_amount)
    if isinstance(result, PromotionRejected):
        raise HTTPException(
            status_code=400,
            detail={"message": result.message, "kind": "PromotionRejected", "reason": result.reason.value},
        )

    return ValidatePromotionResponse(
        coupon_code=result.promotion.code,
        title=result.promotion.title,
        discount=result.discount,
        discounted_total=req.total_amount - result.discount,
    )


@router.get("/shops/{shop_id}/active", response_model=ActivePromotionsResponse)
def get_active_promotions(
    shop_id: str,
    container: Container = Depends(get_container),
):
    if container.catalog.get_shop(shop_id) is None:
        raise HTTPException(status_code=404, detail="Shop not found")
    promotions = container.validator.active_promotions(shop_id)
    return ActivePromotionsResponse(promotions=[PromotionSchema.from_entity(p) for p in promotions])
