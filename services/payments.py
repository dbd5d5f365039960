from models import CreateOrderResponse


class PaymentsService:
    def __init__(self, api):
        self._api = api

    async def create_order(self, plan_id: str) -> CreateOrderResponse:
        data = await self._api.post("/payments/create-order", {"plan": plan_id})
        return CreateOrderResponse.model_validate(data)

    async def verify(self, order_id: str, payment_id: str, signature: str, plan_id: str) -> bool:
        """Confirm a completed checkout with the gateway's signed ids."""
        data = await self._api.post("/payments/verify", {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
            "plan": plan_id,
        })
        return bool(data.get("success"))
