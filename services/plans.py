from models import Plan


class PlansService:
    def __init__(self, api):
        self._api = api

    async def list(self) -> list[Plan]:
        return [Plan.model_validate(p) for p in await self._api.get("/plans")]
