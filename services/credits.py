from models import CreditBalance, DownloadHistoryItem, DownloadResult


class CreditsService:
    def __init__(self, api):
        self._api = api

    async def balance(self) -> CreditBalance:
        return CreditBalance.model_validate(await self._api.get("/credits"))

    async def download(self, resource_id: str) -> DownloadResult:
        """Spend one credit (free for pro users) and get the file URL."""
        data = await self._api.post(f"/credits/download/{resource_id}")
        return DownloadResult.model_validate(data)

    async def history(self) -> list[DownloadHistoryItem]:
        data = await self._api.get("/credits/downloads")
        return [DownloadHistoryItem.model_validate(d) for d in data]
