from models import Domain, PlatformStats, SubDomain


class CategoriesService:
    def __init__(self, api):
        self._api = api

    async def domains(self) -> list[Domain]:
        """Full tree: domains → subdomains → streams → subjects."""
        return [Domain.model_validate(d) for d in await self._api.get("/categories/domains")]

    async def subdomains(self, domain_id: str) -> list[SubDomain]:
        data = await self._api.get(f"/categories/domains/{domain_id}/subdomains")
        return [SubDomain.model_validate(s) for s in data]

    async def stats(self) -> PlatformStats:
        return PlatformStats.model_validate(await self._api.get("/categories/stats"))
