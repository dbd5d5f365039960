from models import FAQ, Priority, SupportTicket, TicketMessage


class SupportService:
    def __init__(self, api):
        self._api = api

    async def create_ticket(
        self, subject: str, message: str, priority: Priority = "NORMAL",
    ) -> SupportTicket:
        data = await self._api.post("/support/tickets", {
            "subject": subject,
            "message": message,
            "priority": priority,
        })
        return SupportTicket.model_validate(data)

    async def my_tickets(self) -> list[SupportTicket]:
        return [SupportTicket.model_validate(t) for t in await self._api.get("/support/tickets")]

    async def get_ticket(self, ticket_id: str) -> SupportTicket:
        return SupportTicket.model_validate(await self._api.get(f"/support/tickets/{ticket_id}"))

    async def reply(self, ticket_id: str, message: str) -> TicketMessage:
        data = await self._api.post(f"/support/tickets/{ticket_id}/reply", {"message": message})
        return TicketMessage.model_validate(data)

    async def faqs(self, category: str | None = None) -> list[FAQ]:
        data = await self._api.get("/support/faqs", params={"category": category})
        return [FAQ.model_validate(f) for f in data]
