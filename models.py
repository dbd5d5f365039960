"""Response and request models for the Noteveda API (camelCase on the wire)."""

from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Users & plans ─────────────────────────────────────────

class Plan(ApiModel):
    id: str
    name: str
    description: str = ""
    price: float
    currency: str = "INR"
    interval: Literal["MONTHLY", "YEARLY", "LIFETIME"]
    features: list[str] = []
    badge: str | None = None
    highlighted: bool = False
    cta: str = ""
    cta_link: str = ""
    is_active: bool = True


class Subscription(ApiModel):
    id: str
    plan_id: str
    plan: Plan | None = None
    start_date: datetime
    end_date: datetime | None = None
    active: bool


class User(ApiModel):
    id: str
    name: str
    email: str
    avatar: str | None = None
    credits: int = 0
    daily_credits: int = 0
    upload_credits: int = 0
    role: Literal["USER", "ADMIN"] = "USER"
    subscription: Subscription | None = None
    created_at: datetime | None = None


class AuthResponse(ApiModel):
    user: User


# ── Resources ─────────────────────────────────────────────

class Author(ApiModel):
    id: str
    name: str
    avatar: str | None = None


class Resource(ApiModel):
    id: str
    title: str
    description: str = ""
    file_url: str
    file_type: Literal["PDF", "DOCX", "TXT"]
    thumbnail_url: str | None = None
    domain: str
    sub_domain: str
    stream: str | None = None
    subject: str
    resource_type: Literal["NOTES", "GUIDE", "PYQ", "SOLUTION"]
    tags: list[str] = []
    status: Literal["PENDING", "APPROVED", "REJECTED"] = "PENDING"
    pages: int | None = None
    file_size: int | None = None
    view_count: int | None = None
    author: Author | str
    download_count: int = 0
    category: str | None = None
    metadata: dict | None = None
    created_at: datetime
    updated_at: datetime


class Page(ApiModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


class ResourceQuery(ApiModel):
    page: int | None = None
    limit: int | None = None
    domain: str | None = None
    sub_domain: str | None = None
    stream: str | None = None
    subject: str | None = None
    resource_type: str | None = None
    search: str | None = None
    sort_by: Literal["latest", "popular", "relevant"] | None = None
    category: str | None = None

    def to_params(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class CreateResource(ApiModel):
    title: str
    description: str
    file_url: str
    file_hash: str
    file_size: int
    file_type: str
    thumbnail_url: str | None = None
    domain: str
    sub_domain: str
    stream: str | None = None
    subject: str
    resource_type: str
    tags: list[str] | None = None
    category: str | None = None
    metadata: dict | None = None


class UploadedFile(ApiModel):
    url: str
    public_id: str
    format: str


# ── Categories ────────────────────────────────────────────

class Subject(ApiModel):
    id: str
    name: str
    slug: str


class Stream(ApiModel):
    id: str
    name: str
    slug: str
    subjects: list[Subject] = []


class SubDomain(ApiModel):
    id: str
    name: str
    slug: str
    streams: list[Stream] | None = None


class Domain(ApiModel):
    id: str
    name: str
    slug: str
    sub_domains: list[SubDomain] = []


class PlatformStats(ApiModel):
    total_resources: int
    total_users: int
    total_downloads: int
    categories: int


# ── Credits & payments ────────────────────────────────────

class CreditBalance(ApiModel):
    daily_credits: int
    upload_credits: int
    total_credits: int
    is_pro: bool = False


class DownloadResult(ApiModel):
    success: bool
    file_url: str
    message: str | None = None


class DownloadHistoryItem(ApiModel):
    id: str
    resource: Resource
    created_at: datetime


class CreateOrderResponse(ApiModel):
    order_id: str
    amount: int
    currency: str
    key: str


# ── Support ───────────────────────────────────────────────

Priority = Literal["LOW", "NORMAL", "HIGH", "URGENT"]


class TicketUser(ApiModel):
    id: str
    name: str
    email: str | None = None
    avatar: str | None = None
    role: str | None = None


class TicketMessage(ApiModel):
    id: str
    ticket_id: str
    sender_id: str
    sender: TicketUser | None = None
    message: str
    is_admin: bool = False
    created_at: datetime


class SupportTicket(ApiModel):
    id: str
    user_id: str
    user: TicketUser | None = None
    subject: str
    message: str
    status: Literal["OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED"]
    priority: Priority
    messages: list[TicketMessage] = []
    created_at: datetime
    updated_at: datetime


class FAQ(ApiModel):
    id: str
    question: str
    answer: str
    category: str
    order: int = 0
    created_at: datetime | None = None


# ── AI ────────────────────────────────────────────────────

class ResourceContext(ApiModel):
    title: str
    subject: str
    domain: str
    resource_type: str


class ChatResponse(ApiModel):
    role: Literal["ai", "user"]
    content: str = ""
