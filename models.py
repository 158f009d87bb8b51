from pydantic import AfterValidator, BaseModel, EmailStr, Field
from typing import Annotated, Any, Optional, Literal, get_args
from datetime import datetime, timezone

UserRole = Literal["admin", "manager", "staff"]
AssetStatus = Literal["available", "lent", "maintenance", "damaged", "retired"]
LendingStatus = Literal["active", "returned", "overdue"]
AssetCondition = Literal["good", "damaged", "needs_maintenance"]
ReportType = Literal["inventory", "lending", "returns", "overdue", "category_summary"]

ASSET_STATUSES: tuple[str, ...] = get_args(AssetStatus)


def utcnow() -> datetime:
    # stored naive; SQLite drops tzinfo anyway
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


UtcDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]
Money = Annotated[float, Field(gt=0)]


# ---------- User ----------
class UserIn(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole = "staff"

class LoginIn(BaseModel):
    username: str
    password: str

class User(BaseModel):
    id: int
    username: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


# ---------- Category ----------
class CategoryIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None

class Category(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ---------- Asset ----------
class AssetIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: int
    serial_number: Optional[str] = None
    purchase_date: Optional[UtcDatetime] = None
    purchase_price: Optional[Money] = None
    current_value: Optional[Money] = None
    status: AssetStatus = "available"
    location: Optional[str] = None

class AssetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[int] = None
    serial_number: Optional[str] = None
    purchase_date: Optional[UtcDatetime] = None
    purchase_price: Optional[Money] = None
    current_value: Optional[Money] = None
    status: Optional[AssetStatus] = None
    location: Optional[str] = None

class Asset(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category_id: int
    serial_number: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_price: Optional[float] = None
    current_value: Optional[float] = None
    status: AssetStatus = "available"
    location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class AssetWithCategory(Asset):
    category: Category


# ---------- Lending ----------
class LendingIn(BaseModel):
    asset_id: int
    borrower_name: str = Field(min_length=1, max_length=100)
    borrower_email: Optional[EmailStr] = None
    borrower_phone: Optional[str] = None
    department: Optional[str] = None
    expected_return_date: UtcDatetime
    notes: Optional[str] = None
    lent_by_user_id: int

class LendingUpdate(BaseModel):
    borrower_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    borrower_email: Optional[EmailStr] = None
    borrower_phone: Optional[str] = None
    department: Optional[str] = None
    expected_return_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None

class ReturnIn(BaseModel):
    lending_id: int
    returned_by_user_id: int
    return_notes: Optional[str] = None
    asset_condition: Optional[AssetCondition] = None

class Lending(BaseModel):
    id: int
    asset_id: int
    borrower_name: str
    borrower_email: Optional[str] = None
    borrower_phone: Optional[str] = None
    department: Optional[str] = None
    lent_date: datetime
    expected_return_date: datetime
    actual_return_date: Optional[datetime] = None
    status: LendingStatus
    notes: Optional[str] = None
    lent_by_user_id: int
    returned_by_user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

class LendingWithDetails(Lending):
    asset: AssetWithCategory


# ---------- Reports ----------
class ReportIn(BaseModel):
    report_type: ReportType
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    category_id: Optional[int] = None
    status: Optional[AssetStatus] = None

class ReportData(BaseModel):
    report_type: ReportType
    generated_at: datetime
    parameters: dict[str, Any]
    data: list[dict[str, Any]]

class DashboardSummary(BaseModel):
    total_assets: int
    available_assets: int
    lent_assets: int
    overdue_lendings: int
    assets_in_maintenance: int
    total_categories: int
    recent_lendings: list[Lending] = Field(max_length=5)
    recent_returns: list[Lending] = Field(max_length=5)
