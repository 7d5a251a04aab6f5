# Pydantic models
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import date, datetime

Role = Literal["admin", "technician", "manager"]
EquipmentStatus = Literal["Active", "Inactive", "Under Maintenance", "Scrap"]
RequestType = Literal["Preventive", "Corrective", "Emergency"]
RequestStatus = Literal["New", "In Progress", "Repaired", "Scrap", "Cancelled"]
Priority = Literal["Low", "Medium", "High", "Critical"]
WorkCenterStatus = Literal["Active", "Inactive"]
TechnicianStatus = Literal["Available", "Busy", "Off Duty"]
NotificationType = Literal["success", "warning", "info", "error"]
ToastVariant = Literal["default", "destructive"]


# ============================
# Auth / profile
# ============================
class SignUp(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    department: Optional[str] = None
    avatar_url: Optional[str] = None


class ProfileResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: Role
    department: Optional[str] = None
    avatar_url: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


# ============================
# Equipment
# ============================
class EquipmentBase(BaseModel):
    name: str = Field(min_length=1)
    serial_number: str = Field(min_length=1)
    category_id: Optional[int] = None
    status: EquipmentStatus = "Active"
    location: Optional[str] = None
    department: Optional[str] = None
    assigned_to: Optional[str] = None
    maintenance_team_id: Optional[int] = None
    default_technician_id: Optional[int] = None
    purchase_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None
    warranty_provider: Optional[str] = None
    notes: Optional[str] = None


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentUpdate(BaseModel):
    name: Optional[str] = None
    serial_number: Optional[str] = None
    category_id: Optional[int] = None
    status: Optional[EquipmentStatus] = None
    location: Optional[str] = None
    department: Optional[str] = None
    assigned_to: Optional[str] = None
    maintenance_team_id: Optional[int] = None
    last_maintenance_date: Optional[date] = None
    next_maintenance_date: Optional[date] = None
    notes: Optional[str] = None


class EquipmentResponse(EquipmentBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


# ============================
# Maintenance requests
# ============================
class RequestCreate(BaseModel):
    subject: str = Field(min_length=1)
    description: Optional[str] = None
    equipment_id: Optional[int] = None
    team_id: Optional[int] = None
    work_center_id: Optional[int] = None
    type: RequestType = "Corrective"
    priority: Priority = "Medium"
    status: RequestStatus = "New"
    scheduled_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None


class RequestUpdate(BaseModel):
    subject: Optional[str] = None
    description: Optional[str] = None
    equipment_id: Optional[int] = None
    team_id: Optional[int] = None
    assigned_technician_id: Optional[int] = None
    work_center_id: Optional[int] = None
    type: Optional[RequestType] = None
    status: Optional[RequestStatus] = None
    priority: Optional[Priority] = None
    scheduled_date: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    cost: Optional[float] = None


class RequestCard(BaseModel):
    """Flattened request row as shown on the board, calendar and lists."""

    id: int
    request_number: str
    subject: str
    status: RequestStatus
    type: RequestType
    priority: Priority
    equipment_id: Optional[int] = None
    equipment_name: Optional[str] = None
    team_name: Optional[str] = None
    team_color: Optional[str] = None
    technician_name: Optional[str] = None
    technician_avatar: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    is_overdue: bool = False


# ============================
# Teams / work centers
# ============================
class TeamCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    color: str = "#6366f1"


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class WorkCenterCreate(BaseModel):
    name: str = Field(min_length=1)
    code: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    capacity: int = Field(default=1, ge=0)
    status: WorkCenterStatus = "Active"


class WorkCenterUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    status: Optional[WorkCenterStatus] = None


# ============================
# Notifications / toasts
# ============================
class NotificationCreate(BaseModel):
    user_id: int
    title: str
    message: str
    type: NotificationType = "info"
    link: Optional[str] = None


class Toast(BaseModel):
    title: str
    description: str = ""
    variant: ToastVariant = "default"


# ============================
# Kanban
# ============================
class MoveRequest(BaseModel):
    request_id: int
    from_column: str
    to_column: str
    to_index: int = Field(default=0, ge=0)


class MoveResult(BaseModel):
    moved: bool
    reverted: bool = False
    toasts: List[Toast] = []


# ============================
# Reports
# ============================
class CountBucket(BaseModel):
    label: str
    count: int


class RequestAnalytics(BaseModel):
    total_requests: int = 0
    completed: int = 0
    in_progress: int = 0
    avg_time: float = 0
    by_team: List[CountBucket] = []
    by_status: List[CountBucket] = []
    by_type: List[CountBucket] = []
    over_time: List[CountBucket] = []
