from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal


class RegisterSchema(BaseModel):
    first_name: str
    last_name: str
    email: str
    password: str


class LoginSchema(BaseModel):
    email: str
    password: str


class AccountOut(BaseModel):
    id: int
    email: str
    employee_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: str
    role: Optional[str] = None
    granted_sections: List[str] = []
    status_changed_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account):
        return cls(
            id=account.id,
            email=account.email,
            employee_id=account.employee_id,
            first_name=account.first_name,
            last_name=account.last_name,
            status=account.effective_status.value,
            role=account.role.name if account.role else None,
            granted_sections=account.granted_sections or [],
            status_changed_at=account.status_changed_at,
        )


class ApproveSchema(BaseModel):
    role: str
    sections: Optional[List[str]] = None


class BulkApproveSchema(BaseModel):
    account_ids: List[int]
    role: Optional[str] = None
    sections: Optional[List[str]] = None


class BulkRejectSchema(BaseModel):
    account_ids: List[int]


class BulkItemOut(BaseModel):
    account_id: int
    ok: bool
    account: Optional[AccountOut] = None
    error: Optional[dict] = None


class RoleCreateSchema(BaseModel):
    name: str
    description: Optional[str] = None


class RoleOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    default_sections: List[str] = []
    in_catalog: bool = False


class RiskCreateSchema(BaseModel):
    title: str
    description: str
    category: str
    flow: str = "evaluation"
    likelihood: Optional[float] = None
    impact: Optional[float] = None
    treatment_plan: Optional[str] = None
    review_date: Optional[date] = None
    owner_id: Optional[int] = None


class RiskUpdateSchema(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    treatment_plan: Optional[str] = None
    review_date: Optional[date] = None
    owner_id: Optional[int] = None


class AssessmentInputSchema(BaseModel):
    category: Optional[str] = None
    likelihood: Optional[float] = None
    impact: Optional[float] = None


class StatusSchema(BaseModel):
    status: str


class EvaluationSchema(BaseModel):
    outcome: str
    category: Optional[str] = None
    likelihood: Optional[float] = None
    impact: Optional[float] = None
    severity: Optional[str] = None
    assessment_notes: Optional[str] = None
    treatment_plan: Optional[str] = None


class RiskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    title: str
    description: str
    category: str
    flow: str
    status: str
    likelihood: Optional[Decimal] = None
    impact: Optional[Decimal] = None
    score: Optional[Decimal] = None
    level: Optional[str] = None
    severity: Optional[str] = None
    assessment_notes: Optional[str] = None
    treatment_plan: Optional[str] = None
    review_date: Optional[date] = None
    owner_id: Optional[int] = None
    reported_by_id: Optional[int] = None
    reviewed_by_id: Optional[int] = None
    evaluated_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    evaluated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DashboardAccessOut(BaseModel):
    status: str
    role: Optional[str] = None
    sections: List[str] = Field(default_factory=list)
    section_details: List[dict] = Field(default_factory=list)
