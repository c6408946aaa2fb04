from __future__ import annotations
from datetime import date
from typing import Literal
from pydantic import BaseModel, EmailStr, Field, field_validator

# Required fields are optional at the schema level so handlers can answer
# with the same {"error": "... is required"} 400 the frontend already expects.

CustomerType = Literal["CURRENT", "LEADS"]
JobStatus = Literal["QUOTED", "APPROVED", "IN_PROGRESS", "COMPLETED", "CANCELLED"]
JobPriority = Literal["low", "medium", "high"]
LeadJobType = Literal["Kitchen", "Bathroom", "Other"]

# Auth
class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None

class RegisterRequest(BaseModel):
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8)
    name: str | None = None

class RefreshRequest(BaseModel):
    refreshToken: str | None = None

class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: str

    model_config = {"from_attributes": True}

class AuthResponse(BaseModel):
    token: str
    refreshToken: str
    user: UserOut

class AuthCheck(BaseModel):
    authenticated: bool
    user: UserOut | None = None

class Message(BaseModel):
    message: str

class Health(BaseModel):
    status: str
    timestamp: str
    message: str

# Customers
class CustomerIn(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    notes: str | None = None
    reference: str | None = None
    customer_type: CustomerType | None = None

class CustomerOut(BaseModel):
    id: str
    name: str
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    notes: str | None = None
    reference: str | None = None
    customer_type: str
    created_at: str
    updated_at: str
    job_count: int = 0

    model_config = {"from_attributes": True}

# Jobs
class JobIn(BaseModel):
    customer_id: str | None = None
    title: str | None = None
    description: str | None = None
    status: JobStatus | None = None
    priority: JobPriority | None = None
    total_cost: float | None = Field(None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None

class JobOut(BaseModel):
    id: str
    customer_id: str
    customer_name: str | None = None
    title: str
    description: str | None = None
    status: str
    priority: str
    total_cost: float
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}

# Materials
class MaterialIn(BaseModel):
    item_name: str | None = None
    quantity: float | None = None
    unit: str | None = None
    purchased: bool | None = None
    notes: str | None = None

class MaterialOut(BaseModel):
    id: str
    job_id: str
    item_name: str
    quantity: float
    unit: str
    purchased: bool
    notes: str | None = None
    created_at: str

    model_config = {"from_attributes": True}

# Import leads
class ImportLeadIn(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    subject_line: str | None = None
    email_body: str | None = None
    job_type: LeadJobType | None = None
    attachments: list[dict] | None = None
    notes: str | None = None

class ImportLeadUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    job_type: LeadJobType | None = None
    notes: str | None = None

class ImportLeadOut(BaseModel):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    subject_line: str | None = None
    email_body: str | None = None
    job_type: str | None = None
    attachments: list[dict] = Field(default_factory=list)
    status: str
    imported_at: str
    processed_at: str | None = None
    processed_by: str | None = None
    customer_id: str | None = None
    job_id: str | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("attachments", mode="before")
    @classmethod
    def _attachments_default(cls, v):
        return v or []

class LeadReject(BaseModel):
    reason: str | None = None

class LeadApproved(BaseModel):
    success: bool = True
    message: str
    customerId: str
    jobId: str

class LeadResult(BaseModel):
    success: bool = True
    message: str

class LeadStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
