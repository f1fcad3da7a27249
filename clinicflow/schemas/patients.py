from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class PatientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    dob: Optional[str] = None  # YYYY-MM-DD
    guardian_name: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    guardian_name: Optional[str] = None
    dob: Optional[str] = None
    age: str = ""
    gender: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    last_visit: Optional[str] = None
    condition: Optional[str] = None
    created_at: datetime
