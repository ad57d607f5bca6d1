from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional
from .review import ReviewResponse

class ExperienceItem(BaseModel):
    role: Optional[str] = None
    org: Optional[str] = None
    location: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None
    highlights: Optional[List[str]] = []

class ExperienceUpdate(BaseModel):
    role: Optional[str] = None
    org: Optional[str] = None
    location: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None
    highlights: Optional[List[str]] = None

class Project(BaseModel):
    title: Optional[str] = None
    client: Optional[str] = None
    funders: List[str] = []

class CVMedia(BaseModel):
    url: Optional[str] = None
    filename: Optional[str] = None
    mime: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)

class Media(BaseModel):
    photo: Optional[str] = None
    cv: Optional[CVMedia] = None

class ContactValue(BaseModel):
    value: Optional[str] = None

class Contacts(BaseModel):
    emails: List[ContactValue] = []
    phones: List[ContactValue] = []

class ConsultantBase(BaseModel):
    category: Optional[str] = None
    summary: Optional[str] = None
    img: Optional[str] = None
    expertise: List[str] = []
    emails: List[str] = []
    phones: List[str] = []
    qualifications: List[str] = []
    tags: List[str] = []
    sectors: List[str] = []
    associations: List[Optional[str]] = []
    media: Optional[Media] = None
    experience: List[ExperienceItem] = []
    projects: List[Project] = []
    contacts: Optional[Contacts] = None

class ConsultantCreate(ConsultantBase):
    name: str = Field(..., min_length=1, max_length=200)

class ConsultantUpdate(ConsultantBase):
    # Only fields present in the request body are applied
    name: Optional[str] = Field(None, min_length=1, max_length=200)

class ConsultantResponse(BaseModel):
    id: int
    name: str
    category: Optional[str]
    summary: Optional[str]
    img: Optional[str]
    expertise: List[str] = []
    emails: List[str] = []
    phones: List[str] = []
    qualifications: List[str] = []
    tags: List[str] = []
    sectors: List[str] = []
    associations: List[str] = []
    media: Optional[Media] = None
    experience: List[ExperienceItem] = []
    projects: List[Project] = []
    search_text: Optional[str] = None
    search_keywords: List[str] = []
    rating_avg: float
    rating_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reviews: List[ReviewResponse] = []

    model_config = {"from_attributes": True}

class UploadResponse(BaseModel):
    message: str
    url: str
    consultant: ConsultantResponse
