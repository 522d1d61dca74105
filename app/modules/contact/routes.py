from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.contact.schemas import (
    ContactSubmissionCreate, ContactSubmissionStatusUpdate, ContactSubmissionResponse,
    ContactFormCreate, ContactFormUpdate, ContactFormResponse,
    NewsletterSubscribe, NewsletterResponse
)
from app.modules.contact.service import ContactService
from app.core.dependencies import require_permission, is_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/contact", tags=["contact"])


def get_contact_service(supabase: Client = Depends(get_supabase)) -> ContactService:
    return ContactService(supabase)


@router.get("/submissions", response_model=List[ContactSubmissionResponse])
async def list_submissions(
    user_data: Dict = Depends(require_permission("contact:read")),
    service: ContactService = Depends(get_contact_service)
):
    """Admins see every submission, farmers their own"""
    if is_admin(user_data["profile"]):
        return service.list_submissions()
    return service.list_submissions(user_id=user_data["id"])


@router.post("/submissions", response_model=ContactSubmissionResponse, status_code=201)
async def create_submission(
    data: ContactSubmissionCreate,
    user_data: Dict = Depends(require_permission("contact:create")),
    service: ContactService = Depends(get_contact_service)
):
    return service.create_submission(data, user_data["id"])


@router.patch("/submissions/{submission_id}", response_model=ContactSubmissionResponse)
async def update_submission_status(
    submission_id: str,
    data: ContactSubmissionStatusUpdate,
    user_data: Dict = Depends(require_permission("contact:manage")),
    service: ContactService = Depends(get_contact_service)
):
    return service.update_submission_status(submission_id, data.status)


@router.post("/form", response_model=ContactFormResponse, status_code=201)
async def create_form_submission(
    data: ContactFormCreate,
    service: ContactService = Depends(get_contact_service)
):
    """Public contact page"""
    return service.create_form_submission(data)


@router.get("/form", response_model=List[ContactFormResponse])
async def list_form_submissions(
    user_data: Dict = Depends(require_permission("contact:manage")),
    service: ContactService = Depends(get_contact_service)
):
    return service.list_form_submissions()


@router.patch("/form/{submission_id}", response_model=ContactFormResponse)
async def update_form_submission(
    submission_id: str,
    data: ContactFormUpdate,
    user_data: Dict = Depends(require_permission("contact:manage")),
    service: ContactService = Depends(get_contact_service)
):
    return service.mark_form_submission(submission_id, data.is_read)


@router.post("/newsletter", response_model=NewsletterResponse, status_code=201)
async def subscribe_newsletter(
    data: NewsletterSubscribe,
    service: ContactService = Depends(get_contact_service)
):
    return service.subscribe_newsletter(data.email)


@router.get("/newsletter", response_model=List[NewsletterResponse])
async def list_newsletter_subscriptions(
    user_data: Dict = Depends(require_permission("contact:manage")),
    service: ContactService = Depends(get_contact_service)
):
    return service.list_newsletter_subscriptions()
