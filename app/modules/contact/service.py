import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.contact.schemas import (
    ContactSubmissionCreate, ContactSubmissionResponse, SubmissionStatus,
    ContactFormCreate, ContactFormResponse, NewsletterResponse
)
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

ALREADY_SUBSCRIBED = "You are already subscribed to our newsletter."

SUBMISSION_SELECT = "*, subscription_plans(name, price, billing_interval)"


class ContactService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Subscription contact submissions

    def list_submissions(self, user_id: Optional[str] = None) -> List[ContactSubmissionResponse]:
        """All submissions, or only user_id's when given"""
        try:
            query = self.supabase.table("contact_submissions").select(SUBMISSION_SELECT)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.order("created_at", desc=True).execute()
            return [ContactSubmissionResponse(**row) for row in result.data]
        except Exception as e:
            logger.error(f"Error fetching contact submissions: {e}")
            raise HTTPException(status_code=500, detail="Failed to load contact submissions")

    def create_submission(self, data: ContactSubmissionCreate, user_id: str) -> ContactSubmissionResponse:
        try:
            result = self.supabase.table("contact_submissions").insert({
                **data.model_dump(mode="json"),
                "user_id": user_id,
                "status": SubmissionStatus.PENDING.value
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to submit contact request")

            logger.info(f"Contact submission {result.data[0]['id']} created by {user_id}")
            return ContactSubmissionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating contact submission: {e}")
            raise HTTPException(status_code=500, detail="Failed to submit contact request")

    def update_submission_status(self, submission_id: str, status: SubmissionStatus) -> ContactSubmissionResponse:
        try:
            result = self.supabase.table("contact_submissions")\
                .update({"status": status.value, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", submission_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Contact submission not found")

            return ContactSubmissionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating contact submission: {e}")
            raise HTTPException(status_code=500, detail="Failed to update submission status")

    # Public contact form

    def list_form_submissions(self) -> List[ContactFormResponse]:
        try:
            result = self.supabase.table("contact_form_submissions")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [ContactFormResponse(**row) for row in result.data]
        except Exception as e:
            logger.error(f"Error fetching contact form submissions: {e}")
            raise HTTPException(status_code=500, detail="Failed to load contact form submissions")

    def create_form_submission(self, data: ContactFormCreate) -> ContactFormResponse:
        try:
            result = self.supabase.table("contact_form_submissions")\
                .insert(data.model_dump(mode="json"))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send your message. Please try again.")

            return ContactFormResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating contact form submission: {e}")
            raise HTTPException(status_code=500, detail="Failed to send your message. Please try again.")

    def mark_form_submission(self, submission_id: str, is_read: bool) -> ContactFormResponse:
        try:
            result = self.supabase.table("contact_form_submissions")\
                .update({"is_read": is_read, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", submission_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Contact submission not found")

            return ContactFormResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating contact form submission: {e}")
            raise HTTPException(status_code=500, detail="Failed to update contact submission")

    # Newsletter

    def list_newsletter_subscriptions(self) -> List[NewsletterResponse]:
        try:
            result = self.supabase.table("newsletter_subscriptions")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [NewsletterResponse(**row) for row in result.data]
        except Exception as e:
            logger.error(f"Error fetching newsletter subscriptions: {e}")
            raise HTTPException(status_code=500, detail="Failed to load newsletter subscriptions")

    def subscribe_newsletter(self, email: str) -> NewsletterResponse:
        email = email.strip().lower()
        try:
            existing = self.supabase.table("newsletter_subscriptions")\
                .select("id")\
                .eq("email", email)\
                .limit(1)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail=ALREADY_SUBSCRIBED)

            result = self.supabase.table("newsletter_subscriptions")\
                .insert({"email": email})\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to subscribe. Please try again.")

            return NewsletterResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            # Unique constraint hit by a concurrent subscribe
            if "duplicate" in str(e).lower():
                raise HTTPException(status_code=409, detail=ALREADY_SUBSCRIBED)
            logger.error(f"Error creating newsletter subscription: {e}")
            raise HTTPException(status_code=500, detail="Failed to subscribe. Please try again.")
