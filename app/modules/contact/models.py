# Supabase tables: contact_submissions, contact_form_submissions, newsletter_subscriptions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

contact_submissions (subscription contact form, signed-in users):
- id: uuid (primary key)
- user_id: uuid (not null)
- full_name: text, phone_number: text, email: text (not null)
- additional_notes: text (nullable)
- selected_plan_id: uuid (foreign key to subscription_plans.id, nullable)
- status: text ('pending' | 'approved' | 'denied', default 'pending')
- created_at, updated_at: timestamp

contact_form_submissions (public contact page):
- id: uuid (primary key)
- name: text, email: text, message: text (not null)
- subject, phone, company: text (nullable)
- is_read: boolean (default: false)
- created_at, updated_at: timestamp

newsletter_subscriptions:
- id: uuid (primary key)
- email: text (unique, not null)
- is_active: boolean (default: true)
- created_at, updated_at: timestamp
"""
