# Supabase tables: subscription_plans, user_subscriptions, subscription_requests
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

subscription_plans:
- id: uuid (primary key)
- name: text (unique, not null)
- description: text (nullable)
- price: numeric (not null; Stripe unit_amount == price * 100)
- billing_interval: text ('month' | 'year')
- features: jsonb
    {max_zones, max_devices, max_crops, advanced_features, automation,
     weather_api, maps_api}
- created_at, updated_at: timestamp

user_subscriptions:
- id: uuid (primary key)
- user_id: uuid (not null)
- plan_id: uuid (foreign key to subscription_plans.id)
- status: text ('active' | 'trial' | 'inactive' | 'cancelled')
- stripe_customer_id, stripe_subscription_id: text (nullable)
- start_date: timestamp, end_date: timestamp (nullable)
- created_at, updated_at: timestamp

subscription_requests:
- id: uuid (primary key)
- user_id: uuid (not null)
- plan_id: uuid (foreign key to subscription_plans.id)
- contact_submission_id: uuid (foreign key to contact_submissions.id, nullable)
- approval_status: text ('pending' | 'approved' | 'denied')
- approved_by: uuid (nullable), approved_at: timestamp (nullable)
- denial_reason: text (nullable)
- created_at, updated_at: timestamp
"""
