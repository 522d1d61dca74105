# Supabase table: irrigation_schedules
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (not null) - owner
- zone_id: uuid (foreign key to zones.id, not null)
- device_id: uuid (foreign key to devices.id, not null) - valve or pump to open
- name: text (not null)
- description: text (nullable)
- start_time: time (HH:MM)
- duration: integer (minutes)
- days_of_week: integer[] (1 = Monday ... 7 = Sunday)
- is_active: boolean (default true)
- created_at / updated_at: timestamp

Schedules are stored records only; no executor runs them.
"""
