# Supabase table: sensor_readings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (not null) - owner of the device
- device_id: uuid (foreign key to devices.id, not null)
- value: numeric (not null)
- unit: text (not null)
- timestamp: timestamp (default: now())
"""
