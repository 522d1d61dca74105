# Supabase table: alerts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (not null) - owner
- device_id: uuid (foreign key to devices.id, nullable)
- zone_id: uuid (foreign key to zones.id, nullable)
- title: text (not null)
- message: text (not null)
- severity: alert_severity enum ('info' | 'warning' | 'error' | 'critical')
- is_read: boolean (default: false)
- timestamp: timestamp (default: now())
"""
