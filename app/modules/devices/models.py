# Supabase table: devices
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null) - owner
- zone_id: uuid (foreign key to zones.id, nullable)
- name: text (not null)
- type: device_type enum (moisture_sensor, temperature_sensor, valve, pump,
        weather_station, ph_sensor, light_sensor)
- status: device_status enum ('online' | 'offline' | 'maintenance' | 'alert')
- battery_level: integer 0-100 (nullable)
- last_reading: numeric (nullable)
- last_updated: timestamp
- location: jsonb ({lat, lng})
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
