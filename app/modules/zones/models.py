# Supabase table: zones
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null) - owner
- name: text (not null)
- description: text (nullable)
- boundary_coordinates: jsonb (list of {lat, lng})
- area_size: numeric (square meters)
- irrigation_status: irrigation_status enum ('inactive' | 'active' | 'scheduled' | 'paused')
- soil_moisture_threshold: numeric (nullable)
- soil_type: text (nullable)
- crop_type: text (nullable)
- irrigation_method: text (nullable)
- notes: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
