# Supabase tables: crops, crop_images
# Storage bucket: crop-images
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

crops:
- id: uuid (primary key)
- user_id: uuid (not null) - owner
- zone_id: uuid (foreign key to zones.id, not null)
- name: text (not null)
- variety: text (nullable)
- planting_date: date (not null)
- harvest_date: date (nullable)
- growth_stage: growth_stage enum (planting, germination, vegetative,
                flowering, fruiting, harvest)
- ideal_moisture: jsonb ({min, max})
- ideal_temperature: jsonb ({min, max})
- notes, seed_source, image_url: text (nullable)
- plant_spacing, estimated_yield: numeric (nullable)
- growth_days: integer (nullable)
- created_at / updated_at: timestamp

crop_images:
- id: uuid (primary key)
- crop_id: uuid (foreign key to crops.id, on delete cascade)
- user_id: uuid (not null)
- image_url: text (public storage URL)
- capture_date: date
- notes: text (nullable)
- created_at: timestamp
"""
