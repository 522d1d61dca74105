# Supabase tables: platform_config, platform_pages, device_api_keys
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

platform_config:
- id: uuid (primary key)
- key: text (unique, not null); per-user settings live under 'user_settings_<user_id>'
- value: text (not null; JSON encoded for user settings)
- description: text (nullable)
- updated_by: uuid (nullable)
- created_at, updated_at: timestamp

platform_pages:
- id: uuid (primary key)
- slug: text (unique, not null)
- title: text (not null)
- content: jsonb
- meta_description: text (nullable)
- is_published: boolean (default: false)
- created_by, updated_by: uuid (nullable)
- created_at, updated_at: timestamp

device_api_keys:
- id: uuid (primary key)
- user_id: uuid (unique, not null)
- name: text (not null)
- key: text (not null, 'ak_<ms timestamp>_<random>')
- created_at: timestamp
"""
