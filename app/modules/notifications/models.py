# Supabase tables: notifications, user_notification_preferences, broadcast_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key)
- user_id: uuid (not null) - recipient
- title: text (not null)
- message: text (not null)
- type: text (default: 'info')
- category: text (default: 'general'; 'broadcast' for fanned-out messages)
- data: jsonb (nullable, e.g. {broadcast_id})
- is_read: boolean (default: false)
- is_push_sent: boolean (default: false)
- expires_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

user_notification_preferences:
- id: uuid (primary key)
- user_id: uuid (unique, not null)
- push_notifications_enabled, email_notifications_enabled: boolean (default: true)
- device_alerts, irrigation_alerts, system_alerts, maintenance_alerts,
  broadcast_messages: boolean (default: true)
- quiet_hours_start, quiet_hours_end: time (nullable)
- created_at, updated_at: timestamp

broadcast_messages:
- id: uuid (primary key)
- created_by: uuid (not null) - admin author
- title: text, message: text, type: text
- target_audience: text ('all' | 'farmers' | 'admins' | 'specific')
- target_user_ids: uuid[] (nullable)
- status: text ('draft' | 'sent')
- scheduled_at, sent_at: timestamp (nullable)
- recipients_count, delivered_count: integer (nullable)
- created_at, updated_at: timestamp
"""
