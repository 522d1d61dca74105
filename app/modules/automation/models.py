# Supabase tables: automation_rules, automation_history
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

automation_rules:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null) - owner
- zone_id: uuid (foreign key to zones.id, not null)
- name: text (not null)
- description: text (nullable)
- condition: jsonb
    {type: condition_type, sensorId?, threshold?, operator?: comparison_operator,
     timeOfDay?: "HH:MM", daysOfWeek?: [1..7]}
- action: jsonb
    {type: action_type, deviceId?, duration? (minutes), value?}
- is_active: boolean (default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

automation_history:
- id: uuid (primary key)
- user_id: uuid (not null)
- zone_id: uuid (not null)
- device_id: uuid (nullable)
- type: text ('RULE_TRIGGER' | 'SCHEDULE' | 'MANUAL')
- name: text
- description: text
- status: text ('SUCCESS' | 'FAILURE' | 'PENDING')
- details: text (nullable)
- timestamp: timestamp (default: now())
"""
