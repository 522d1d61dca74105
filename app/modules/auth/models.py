# Supabase Auth + user_profiles
# Authentication is handled by Supabase Auth (auth.users table).
# A database trigger creates the matching user_profiles row on sign-up.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (metadata stored in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Expected Supabase table structure:

user_profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null)
- display_name: text (nullable)
- phone_number: text (nullable)
- profile_image: text (nullable)
- role: user_role enum ('farmer' | 'admin' | 'super_admin', default 'farmer')
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
