# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via ResourceStore in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id) - one profile per identity
- email: text (not null) - copied from auth.users at creation
- full_name: text (not null) - user_metadata.full_name, else the email
- role: text (not null, default: 'user', check in ('user', 'moderator', 'admin'))
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

The primary key doubles as the guard against two concurrent first logins
creating two profiles for the same identity.
"""
