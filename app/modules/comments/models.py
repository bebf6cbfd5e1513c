# Supabase table: file_comments
# This file documents the expected database schema
# Actual operations are handled via ResourceStore in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- file_id: uuid (foreign key to job_files.id, not null, ON DELETE CASCADE)
- user_id: uuid (foreign key to profiles.id, not null) - author and owner
- comment: text (not null)
- parent_id: uuid (nullable, foreign key to file_comments.id, ON DELETE SET NULL) - reply threading; replies outlive their parent
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
