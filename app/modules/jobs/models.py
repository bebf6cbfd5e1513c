# Supabase table: jobs
# This file documents the expected database schema
# Actual operations are handled via ResourceStore in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- client_name: text (nullable)
- thumbnail: text (nullable)
- priority: text (default: 'medium', check in ('low', 'medium', 'high'))
- status: text (default: 'pending', check in ('pending', 'in-progress', 'completed'))
- created_by: uuid (foreign key to profiles.id, not null) - owner
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Deleting a job cascades to job_files, and from there to file_comments and
file_versions (ON DELETE CASCADE).
"""
