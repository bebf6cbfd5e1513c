# Supabase tables: file_versions, file_version_counters
# This file documents the expected database schema
# Actual operations are handled via ResourceStore and the next_file_version RPC in service.py

"""
Expected Supabase table structure:

file_versions (append-only):
- id: uuid (primary key)
- file_id: uuid (foreign key to job_files.id, not null, ON DELETE CASCADE)
- version_number: integer (not null) - unique together with file_id
- file_path: text (not null) - {created_by}/{file_id}/versions/{file_id}_v{n}.{ext}
- file_size: bigint (not null)
- changelog: text (nullable)
- created_by: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())

file_version_counters:
- file_id: uuid (primary key, foreign key to job_files.id, ON DELETE CASCADE)
- last_version: integer (not null)

next_file_version(p_file_id uuid) returns integer:
    INSERT ... ON CONFLICT (file_id) DO UPDATE SET last_version = last_version + 1
    RETURNING last_version
The row lock taken by the upsert serialises concurrent callers, so every call
returns a distinct number.
"""
