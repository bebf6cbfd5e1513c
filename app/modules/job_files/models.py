# Supabase table: job_files
# This file documents the expected database schema
# Actual operations are handled via ResourceStore in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- job_id: uuid (foreign key to jobs.id, not null, ON DELETE CASCADE)
- file_name: text (not null) - original name as uploaded
- file_type: text (not null) - MIME type, 'application/octet-stream' when unknown
- file_size: bigint (not null)
- file_path: text (not null, unique) - key in the 'job-files' bucket:
  {uploaded_by}/{job_id}/{timestamp}-{random}.{ext}
- is_presentation: boolean (default: false)
- uploaded_by: uuid (foreign key to profiles.id, not null) - owner
- created_at: timestamp (default: now())
"""
