# Supabase table: project_templates
# This file documents the expected database schema
# Actual operations are handled via ResourceStore in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- thumbnail: text (nullable)
- template_data: jsonb (nullable) - TemplateData document, see schemas.py
- category: text (default: 'general')
- is_public: boolean (default: true) - private templates are visible to their creator only
- created_by: uuid (nullable, foreign key to profiles.id) - null for seeded templates
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
