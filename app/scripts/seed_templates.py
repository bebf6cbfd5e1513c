"""
Seed Templates Script
This script populates project_templates with the default public templates.
Can be run manually after a fresh migration; existing templates are updated in place.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import get_service_supabase
from app.modules.templates.schemas import ImageElement, TemplateData, TextElement
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES = [
    {
        "name": "Business Card Design",
        "description": "Standard business card template with Fast Signs branding",
        "category": "business",
        "template_data": TemplateData(width="3.5in", height="2in", elements=[
            TextElement(content="Company Name"),
            TextElement(content="Contact Info"),
        ]),
    },
    {
        "name": "Banner Design",
        "description": "Large format banner template for outdoor advertising",
        "category": "outdoor",
        "template_data": TemplateData(width="8ft", height="4ft", elements=[
            TextElement(content="Main Headline"),
            ImageElement(placeholder="Company Logo"),
        ]),
    },
    {
        "name": "Vehicle Wrap",
        "description": "Full vehicle wrap design template",
        "category": "vehicle",
        "template_data": TemplateData(elements=[
            TextElement(content="Company Branding"),
            ImageElement(placeholder="Vehicle Template"),
        ]),
    },
    {
        "name": "Window Graphics",
        "description": "Storefront window graphics template",
        "category": "storefront",
        "template_data": TemplateData(elements=[
            TextElement(content="Store Hours"),
            TextElement(content="Services"),
        ]),
    },
]


def seed_templates(supabase: Client):
    """Seed default public templates; seeded rows have no creator"""
    logger.info("Seeding templates...")

    created_count = 0
    updated_count = 0

    for template in DEFAULT_TEMPLATES:
        values = {
            "description": template["description"],
            "category": template["category"],
            "is_public": True,
            "template_data": template["template_data"].model_dump(mode="json", exclude_none=True),
        }
        try:
            existing = supabase.table("project_templates")\
                .select("id")\
                .eq("name", template["name"])\
                .is_("created_by", "null")\
                .execute()

            if existing.data:
                supabase.table("project_templates")\
                    .update(values)\
                    .eq("id", existing.data[0]["id"])\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated template: {template['name']}")
            else:
                supabase.table("project_templates").insert({"name": template["name"], **values}).execute()
                created_count += 1
                logger.debug(f"Created template: {template['name']}")
        except Exception as e:
            logger.error(f"Error processing template {template['name']}: {e}")

    logger.info(f"Templates seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def main():
    try:
        supabase = get_service_supabase()
        count = seed_templates(supabase)
        logger.info(f"Seeding completed successfully! {count} templates processed")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
