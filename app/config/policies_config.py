"""
Access Policy Configuration
This config defines the policy matrix for every resource table and the blob store.
Used by the PolicyEngine at request time and returned by /auth/me so the frontend
can gate its UI from the same table the server enforces.
"""

ROLES = ("user", "moderator", "admin")
DEFAULT_ROLE = "user"
ADMIN_ROLE = "admin"

OPERATIONS = ("select", "insert", "update", "delete")

# Predicate names understood by app.core.policy.PolicyEngine:
#   authenticated   - any signed-in caller
#   owner           - caller.id == row[owner_field]
#   public_or_owner - row.is_public or owner
#   path_owner      - first segment of the blob path == caller.id
#   profile_fields  - per-field rules from PROFILE_FIELD_RULES
#   system          - only the backend itself (never an API caller)
#   deny            - no path exists
RESOURCES = {
    "profiles": {
        "owner_field": "id",
        "select": "authenticated",
        "insert": "system",
        "update": "profile_fields",
        "delete": "deny",
        "description": "User profiles, one per identity"
    },
    "jobs": {
        "owner_field": "created_by",
        "select": "authenticated",
        "insert": "authenticated",
        "update": "owner",
        "delete": "owner",
        "description": "Client projects"
    },
    "job_files": {
        "owner_field": "uploaded_by",
        "select": "authenticated",
        "insert": "authenticated",
        "update": "owner",
        "delete": "owner",
        "description": "Files uploaded to a job"
    },
    "file_comments": {
        "owner_field": "user_id",
        "select": "authenticated",
        "insert": "authenticated",
        "update": "owner",
        "delete": "owner",
        "description": "Comments on job files"
    },
    "file_versions": {
        "owner_field": "created_by",
        "select": "authenticated",
        "insert": "authenticated",
        "update": "deny",
        "delete": "deny",
        "description": "Append-only version history of job files"
    },
    "project_templates": {
        "owner_field": "created_by",
        "select": "public_or_owner",
        "insert": "authenticated",
        "update": "owner",
        "delete": "owner",
        "description": "Reusable job templates"
    },
    "objects": {
        "owner_field": None,
        "select": "authenticated",
        "insert": "authenticated",
        "update": "path_owner",
        "delete": "path_owner",
        "description": "File blobs in the object store"
    }
}

# Which caller may change which profile column
PROFILE_FIELD_RULES = {
    "full_name": "self",
    "role": "admin"
}


def get_policy_matrix():
    """
    Returns the policy table in a frontend-friendly shape
    Format: {
        "roles": ["user", "moderator", "admin"],
        "policies": [
            {"table": "jobs", "operation": "update", "rule": "owner", "owner_field": "created_by"},
            ...
        ],
        "profile_fields": {"full_name": "self", "role": "admin"}
    }
    """
    policies = []
    for table, config in RESOURCES.items():
        for operation in OPERATIONS:
            policies.append({
                "table": table,
                "operation": operation,
                "rule": config[operation],
                "owner_field": config["owner_field"]
            })

    return {
        "roles": list(ROLES),
        "policies": policies,
        "profile_fields": dict(PROFILE_FIELD_RULES)
    }


# Export the matrix for /auth/me
POLICY_MATRIX = get_policy_matrix()
