"""Platform concerns: errors, tenant scope resolution, RBAC."""
