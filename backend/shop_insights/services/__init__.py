"""
Business services.

Kept import-free so repositories can use services.formatting without
pulling in the services that depend on repositories.
"""
