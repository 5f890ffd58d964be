"""Domain packages: one per admin/public resource (schemas, repository, service, router)."""
