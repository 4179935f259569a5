"""Business logic layer for files app.

- records: owner-scoped metadata queries and mutations
- file_operations: upload with compensation, download, delete, previews
- folder_operations: folder create and cascading delete
- workflow: the file manager that sequences all of the above

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
