"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority, TaskDraft, TaskChange)
- task_gateway.py: snapshot (de)serialization on top of a key-value storage
- task_store.py: canonical ordered collection + mutations + change notifications
- progress_controller.py: drag / number input / done-undo -> debounced commits
- list_reconciler.py: keeps rendered rows in sync with store changes
- task_api.py: small high-level helpers used at the form (modal) boundary
"""
