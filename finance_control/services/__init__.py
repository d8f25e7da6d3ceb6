"""
Domain services: validated single-write persistence and audit logging.

Service classes are imported from their modules
(e.g. `finance_control.services.transactions`) so that the storage package
can be imported on its own by the query engine.
"""
