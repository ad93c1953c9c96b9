"""
Feature modules for Subledger backend.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the module's public API
- models.py: Pydantic models for data transfer
- repository.py / service.py: Data access and business logic
- routes.py: FastAPI route handlers (where the module is exposed over HTTP)
- exceptions.py: Module-specific exceptions

Modules communicate through interfaces, not concrete implementations.
"""
