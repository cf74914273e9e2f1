"""
Feature modules for the Tenure backend.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the module's public API
- models.py: Pydantic models for data transfer
- service.py: Business logic implementation
- repository.py: In-memory and Supabase storage
- routes.py: FastAPI route handlers (where the module has an HTTP surface)
- exceptions.py: Module-specific exceptions

Every entitlement write goes through entitlements.ActivationReconciler;
codes, payments, trials and admin grants only describe the grant.
"""
