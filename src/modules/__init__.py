"""Business modules for the DORA metrics service.

This package contains the core business logic modules, organized
following the modular monolith pattern. Each module is self-contained
with its own models, repositories, schemas, services, and routes.
"""
