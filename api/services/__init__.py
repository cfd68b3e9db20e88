"""Service layer for business logic.

Services encapsulate business rules, keeping routes thin and focused
on HTTP handling.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

Services should:
- Contain all business rules
- Orchestrate calls to repositories
- Signal absence with None/False and report expected failures as typed
  exceptions

Services should NOT:
- Directly execute SQL queries (use repositories)
- Know about HTTP request/response details (status codes, envelopes)
- Commit; the request-scoped session owns the transaction
"""
