"""
LevelHub application package.

Layered the same way throughout:

  levelhub/repositories/  — pure I/O: loading and saving the store document.
  levelhub/services/      — business logic: user records, level listing and
                            server-side sessions.

``levelhub_server.py`` is the integration point: ``init_services`` builds the
store, provider and service instances once, and the Flask route handlers call
the services instead of touching the store document directly.
"""

__version__ = '1.0.0'
