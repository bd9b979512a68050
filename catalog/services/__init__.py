"""Services Layer — orchestration over the store, cache, notifier and audit queue.

Invariants:
    - Services depend on core/ protocols, never on concrete infrastructure classes
    - Composition happens in api/dependencies.py, not inside services

Design Decisions:
    - One service per aggregate (ProductService); no service locator
"""
