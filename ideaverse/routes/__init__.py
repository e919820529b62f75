# Routes package init
"""
IdeaVerse Backend — API Routes Package
========================================

Route Inventory:
    - ideas.py:   GET    /api/ideas                   (list, optional ?category=)
                  GET    /api/ideas/filter/category   (category filter)
                  GET    /api/ideas/{id}              (single idea)
                  POST   /api/ideas                   (create)
                  PUT    /api/ideas/{id}              (owner update)
                  DELETE /api/ideas/{id}              (owner delete)
                  POST   /api/ideas/{id}/like         (toggle like)
                  GET    /api/ideas/{id}/liked        (like status)
    - health.py:  GET    /health                      (service health check)

Routes handle HTTP concerns only; business rules live in services.
"""
