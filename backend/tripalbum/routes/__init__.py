# Routes package init
"""
TripAlbum Backend — API Routes Package
=======================================

Route Inventory:
    - auth.py:    POST /signup, POST /login
    - trips.py:   POST/GET /api/trips, GET/PUT/DELETE /api/trips/{id}
    - photos.py:  GET  /api/photos/{trip_id}/count
                  GET  /api/photos/{trip_id}/photos
                  POST /api/photos/{trip_id}/upload
                  DELETE /api/photos/{photo_id}
                  GET  /api/photos/download/{photo_id}
    - health.py:  GET  /health

Stored photos themselves are served by the /uploads static mount (main.py).

Routes stay thin: extract request data, call a service, return its result.
Errors are raised by services and formatted by the global handlers.
"""
