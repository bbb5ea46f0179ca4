# Services package init
"""
TripAlbum Backend — Services Layer
===================================

What:  Business logic layer sitting between routes (HTTP) and storage.
How:   Services accept a database session, a RequestContext and plain values,
       apply the business rules and return response schemas or raise
       exceptions from tripalbum.exceptions.

Service Inventory:
    - FileService:  Upload validation, trip directories, photo file cleanup
    - TripService:  Trip CRUD scoped by owner, partial update, optional cascade
    - PhotoService: Upload (file then record), list, count, delete, download
    - AuthService:  Signup with bcrypt hashing, login with uniform failures
"""
