# Services package init
"""
LocalBiz Backend — Services Layer
===================================

What:  Business rules between the routes (HTTP) and the database.
How:   Each service takes an AsyncSession from the route, raises
       LocalBizError subclasses, and returns response schemas. Module-level
       singletons are imported by the routes.

Service Inventory:
    - AuthService:      registration, login lockout, bearer sessions
    - BusinessService:  business documents, profile edits, images
    - SearchService:    filtered, sorted, paginated business search
    - FavoriteService:  bookmarks and local-list sync
    - ChatService:      threads, messages, unread badge and its event stream
    - AnalyticsService: view/search events, rankings, dashboards
    - FileService:      image validation, storage and cleanup
"""
