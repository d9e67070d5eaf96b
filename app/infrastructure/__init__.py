"""Infrastructure modules for the notification service.

Centralized infrastructure components:
- configuration: Settings management (Settings, StreamSettings, RetrySettings, ...)
- logging: Structured logging (get_module_logger, bind_event_context)
- auth: Caller identity from gateway headers (UserIdentity)
- clients: Redis client factory
- events: Inbound event decoding, handlers, stream ingestion and publishing
- notifications: Routing, templates, stores, dispatcher and delivery channels
- push: Server-sent event connections and their registry
- resilience: Bounded-attempt retry of failed deliveries
- services: Service graph and dependency injection (ServicesDep, SettingsDep)

Submodules are imported directly (``from infrastructure.push import
ConnectionRegistry``); this package does not re-export them so importing one
component never pulls in the whole service graph.
"""
