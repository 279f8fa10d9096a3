"""
Services package - Business logic layer.

This package contains the dispatch core, operating on Django models but
decoupled from the HTTP/WebSocket layer.

Modules:
    - ride_management: registry, state machine and inbound ride operations
    - matching: candidate offers and offer resolution
    - directory: rider/driver contact lookup
    - handoff: ride history archival and driver earnings
    - estimators: pluggable fare and ETA estimates

Import submodules directly (``from services import handoff``); the package
itself re-exports nothing so the models layer can import the exceptions
without pulling in the whole core.
"""
