"""Internal constants shared across the library."""

USER_AGENT = "pycourier/0.1"

REST_PREFIX = "/rest/v1"
AUTH_PREFIX = "/auth/v1"

DRIVERS_TABLE = "Drivers"
ORDERS_TABLE = "Orders"
DRIVER_PROFILE_RPC = "get_driver_profile"

#: PostgREST error codes that mean the bearer token is no longer valid.
SESSION_EXPIRED_CODES: frozenset[str] = frozenset({"PGRST301", "PGRST302"})

#: Fallback map centre (Sao Paulo) when no driver has reported a position.
DEFAULT_MAP_CENTER: tuple[float, float] = (-23.55052, -46.633309)

#: Order statuses still on the driver's to-do list.
PENDING_DELIVERY_STATUSES: frozenset[str] = frozenset({"pending", "processing", "delivering"})

REALTIME_PATH = "/realtime/v1/websocket"
#: Phoenix serializer version spoken by the realtime server.
REALTIME_PROTOCOL_VERSION = "1.0.0"
