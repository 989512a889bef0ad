"""Internal constants shared across the library."""

BASE_URL = "http://localhost:5001/api"
USER_AGENT = "pyfleet/1"

#: Seconds a successfully fetched cache entry stays fresh.
DEFAULT_STALE_AFTER: float = 5 * 60

#: Seconds a toast stays visible before it is dismissed automatically.
DEFAULT_TOAST_DURATION: float = 4.0

#: Storage namespace and schema version of the persisted UI snapshot.
UI_STORAGE_NAMESPACE = "fleet-ui-storage"
UI_SNAPSHOT_VERSION = 1

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."
