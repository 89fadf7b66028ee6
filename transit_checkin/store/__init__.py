# Transit check-in: store clients
# Import the backends here so callers can do `from transit_checkin.store import MemoryStore`

from transit_checkin.store.base import StoreClient, Subscription, SERVER_TIMESTAMP   # noqa
from transit_checkin.store.memory import MemoryStore                                  # noqa
from transit_checkin.store.firebase import FirebaseStore                              # noqa
