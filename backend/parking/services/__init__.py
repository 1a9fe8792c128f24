from parking.services.allocation import AllocationRequest, allocate
from parking.services.fees import compute_fee
from parking.services.lifecycle import cancel, check_in, complete
from parking.services.notifier import ChangeNotifier

__all__ = ["AllocationRequest", "allocate", "compute_fee", "cancel", "check_in", "complete", "ChangeNotifier"]
