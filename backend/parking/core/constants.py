"""
Centralized constants for slots, bookings and the live channel (Encapsulate What Changes).

Status strings are stored as-is in the database; change them here and in a migration together.
"""

# Slot status (slots.status)
SLOT_AVAILABLE = "available"
SLOT_BOOKED = "booked"
SLOT_OCCUPIED = "occupied"
SLOT_STATUSES = (SLOT_AVAILABLE, SLOT_BOOKED, SLOT_OCCUPIED)
# Statuses a slot may be reserved into (from available only)
SLOT_RESERVED_STATUSES = (SLOT_BOOKED, SLOT_OCCUPIED)

# Booking kind (bookings.booking_type)
BOOKING_SCHEDULED = "scheduled"
BOOKING_WALKIN = "walkin"

# Booking status (bookings.payment_status)
PAYMENT_PENDING = "pending"
PAYMENT_ACTIVE = "active"
PAYMENT_COMPLETED = "completed"
PAYMENT_CANCELLED = "cancelled"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_ACTIVE, PAYMENT_COMPLETED, PAYMENT_CANCELLED)
# Non-terminal: holds its slot. At most one per slot.
OPEN_PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_ACTIVE)

# Kind -> (slot status on allocation, booking status on allocation)
BOOKING_KIND_TRANSITIONS: dict[str, tuple[str, str]] = {
    BOOKING_SCHEDULED: (SLOT_BOOKED, PAYMENT_PENDING),
    BOOKING_WALKIN: (SLOT_OCCUPIED, PAYMENT_ACTIVE),
}

# Booking status -> statuses it may move to. No transition returns to an earlier state.
BOOKING_TRANSITIONS: dict[str, frozenset[str]] = {
    PAYMENT_PENDING: frozenset({PAYMENT_ACTIVE, PAYMENT_COMPLETED, PAYMENT_CANCELLED}),
    PAYMENT_ACTIVE: frozenset({PAYMENT_COMPLETED, PAYMENT_CANCELLED}),
    PAYMENT_COMPLETED: frozenset(),
    PAYMENT_CANCELLED: frozenset(),
}

# Street slot status (street_slots.status), set by the external sensor
STREET_AVAILABLE = "available"
STREET_OCCUPIED = "occupied"
STREET_STATUSES = (STREET_AVAILABLE, STREET_OCCUPIED)

# Column lengths (must match models and migration 001)
CUSTOMER_NAME_MAX = 100
VEHICLE_NUMBER_MAX = 20
PHONE_NUMBER_MAX = 15
SLOT_NUMBER_MAX = 10

# Facility layout used by provisioning and the in-memory store
FACILITY_FLOORS = (1, 2, 3)
SLOTS_PER_FLOOR = 17
STREET_SLOT_NUMBERS = ("A1", "A2", "A3", "B1", "B2", "B3")

# Live channel event names (one message per kind on every publish)
EVENT_AVAILABILITY = "availabilityUpdated"
EVENT_BOOKINGS = "bookingsUpdated"
EVENT_STREET_SLOTS = "slotsUpdated"


def slot_number_for(floor: int, index: int) -> str:
    """Display number for the index-th slot (1-based) on a floor, e.g. floor 2 slot 5 -> '205'."""
    return f"{floor}{index:02d}"
