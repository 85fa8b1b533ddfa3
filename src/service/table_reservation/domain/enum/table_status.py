from enum import StrEnum


class TableStatus(StrEnum):
    """Physical availability of a table"""

    FREE = 'free'
    RESERVED = 'reserved'  # Held for an upcoming reservation
    OCCUPIED = 'occupied'  # Guests seated, a sale may be open
