from enum import Enum


class TableLocation(str, Enum):
    TERRACE_SEA_VIEW = "TERRACE_SEA_VIEW"
    TERRACE_STANDARD = "TERRACE_STANDARD"
    INDOOR_WINDOW = "INDOOR_WINDOW"
    INDOOR_STANDARD = "INDOOR_STANDARD"
    BAR_AREA = "BAR_AREA"


class TableShape(str, Enum):
    RECTANGLE = "RECTANGLE"
    ROUND = "ROUND"
    SQUARE = "SQUARE"


class TableStatus(str, Enum):
    """Estado derivado de una mesa. Se calcula al leer, nunca se persiste."""
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"
    MAINTENANCE = "MAINTENANCE"
    OUT_OF_ORDER = "OUT_OF_ORDER"


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SEATED = "SEATED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


# Solo estas reservas bloquean una mesa
ACTIVE_RESERVATION_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.SEATED,
)


class ReservationSource(str, Enum):
    WEBSITE = "WEBSITE"
    PHONE = "PHONE"
    WALK_IN = "WALK_IN"
    STAFF = "STAFF"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class Language(str, Enum):
    DE = "DE"
    EN = "EN"


class Allergen(str, Enum):
    """Los 14 alérgenos de declaración obligatoria en la UE."""
    GLUTEN = "GLUTEN"
    MILK = "MILK"
    EGGS = "EGGS"
    NUTS = "NUTS"
    FISH = "FISH"
    SHELLFISH = "SHELLFISH"
    SOY = "SOY"
    CELERY = "CELERY"
    MUSTARD = "MUSTARD"
    SESAME = "SESAME"
    SULFITES = "SULFITES"
    LUPIN = "LUPIN"
    MOLLUSKS = "MOLLUSKS"
    PEANUTS = "PEANUTS"
