import enum

class EventType(str, enum.Enum):
    banquet = "BANQUET"
    a_la_carte = "A_LA_CARTE"
    sports_multi = "SPORTS_MULTI"
    coffee = "COFFEE"
    buffet = "BUFFET"
    other = "OTHER"

class POStatus(str, enum.Enum):
    draft = "DRAFT"
    sent = "SENT"
    partial = "PARTIAL"
    received = "RECEIVED"
    cancelled = "CANCELLED"

class DemandSource(str, enum.Enum):
    recipe = "RECIPE"
    direct = "DIRECT"
