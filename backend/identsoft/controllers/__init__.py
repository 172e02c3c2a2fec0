from .booking_controller import booking_bp
from .campaign_controller import campaign_bp
from .clinical_controller import clinical_bp
from .health_controller import health_bp
from .ledger_controller import ledger_bp
from .registry_controller import registry_bp

__all__ = [
    "booking_bp",
    "campaign_bp",
    "clinical_bp",
    "health_bp",
    "ledger_bp",
    "registry_bp",
]
