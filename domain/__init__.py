"""Domain records rendered by the dashboard and their normalizers."""

from .models import Account, Address, ContactDetails, Customer, Kyc, Offer
from .normalizer import normalize_customer, normalize_customers, normalize_offer, normalize_offers

__all__ = [
    "Account",
    "Address",
    "ContactDetails",
    "Customer",
    "Kyc",
    "Offer",
    "normalize_customer",
    "normalize_customers",
    "normalize_offer",
    "normalize_offers",
]
