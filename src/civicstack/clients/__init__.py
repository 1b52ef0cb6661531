"""
External Collaborator Clients

HTTP clients for the facility lookup, sentiment classifier and image
validation services. All failures surface as CollaboratorError.
"""
from src.civicstack.clients.facilities import Facility, FacilityLookupClient
from src.civicstack.clients.sentiment import SentimentClient, SentimentResult
from src.civicstack.clients.image_validation import ImageValidationClient

__all__ = [
    "Facility",
    "FacilityLookupClient",
    "SentimentClient",
    "SentimentResult",
    "ImageValidationClient",
]
