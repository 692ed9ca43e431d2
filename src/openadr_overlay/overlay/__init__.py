"""Overlay module - admission, indexing, and lookup of OpenADR events."""

from openadr_overlay.overlay.engine import OverlayEngine
from openadr_overlay.overlay.lookup_service import OpenADRLookupService
from openadr_overlay.overlay.queries import LOOKUP_SERVICE, LookupQuery, LookupQuestion
from openadr_overlay.overlay.resolver import LocalLookupResolver, LookupResolver
from openadr_overlay.overlay.topic_manager import (
    TOPIC,
    AdmittanceInstructions,
    OpenADRTopicManager,
)

__all__ = [
    "TOPIC",
    "LOOKUP_SERVICE",
    "AdmittanceInstructions",
    "OpenADRTopicManager",
    "OpenADRLookupService",
    "LookupQuery",
    "LookupQuestion",
    "LookupResolver",
    "LocalLookupResolver",
    "OverlayEngine",
]
