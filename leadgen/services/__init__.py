"""
leadgen/services package marker.
"""

from leadgen.services.lead_discovery_service import LeadDiscoveryService, get_lead_discovery_service

__all__ = ["LeadDiscoveryService", "get_lead_discovery_service"]
