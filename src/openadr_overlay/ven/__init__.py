"""VEN module - the polling consumer of OpenADR events.

The client and HTTP modules are imported from their own modules
(openadr_overlay.ven.client, openadr_overlay.ven.vtn_client) so that
persistence can depend on the report model without loading them.
"""

from openadr_overlay.ven.reports import LOAD_REDUCTION, PRICE, SIMPLE_LEVEL, Report

__all__ = ["Report", "LOAD_REDUCTION", "SIMPLE_LEVEL", "PRICE"]
