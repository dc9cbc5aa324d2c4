"""
quant_engine.services.engine: computation context and dispatch client.

    from quant_engine.services.engine import QuantClient, ComputationContext
"""

from quant_engine.services.engine.client import QuantClient, QuantSnapshot, get_client
from quant_engine.services.engine.context import ComputationContext

__all__ = ["ComputationContext", "QuantClient", "QuantSnapshot", "get_client"]
