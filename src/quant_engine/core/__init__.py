"""quant_engine.core: configuration, logging, errors and wire types."""
