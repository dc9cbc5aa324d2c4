"""
Engine configuration read from the environment.

Values are fixed per deployment; constructors accept overrides for tests
and embedding, but no per-call tuning exists.
"""

import os

# Deadline applied to every dispatched job (seconds)
QUANT_TIMEOUT_SECONDS = float(os.getenv("QUANT_TIMEOUT_SECONDS", "5"))

# Upper bound on Monte Carlo paths per job, enforced inside the context
QUANT_MAX_SIMULATIONS = int(os.getenv("QUANT_MAX_SIMULATIONS", "50"))

# How long start() waits for the computation thread to report ready
QUANT_STARTUP_TIMEOUT_SECONDS = float(os.getenv("QUANT_STARTUP_TIMEOUT_SECONDS", "2"))
