"""
tailbench - Tail-latency trial simulation.

Sample a main + tail mixture, bucket it, compare observed against expected
across versions, experiments and runs.
"""

from tailbench.seed import generate_initial_state
from tailbench.store import Store
from tailbench.trials import TrialRunner, generate_trial

__version__ = "0.1.0"
__all__ = ["Store", "TrialRunner", "__version__", "generate_initial_state", "generate_trial"]
