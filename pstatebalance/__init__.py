"""Energy-aware load balancing between two queues as Markov chains.

Submodules build the chain, solve it with GTH and derive measures from it.
"""

__version__ = "1.0.0"

__all__ = [
    "formats",
    "generator",
    "gth",
    "heatmap",
    "marginal",
    "model",
    "reorder",
    "rewards",
    "tgf",
]