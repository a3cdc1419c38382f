"""kubectl plugin for managing RabbitmqCluster resources."""

__version__ = "0.1.0"
