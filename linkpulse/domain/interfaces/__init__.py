"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
and host applications must implement. Core logic depends on these
interfaces, not concrete implementations.
"""
