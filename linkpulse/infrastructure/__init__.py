"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the SDK to the outside world (HTTP, local disk, configuration
sources, the console) by implementing the interfaces defined in the domain
layer.
"""
