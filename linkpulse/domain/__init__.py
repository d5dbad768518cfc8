"""Domain Layer: value objects, models, failure taxonomy and ports.

Has no dependency on the infrastructure layer; adapters implement the
interfaces defined here.
"""
