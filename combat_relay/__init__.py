"""Combat Stats Relay - real-time combat statistics for the training dashboard"""

__version__ = "1.0.0"
