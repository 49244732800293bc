"""QR code stream scanner.

Buffers live camera detections into short windows, locks onto one code and
classifies its payload into typed actions.
"""

__version__ = "0.1.0"
