# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Face touch monitor.

Learns from two short webcam recordings what touching your face looks like
for you, then watches the webcam and sounds an alert on every new touch.
"""

__version__ = "0.1.0"
